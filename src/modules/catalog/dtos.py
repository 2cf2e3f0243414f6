"""Catalog DTOs for the service layer (Pydantic v2, immutable).

- ``VariantDTO``: one size with its price and stock.
- ``CreateProductDTO``: product creation with at least one variant.
- ``UpdateProductDTO``: partial update of descriptive fields.
- ``SetStockDTO``: absolute stock level for one size (admin restock).
- ``UpsertVariantDTO``: add a size or change its price (and optionally stock).
"""

from __future__ import annotations

from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.catalog.models import DEFAULT_SIZE, ProductStatus, normalise_size


class VariantDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    size: str = DEFAULT_SIZE
    price: Decimal
    stock_quantity: int = 0

    @field_validator("size")
    @classmethod
    def size_is_normalised(cls, v: str) -> str:
        return normalise_size(v)

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("stock_quantity")
    @classmethod
    def stock_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v


class CreateProductDTO(BaseModel):
    """Validates:

    - ``sku`` is non-empty (normalised to upper case).
    - ``variants`` holds at least one entry and no repeated size.
    """

    model_config = ConfigDict(frozen=True)

    sku: str
    title: str
    summary: str = ""
    description: str = ""
    image: str = ""
    category: str = ""
    featured: bool = False
    variants: List[VariantDTO]

    @field_validator("sku")
    @classmethod
    def sku_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SKU must not be empty.")
        return v.strip().upper()

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Title must not be empty.")
        return v.strip()

    @field_validator("variants")
    @classmethod
    def variants_must_not_be_empty(cls, v: List[VariantDTO]) -> List[VariantDTO]:
        if not v:
            raise ValueError("A product needs at least one variant.")
        return v

    @model_validator(mode="after")
    def no_duplicate_sizes(self):
        sizes = [variant.size for variant in self.variants]
        if len(sizes) != len(set(sizes)):
            raise ValueError("Duplicate sizes are not allowed for a product.")
        return self


class UpdateProductDTO(BaseModel):
    """Only supplied (non-``None``) fields are applied."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    summary: str | None = None
    description: str | None = None
    image: str | None = None
    category: str | None = None
    featured: bool | None = None
    status: str | None = None

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, v: str | None) -> str | None:
        if v is not None and v not in ProductStatus.values:
            raise ValueError(f"Unknown product status '{v}'.")
        return v


class SetStockDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    size: str = DEFAULT_SIZE
    stock_quantity: int

    @field_validator("size")
    @classmethod
    def size_is_normalised(cls, v: str) -> str:
        return normalise_size(v)

    @field_validator("stock_quantity")
    @classmethod
    def stock_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v


class UpsertVariantDTO(BaseModel):
    """``stock_quantity`` left as ``None`` keeps an existing size's stock
    (new sizes start at zero)."""

    model_config = ConfigDict(frozen=True)

    size: str = DEFAULT_SIZE
    price: Decimal
    stock_quantity: int | None = None

    @field_validator("size")
    @classmethod
    def size_is_normalised(cls, v: str) -> str:
        return normalise_size(v)

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("stock_quantity")
    @classmethod
    def stock_must_be_non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v
