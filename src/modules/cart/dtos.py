"""Cart DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.catalog.models import DEFAULT_SIZE, normalise_size


class AddCartLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    size: str = DEFAULT_SIZE
    quantity: int = 1

    @field_validator("size")
    @classmethod
    def size_is_normalised(cls, v: str) -> str:
        return normalise_size(v)

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v
