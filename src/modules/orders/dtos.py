"""Order DTOs for the service layer (Pydantic v2, immutable).

The payment choice is a tagged union keyed by ``mode``::

    {"mode": "COD"}
    {"mode": "ONLINE", "gateway_reference": "pay_123"}
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CashOnDelivery(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["COD"] = "COD"


class OnlinePayment(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["ONLINE"] = "ONLINE"
    gateway_reference: str

    @field_validator("gateway_reference")
    @classmethod
    def reference_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Online payments need a gateway reference.")
        return v.strip()


Payment = Annotated[Union[CashOnDelivery, OnlinePayment], Field(discriminator="mode")]


class CreateOrderDTO(BaseModel):
    """Checkout request.  Lines come from the caller's cart, not from here."""

    model_config = ConfigDict(frozen=True)

    payment: Payment
    address: str
    notes: str = ""
    idempotency_key: Optional[str] = None

    @field_validator("address")
    @classmethod
    def address_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("A shipping address is required.")
        return v.strip()

    @field_validator("idempotency_key")
    @classmethod
    def blank_key_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v
