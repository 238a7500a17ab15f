"""Payment DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CreatePaymentDTO(BaseModel):
    """Immutable DTO for ``POST /payments``.

    Validates:
    - ``amount`` must be greater than zero.
    - ``method`` is fixed to cash and ``status`` to completed.
    Timestamps default to the server clock when omitted.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    order_id: int
    amount: Decimal
    collected_by: str
    method: Literal["cash"] = "cash"
    status: Literal["completed"] = "completed"
    collected_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    customer_name: Optional[str] = None
    order_total: Optional[Decimal] = None

    @field_validator("amount")
    @classmethod
    def amount_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Amount must be greater than zero.")
        return v.quantize(Decimal("0.01"))

    @field_validator("collected_by")
    @classmethod
    def collector_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("collected_by cannot be blank.")
        return v


class VoidPaymentDTO(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    reason: str = ""
