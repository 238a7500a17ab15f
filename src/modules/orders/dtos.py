"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer and the Service layer.
DTOs are immutable (``frozen=True``).

- ``UpdateOrderDTO``: partial update issued by the delivery workflow.
  Only the fields present in the payload are applied
  (``model_fields_set``); unknown fields are rejected.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import DeliveryStatus


class UpdateOrderDTO(BaseModel):
    """Immutable DTO for ``PATCH/PUT /orders/{id}``.

    ``assigned_driver`` may be sent as ``null`` to release a claim;
    an empty string is treated the same way.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: Optional[str] = None
    delivery_status: Optional[str] = None
    assigned_driver: Optional[str] = None
    delivery_start_time: Optional[datetime] = None
    delivery_end_time: Optional[datetime] = None
    is_delivered: Optional[bool] = None
    is_paid: Optional[bool] = None
    paid_at: Optional[datetime] = None
    payment_id: Optional[int] = None
    delivery_address: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def status_must_not_be_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower()
        if not v:
            raise ValueError("Status cannot be blank.")
        return v

    @field_validator("delivery_status")
    @classmethod
    def delivery_status_must_be_known(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower()
        if v and v not in DeliveryStatus.values:
            raise ValueError(
                f"Unknown delivery status '{v}'. "
                f"Expected one of: {', '.join(DeliveryStatus.values)}."
            )
        return v

    @field_validator("assigned_driver")
    @classmethod
    def blank_driver_means_unassigned(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly present in the payload, with their values.

        Non-nullable columns drop an explicit ``null``.
        """
        data = {name: getattr(self, name) for name in self.model_fields_set}
        for name in ("status", "is_delivered", "is_paid"):
            if name in data and data[name] is None:
                del data[name]
        for name in ("delivery_status", "delivery_address", "customer_phone", "notes"):
            if name in data and data[name] is None:
                data[name] = ""
        return data
