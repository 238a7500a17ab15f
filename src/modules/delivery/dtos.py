"""Canonical shapes of the records the delivery workflow reads.

Backends disagree on field names (``total`` vs ``totalAmount`` vs
``total_amount``, ``items`` vs ``products``, camelCase vs snake_case).
Every payload is normalized here, at the store boundary, so nothing
downstream branches on which variant was present. Numbers sent for text
fields (a driver id in ``assignedDriver``, a phone number) become strings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

RecordId = Union[int, str]

_MISSING = object()


def _pick(data: Dict[str, Any], *names: str) -> Any:
    """First present, non-null value among ``names``."""
    for name in names:
        value = data.get(name, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return _MISSING


def _normalize(data: Any, variants: Dict[str, Tuple[str, ...]]) -> Any:
    if not isinstance(data, dict):
        return data
    normalized: Dict[str, Any] = {}
    for field, names in variants.items():
        value = _pick(data, field, *names)
        if value is not _MISSING:
            normalized[field] = value
    return normalized


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class OrderLine(BaseModel):
    """A line item; ``product`` is an id or a ``Product #<n>`` reference."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    product: Optional[RecordId] = None
    product_name: str = ""
    quantity: int = 1
    unit_price: Decimal = Decimal("0")

    @model_validator(mode="before")
    @classmethod
    def _normalize_variants(cls, data: Any) -> Any:
        return _normalize(
            data,
            {
                "product": ("product_id", "productId", "id"),
                "product_name": ("productName", "name"),
                "quantity": ("qty",),
                "unit_price": ("unitPrice", "price"),
            },
        )


class DeliveryOrder(BaseModel):
    """One order as the delivery workflow sees it."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: RecordId
    delivery_option: str = "pickup"
    status: str = ""
    delivery_status: str = ""
    assigned_driver: Optional[str] = None
    delivery_start_time: Optional[datetime] = None
    delivery_end_time: Optional[datetime] = None
    is_delivered: bool = False
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    payment_id: Optional[RecordId] = None
    total: Decimal = Decimal("0")
    customer: Optional[RecordId] = None
    customer_name: Optional[str] = None
    items: Tuple[OrderLine, ...] = ()
    delivery_address: str = ""
    customer_phone: str = ""
    created_at: Optional[datetime] = None
    notes: str = ""

    @model_validator(mode="before")
    @classmethod
    def _normalize_variants(cls, data: Any) -> Any:
        return _normalize(
            data,
            {
                "id": ("orderId", "order_id"),
                "delivery_option": ("deliveryOption",),
                "status": (),
                "delivery_status": ("deliveryStatus",),
                "assigned_driver": ("assignedDriver",),
                "delivery_start_time": ("deliveryStartTime",),
                "delivery_end_time": ("deliveryEndTime",),
                "is_delivered": ("isDelivered",),
                "is_paid": ("isPaid",),
                "paid_at": ("paidAt",),
                "payment_id": ("paymentId",),
                "total": ("totalAmount", "total_amount"),
                "customer": ("customerId", "customer_id"),
                "customer_name": ("customerName",),
                "items": ("products",),
                "delivery_address": ("deliveryAddress",),
                "customer_phone": ("customerPhone", "phone"),
                "created_at": ("createdAt", "date"),
                "notes": ("generalNotes",),
            },
        )

    @field_validator("status", "delivery_status", "delivery_option")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("assigned_driver")
    @classmethod
    def _blank_driver_is_unassigned(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator(
        "delivery_start_time", "delivery_end_time", "paid_at", "created_at"
    )
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _aware(v)

    @property
    def key(self) -> str:
        return order_key(self.id)


def order_key(order_id: RecordId) -> str:
    """Ids arrive as ``42`` or ``"42"``; both address the same order."""
    return str(order_id).strip()


class PaymentRecord(BaseModel):
    """A payment as returned by the backend."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: RecordId
    order_id: RecordId
    amount: Decimal
    collected_by: str = ""
    method: str = "cash"
    status: str = "completed"
    collected_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    customer_name: str = ""
    order_total: Optional[Decimal] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_variants(cls, data: Any) -> Any:
        return _normalize(
            data,
            {
                "id": (),
                "order_id": ("orderId", "order"),
                "amount": (),
                "collected_by": ("collectedBy",),
                "method": (),
                "status": (),
                "collected_at": ("collectedAt",),
                "paid_at": ("paidAt",),
                "customer_name": ("customerName",),
                "order_total": ("orderTotal",),
            },
        )

    @field_validator("collected_at", "paid_at")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _aware(v)

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


class CustomerRecord(BaseModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: RecordId
    name: str = ""
    phone: str = ""
    address: str = ""

    @model_validator(mode="before")
    @classmethod
    def _normalize_variants(cls, data: Any) -> Any:
        return _normalize(
            data,
            {
                "id": (),
                "name": ("customer_name",),
                "phone": ("phone_number",),
                "address": ("delivery_address",),
            },
        )


class ProductRecord(BaseModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: RecordId
    name: str = ""
    name_en: str = ""
    price: Decimal = Decimal("0")

    @model_validator(mode="before")
    @classmethod
    def _normalize_variants(cls, data: Any) -> Any:
        return _normalize(
            data,
            {
                "id": (),
                "name": ("arabic_name",),
                "name_en": ("english_name", "nameEn"),
                "price": (),
            },
        )
