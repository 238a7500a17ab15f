"""Resolve customer and product references into display values.

Upstream data is inconsistent about id typing: an order may reference
its customer as ``7``, ``"7"`` or ``"Customer #7"``, while the reference
table stores ``7`` or ``"7"``.  Matching therefore compares every
string/number coercion of both sides.
"""

from __future__ import annotations

import re
import threading
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set, TypeVar, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from modules.delivery.dtos import (
    CustomerRecord,
    DeliveryOrder,
    OrderLine,
    ProductRecord,
    RecordId,
)
from modules.delivery.exceptions import GatewayError
from modules.delivery.gateways.interfaces import IDeliveryGateway

logger = structlog.get_logger(__name__)

_REFERENCE_ID = re.compile(r"#\s*(\d+)")

R = TypeVar("R", CustomerRecord, ProductRecord)


def extract_reference_id(reference: Union[RecordId, None]) -> Union[RecordId, None]:
    """``"Customer #7"`` -> ``"7"``; anything else is returned as-is."""
    if isinstance(reference, str):
        match = _REFERENCE_ID.search(reference)
        if match:
            return match.group(1)
    return reference


def _id_forms(value: RecordId) -> Set[str]:
    """All comparable forms of an id: ``7``, ``"7"``, ``"07"`` -> {"7"}."""
    text = str(value).strip()
    forms = {text}
    try:
        forms.add(str(int(Decimal(text))))
    except (ArithmeticError, ValueError):
        pass
    return forms


def find_record(records: Iterable[R], reference: Union[RecordId, None]) -> Optional[R]:
    ref = extract_reference_id(reference)
    if ref is None or ref == "":
        return None
    wanted = _id_forms(ref)
    for record in records:
        if _id_forms(record.id) & wanted:
            return record
    return None


class ReferenceResolver:
    """Customer and product look-ups over the read-only reference tables.

    ``refresh()`` keeps the last good tables when the backend is down.
    """

    def __init__(
        self,
        customers: Iterable[CustomerRecord] = (),
        products: Iterable[ProductRecord] = (),
    ) -> None:
        self._lock = threading.Lock()
        self._customers: List[CustomerRecord] = list(customers)
        self._products: List[ProductRecord] = list(products)
        self.error: Optional[str] = None

    @classmethod
    def from_payloads(
        cls, customers: Iterable[Dict], products: Iterable[Dict]
    ) -> ReferenceResolver:
        return cls(
            _parse_all(CustomerRecord, customers),
            _parse_all(ProductRecord, products),
        )

    def refresh(self, gateway: IDeliveryGateway) -> bool:
        try:
            customers = _parse_all(CustomerRecord, gateway.list_customers())
            products = _parse_all(ProductRecord, gateway.list_products())
        except GatewayError as exc:
            self.error = str(exc)
            logger.warning("resolver.refresh_failed", error=str(exc))
            return False
        with self._lock:
            self._customers = customers
            self._products = products
        self.error = None
        logger.debug(
            "resolver.refreshed", customers=len(customers), products=len(products)
        )
        return True

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def customer(self, reference: Union[RecordId, None]) -> Optional[CustomerRecord]:
        with self._lock:
            return find_record(self._customers, reference)

    def resolve_customer_name(self, reference: Union[RecordId, None]) -> str:
        """``"Customer #7"`` -> the name of customer 7, or ``"Customer #7"``."""
        record = self.customer(reference)
        if record is not None and record.name:
            return record.name
        ref = extract_reference_id(reference)
        if ref is None or ref == "":
            return ""
        return f"Customer #{ref}"

    def customer_name(self, order: DeliveryOrder) -> str:
        """Name from the reference table, then the order, then ``Customer #<id>``."""
        record = self.customer(order.customer)
        if record is not None and record.name:
            return record.name
        if order.customer_name and not _is_fallback(order.customer_name):
            return order.customer_name
        return self.resolve_customer_name(order.customer) or order.customer_name or ""

    def customer_address(self, order: DeliveryOrder) -> str:
        if order.delivery_address:
            return order.delivery_address
        record = self.customer(order.customer)
        return record.address if record else ""

    def customer_phone(self, order: DeliveryOrder) -> str:
        if order.customer_phone:
            return order.customer_phone
        record = self.customer(order.customer)
        return record.phone if record else ""

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def product(self, reference: Union[RecordId, None]) -> Optional[ProductRecord]:
        with self._lock:
            return find_record(self._products, reference)

    def product_name(self, line: OrderLine) -> str:
        record = self.product(line.product)
        if record is not None and (record.name or record.name_en):
            return record.name or record.name_en
        if line.product_name and not _is_fallback(line.product_name):
            return line.product_name
        return f"Product #{extract_reference_id(line.product)}"

    def product_price(self, line: OrderLine) -> Decimal:
        if line.unit_price:
            return line.unit_price
        record = self.product(line.product)
        return record.price if record else Decimal("0")


def _is_fallback(name: str) -> bool:
    return bool(_REFERENCE_ID.search(name)) and name.split("#")[0].strip() in (
        "Customer",
        "Product",
    )


def _parse_all(model: type, payloads: Iterable[Dict]) -> list:
    records = []
    for payload in payloads:
        try:
            records.append(model.model_validate(payload))
        except PydanticValidationError as exc:
            logger.warning(
                "resolver.record_skipped",
                model=model.__name__,
                errors=exc.error_count(),
            )
    return records
