"""Order store: the single in-memory snapshot every delivery screen reads.

The store is an injected object (never a module global).  It is safe to
share between the poller thread and user actions: the snapshot is
replaced under a lock, and subscribers are notified outside it.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from modules.delivery.constants import UPDATABLE_FIELDS
from modules.delivery.dtos import DeliveryOrder, RecordId, order_key
from modules.delivery.exceptions import GatewayError, OrderUpdateFailed
from modules.delivery.gateways.interfaces import IDeliveryGateway

logger = structlog.get_logger(__name__)

Listener = Callable[["OrderStore"], None]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrderStore:
    """Holds the latest order snapshot and mediates all reads and writes.

    - ``fetch_orders`` replaces the snapshot (last fetch wins).  A failed
      fetch keeps the previous snapshot and raises the error flag.
    - ``update_order_status`` sends a partial update and applies the
      order returned by the backend, so the snapshot is never stale once
      the call returns.
    """

    def __init__(
        self, gateway: IDeliveryGateway, clock: Optional[Clock] = None
    ) -> None:
        self._gateway = gateway
        self._clock = clock or utc_now
        self._lock = threading.RLock()
        self._orders: Dict[str, DeliveryOrder] = {}
        self._error: Optional[str] = None
        self._last_fetched_at: Optional[datetime] = None
        self._listeners: List[Listener] = []

    @property
    def gateway(self) -> IDeliveryGateway:
        return self._gateway

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_orders(self) -> List[DeliveryOrder]:
        with self._lock:
            return list(self._orders.values())

    def get_order(self, order_id: RecordId) -> Optional[DeliveryOrder]:
        with self._lock:
            return self._orders.get(order_key(order_id))

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def last_fetched_at(self) -> Optional[datetime]:
        return self._last_fetched_at

    def dismiss_error(self) -> None:
        with self._lock:
            self._error = None
        self._notify()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def fetch_orders(self) -> bool:
        """Replace the snapshot with the backend's order list.

        Returns ``False`` (and sets ``error``) when the backend is
        unreachable; the previous snapshot is kept.
        """
        try:
            payloads = self._gateway.list_orders()
        except GatewayError as exc:
            with self._lock:
                self._error = str(exc)
            logger.warning(
                "store.fetch_failed",
                error=str(exc),
                status_code=exc.status_code,
                kept_orders=len(self._orders),
            )
            self._notify()
            return False

        orders: Dict[str, DeliveryOrder] = {}
        for payload in payloads:
            order = self._normalize(payload)
            if order is not None:
                orders[order.key] = order

        with self._lock:
            self._orders = orders
            self._error = None
            self._last_fetched_at = self._clock()
        logger.debug("store.fetched", order_count=len(orders))
        self._notify()
        return True

    def update_order_status(self, order_id: RecordId, **fields: Any) -> DeliveryOrder:
        """Send a partial update of ``fields`` and return the updated order.

        Raises:
            OrderUpdateFailed: the backend rejected or never received the
                update; the local snapshot is unchanged.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise OrderUpdateFailed(order_id, f"unknown fields {sorted(unknown)}")

        log = logger.bind(order_id=str(order_id), fields=sorted(fields))
        try:
            response = self._gateway.update_order(order_id, dict(fields))
        except GatewayError as exc:
            log.warning(
                "store.update_failed", error=str(exc), status_code=exc.status_code
            )
            raise OrderUpdateFailed(order_id, str(exc)) from exc

        updated = self._normalize(response) if isinstance(response, dict) else None
        if updated is None:
            updated = self._reconcile_without_body(order_id, fields)

        with self._lock:
            self._orders[updated.key] = updated
        log.info(
            "store.order_updated",
            status=updated.status,
            delivery_status=updated.delivery_status,
        )
        self._notify()
        return updated

    def _reconcile_without_body(
        self, order_id: RecordId, fields: Dict[str, Any]
    ) -> DeliveryOrder:
        """The backend accepted the update but sent no order back."""
        if self.fetch_orders():
            refreshed = self.get_order(order_id)
            if refreshed is not None:
                return refreshed
        current = self.get_order(order_id)
        if current is None:
            raise OrderUpdateFailed(order_id, "order is not in the snapshot")
        logger.info("store.update_applied_locally", order_id=str(order_id))
        return current.model_copy(update=fields)

    @staticmethod
    def _normalize(payload: Dict[str, Any]) -> Optional[DeliveryOrder]:
        try:
            return DeliveryOrder.model_validate(payload)
        except PydanticValidationError as exc:
            logger.warning(
                "store.order_skipped",
                order_id=str(payload.get("id")) if isinstance(payload, dict) else None,
                errors=exc.error_count(),
            )
            return None
