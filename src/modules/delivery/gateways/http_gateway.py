"""``requests`` implementation of the delivery gateway."""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests
import structlog
from pydantic import TypeAdapter

from modules.delivery.dtos import RecordId
from modules.delivery.exceptions import GatewayError
from modules.delivery.gateways.interfaces import IDeliveryGateway, Payload

logger = structlog.get_logger(__name__)

# Guard against a backend whose ``next`` links loop.
MAX_PAGES = 200

_JSON_BODY = TypeAdapter(Dict[str, Any])


def to_json_body(payload: Payload) -> Any:
    """Datetimes and Decimals rendered the way the API parses them."""
    return _JSON_BODY.dump_python(payload, mode="json")


def unwrap_collection(data: Any) -> List[Payload]:
    """Accept a bare array or a ``results``/``data`` envelope."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("results", "data"):
            if isinstance(data.get(key), list):
                return data[key]
    raise GatewayError("Unexpected collection payload.", payload=data)


class HttpDeliveryGateway(IDeliveryGateway):
    """Talks to the REST API with a shared ``requests.Session``.

    ``base_url`` must end with the API prefix, e.g.
    ``http://localhost:8000/api/v1/``.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_settings(cls) -> HttpDeliveryGateway:
        from django.conf import settings

        return cls(
            base_url=settings.DELIVERY_API_BASE_URL,
            token=settings.DELIVERY_API_TOKEN,
            timeout=settings.DELIVERY_API_TIMEOUT,
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = urljoin(self._base_url, path)
        request_id = (
            structlog.contextvars.get_contextvars().get("correlation_id")
            or str(uuid.uuid4())
        )
        log = logger.bind(method=method, url=url, request_id=request_id)

        try:
            response = self._session.request(
                method,
                url,
                timeout=self._timeout,
                headers={"X-Request-ID": request_id},
                **kwargs,
            )
        except requests.RequestException as exc:
            log.warning("delivery_gateway.request_failed", error=str(exc))
            raise GatewayError(f"{method} {url} failed: {exc}") from exc

        if not response.ok:
            payload = _safe_json(response)
            log.warning(
                "delivery_gateway.http_error",
                status_code=response.status_code,
                detail=payload.get("detail") if isinstance(payload, dict) else None,
            )
            raise GatewayError(
                f"{method} {url} returned {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )

        log.debug("delivery_gateway.ok", status_code=response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError(
                f"{method} {url} returned invalid JSON",
                status_code=response.status_code,
            ) from exc

    def _collect(self, path: str) -> List[Payload]:
        data = self._request("GET", path)
        items = unwrap_collection(data)
        pages = 1
        while isinstance(data, dict) and data.get("next"):
            if pages >= MAX_PAGES:
                raise GatewayError(f"GET {path} exceeded {MAX_PAGES} pages")
            data = self._request("GET", data["next"])
            items.extend(unwrap_collection(data))
            pages += 1
        return items

    # ------------------------------------------------------------------
    # IDeliveryGateway
    # ------------------------------------------------------------------

    def list_orders(self) -> List[Payload]:
        return self._collect("orders/")

    def update_order(self, order_id: RecordId, payload: Payload) -> Optional[Payload]:
        return self._request(
            "PATCH", f"orders/{order_id}/", json=to_json_body(payload)
        )

    def create_payment(self, payload: Payload) -> Payload:
        return self._request("POST", "payments/", json=to_json_body(payload))

    def void_payment(self, payment_id: RecordId, reason: str = "") -> Payload:
        return self._request(
            "POST", f"payments/{payment_id}/void/", json={"reason": reason}
        )

    def list_payments(self) -> List[Payload]:
        return self._collect("payments/")

    def list_customers(self) -> List[Payload]:
        return self._collect("customers/")

    def list_products(self) -> List[Payload]:
        return self._collect("products/")

    def close(self) -> None:
        self._session.close()


def _safe_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
