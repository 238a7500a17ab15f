"""Helpers shared by the API views of every bounded context."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response


def validation_detail(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    """Flatten a Pydantic error into ``[{"field", "message"}]`` for ``detail``."""
    return [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors(include_url=False)
    ]


def request_actor(request: Request) -> str:
    """Name recorded as ``changed_by``: full name, else username."""
    user = request.user
    full_name = user.get_full_name() if hasattr(user, "get_full_name") else ""
    return full_name or user.get_username()


def error_response(detail: Any, status_code: int) -> Response:
    return Response({"detail": detail}, status=status_code)


def invalid_payload(exc: PydanticValidationError) -> Response:
    return error_response(validation_detail(exc), status.HTTP_400_BAD_REQUEST)
