"""
Studio Django Adapter - Error Mapping
=====================================
Stable transport mapping for engine errors.

Body shape: {"ok": false, "error": {"code", "message", "details"}}.
"""

from __future__ import annotations

from typing import Any, Optional

from django.http import JsonResponse

from core.commands.errors import (
    AuthorizationError,
    ConflictError,
    EngineError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidTransitionError, 422),
    (PreconditionError, 422),
)


def error_response(
    *,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return {
        "ok": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        },
    }


def success_response(
    data: Any,
    *,
    meta: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"ok": True, "data": data}
    if meta:
        body["meta"] = meta
    return body


def status_for_error(exc: EngineError) -> int:
    for error_cls, status in STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status
    return 500


def engine_error_response(exc: EngineError) -> JsonResponse:
    body = exc.to_dict()
    return JsonResponse(
        error_response(code=body["code"], message=body["message"], details=body["details"]),
        status=status_for_error(exc),
    )
