"""Translate handler faults into user-facing HandlerFailure instances."""

from __future__ import annotations

from typing import Optional

from ..adapters.api_errors import (
    ApiClientError,
    ApiError,
    ApiServerError,
    ApiTimeoutError,
)
from ..domain.ports import HandlerFailure, UseCaseError

_CLIENT_STATUS_CODES = {
    401: ("AUTH_FAILED", "Authentication failed. Reconnect and try again."),
    403: ("AUTH_FAILED", "Access denied for the signed-in administrator."),
    404: ("NOT_FOUND", "Object not found"),
    409: ("CONFLICT", "Conflicting change"),
    422: ("INVALID_PARAMS", "Invalid parameters"),
}


def map_handler_error(
    exc: BaseException,
    *,
    default_code: str = "HANDLER_FAILED",
    default_message: Optional[str] = None,
) -> HandlerFailure:
    """Map any exception raised inside a handler to a stable HandlerFailure.

    Args:
        exc: Exception caught at the engine boundary.
        default_code: Code used when the exception is not a known adapter error.
        default_message: Message used when ``exc`` has no text of its own.

    Returns:
        HandlerFailure carrying a code, operator-facing message and the cause.
    """
    if isinstance(exc, HandlerFailure):
        return exc
    if isinstance(exc, UseCaseError):
        return HandlerFailure(exc.code, exc.message, cause=exc)
    if isinstance(exc, ApiTimeoutError):
        return HandlerFailure(
            "REQUEST_TIMEOUT", "Request timed out. Check connection.", cause=exc
        )
    if isinstance(exc, ApiClientError):
        status = exc.status or 0
        hint = exc.hint or exc.detail
        if status in (401, 403):
            code, text = _CLIENT_STATUS_CODES[status]
            return HandlerFailure(code, text, cause=exc)
        if status in _CLIENT_STATUS_CODES:
            code, base = _CLIENT_STATUS_CODES[status]
            return HandlerFailure(code, _compose_error_message(base, hint), cause=exc)
        label = f"Request failed (HTTP {status})" if status else "Request failed"
        return HandlerFailure("REQUEST_FAILED", _compose_error_message(label, hint), cause=exc)
    if isinstance(exc, ApiServerError):
        return HandlerFailure("SERVER_ERROR", "Remote service error, try again.", cause=exc)
    if isinstance(exc, ApiError):
        return HandlerFailure("API_ERROR", str(exc), cause=exc)

    message = str(exc) or default_message or f"Unexpected {type(exc).__name__}."
    return HandlerFailure(default_code, message, cause=exc)


def _compose_error_message(base: str, hint: Optional[str]) -> str:
    hint_text = (hint or "").strip()
    if hint_text:
        return f"{base}: {hint_text}"
    if base.endswith("."):
        return base
    return f"{base}."


__all__ = ["map_handler_error"]
