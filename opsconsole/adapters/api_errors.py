"""Typed gateway failures and the parser for the gateway's error bodies.

The management gateway reports failures in one of two body shapes:

* the directory envelope ``{"error": {"code", "message", "details": [...]}}``
  used by the mailbox and group endpoints, and
* a flat ``{"detail": ..., "hint": ...}`` object from the session endpoints.

Anything else (HTML from a proxy, empty bodies) is kept as a short text
snippet so the operator still sees something useful.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

_SNIPPET_LIMIT = 200
_MAX_DETAILS = 3


class ApiError(RuntimeError):
    """Base class for management gateway failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        detail: Optional[str] = None,
        hint: Optional[str] = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.detail = detail
        self.hint = hint
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx: the gateway rejected the request."""


class ApiServerError(ApiError):
    """HTTP 5xx: the gateway or the directory behind it failed."""


class ApiTimeoutError(ApiError):
    """Transport level timeout or connectivity failure."""


@dataclass(frozen=True)
class GatewayErrorBody:
    """Fields pulled out of a gateway error response."""

    code: Optional[str] = None
    detail: Optional[str] = None
    hint: Optional[str] = None

    @classmethod
    def from_response(cls, resp: Any) -> "GatewayErrorBody":
        try:
            payload = resp.json()
        except ValueError:
            return cls(detail=_clip(getattr(resp, "text", "")))
        if isinstance(payload, dict):
            envelope = payload.get("error")
            if isinstance(envelope, dict):
                return cls._from_envelope(envelope)
            return cls(
                code=_text(payload.get("code")),
                detail=_text(payload.get("detail") or payload.get("message") or envelope),
                hint=_text(payload.get("hint")),
            )
        return cls(detail=_clip(payload if isinstance(payload, str) else ""))

    @classmethod
    def _from_envelope(cls, envelope: dict) -> "GatewayErrorBody":
        details = envelope.get("details") or []
        notes = [
            _text(item.get("message")) if isinstance(item, dict) else _text(item)
            for item in details[:_MAX_DETAILS]
        ]
        hint = "; ".join(note for note in notes if note) or _text(envelope.get("target"))
        return cls(
            code=_text(envelope.get("code")),
            detail=_text(envelope.get("message")),
            hint=hint or None,
        )


def raise_for_status(resp: Any, ctx: str) -> None:
    """Raise the matching ``ApiError`` subclass for a non-2xx response."""
    status = int(getattr(resp, "status_code", 0) or 0)
    if 200 <= status < 300:
        return
    body = GatewayErrorBody.from_response(resp)
    message = f"{ctx}: {body.detail} (HTTP {status})" if body.detail else f"{ctx}: HTTP {status}"
    error_cls = ApiClientError if 400 <= status < 500 else ApiServerError
    raise error_cls(
        message,
        status=status,
        code=body.code,
        detail=body.detail,
        hint=body.hint,
        context=ctx,
    )


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return _clip(str(value))


def _clip(value: str) -> Optional[str]:
    cleaned = (value or "").strip()
    return cleaned[:_SNIPPET_LIMIT] or None


__all__ = [
    "ApiClientError",
    "ApiError",
    "ApiServerError",
    "ApiTimeoutError",
    "GatewayErrorBody",
    "raise_for_status",
]
