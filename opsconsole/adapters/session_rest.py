"""REST-backed remote management session.

``connect`` opens a session on the management gateway and stores the bearer
token on the shared ``RetryingSession`` so directory calls are authorized.
The connection flag is only changed by ``connect``/``disconnect``; the console
does not poll the gateway for liveness.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from .api_errors import ApiError, raise_for_status
from .http_client import RetryingSession


class RestSession:
    """``SessionPort`` implementation on top of the management gateway."""

    def __init__(
        self,
        http: RetryingSession,
        base_url: str,
        *,
        tenant: str = "",
        admin_upn: str = "",
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.tenant = tenant
        self.admin_upn = admin_upn
        self._connected = False
        self._session_info: Dict[str, Any] = {}

    def connect(self) -> None:
        """Open a gateway session.

        Raises:
            ApiError: When the gateway rejects the session or is unreachable.
        """
        url = f"{self.base_url}/sessions"
        resp = self.http.post(url, json_body={"tenant": self.tenant, "admin": self.admin_upn})
        raise_for_status(resp, "Connect")
        payload = resp.json() or {}
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise ApiError("Connect: gateway returned no session token", context=f"POST {url}")
        self.http.bearer_token = str(token)
        self._session_info = {
            key: value for key, value in payload.items() if key != "token"
        }
        self._connected = True
        self._log.info("Connected to %s as %s", self.base_url, self.admin_upn or "(default)")

    def disconnect(self) -> None:
        """Close the gateway session; local state is cleared even on failure."""
        if not self._connected:
            return
        try:
            resp = self.http.delete(f"{self.base_url}/sessions/current")
            raise_for_status(resp, "Disconnect")
        except ApiError as exc:
            self._log.warning("Disconnect failed: %s", exc)
        finally:
            self.http.bearer_token = None
            self._connected = False
            self._session_info = {}

    def is_connected(self) -> bool:
        return self._connected

    def describe(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "Gateway": self.base_url,
            "Tenant": self.tenant,
            "Administrator": self.admin_upn,
            "Connected": self._connected,
        }
        for key, value in self._session_info.items():
            info.setdefault(str(key), value)
        return info


__all__ = ["RestSession"]
