"""Shared HTTP transport utilities for management gateway adapters.

This module provides a thin wrapper around ``requests.Session`` so the session
and directory adapters share timeout policy, retry behavior and header
construction.

Dependencies:
    - ``requests`` for network I/O.
    - ``opsconsole.adapters.api_errors.ApiTimeoutError`` for typed transport
      failures.

Call context:
    - Constructed by ``opsconsole.app.controller.AppController`` and handed to
      ``RestSession`` and ``DirectoryRestAdapter``, which share one instance
      so the bearer token obtained on connect is reused by every handler.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests
from requests import exceptions as req_exc

from .api_errors import ApiTimeoutError


@dataclass
class HttpConfig:
    """Timeout and retry configuration for adapter HTTP calls.

    Attributes:
        request_timeout_s: Default timeout in seconds for JSON API calls.
        retries: Number of retry attempts after the initial request.
    """
    request_timeout_s: int = 10
    retries: int = 2


class RetryingSession:
    """Shared requests wrapper with auth headers and retry loops.

    This class is transport-only. Callers provide endpoint URLs and decide how
    to map non-2xx responses into domain errors.
    """

    def __init__(self, api_key: Optional[str], cfg: HttpConfig) -> None:
        """Create a retry-enabled session.

        Args:
            api_key: API key value to place in ``X-API-Key`` headers, or ``None``.
            cfg: Shared timeout and retry settings.
        """
        self.session = requests.Session()
        self.api_key = api_key
        self.cfg = cfg
        self.bearer_token: Optional[str] = None

    def _headers(self, json_body: bool = False) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def get(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        """Send a GET request with retries on timeout/connectivity failures.

        Raises:
            ApiTimeoutError: If all attempts fail with timeout/connection errors.
        """
        return self._retry(
            f"GET {url}",
            lambda: self.session.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=timeout or self.cfg.request_timeout_s,
            ),
        )

    def post(
        self,
        url: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        """Send a JSON POST request with retries on transport failures."""
        data = None if json_body is None else json.dumps(json_body)
        return self._retry(
            f"POST {url}",
            lambda: self.session.post(
                url,
                data=data,
                headers=self._headers(json_body=json_body is not None),
                timeout=timeout or self.cfg.request_timeout_s,
            ),
        )

    def delete(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        """Send a DELETE request with retries on transport failures."""
        return self._retry(
            f"DELETE {url}",
            lambda: self.session.delete(
                url,
                params=params,
                headers=self._headers(),
                timeout=timeout or self.cfg.request_timeout_s,
            ),
        )

    def close(self) -> None:
        self.session.close()

    def _retry(self, context: str, send: Callable[[], requests.Response]) -> requests.Response:
        last_err: ApiTimeoutError | None = None
        attempts = self.cfg.retries + 1
        for _ in range(attempts):
            try:
                return send()
            except (req_exc.Timeout, req_exc.ConnectionError):
                last_err = ApiTimeoutError(f"Timeout: {context}", context=context)
        raise last_err  # type: ignore[misc]


__all__ = ["HttpConfig", "RetryingSession"]
