"""Adapter, engine and dispatcher wiring for the desktop app runtime.

This module owns lazy construction of the gateway adapters that depend on
values in :class:`opsconsole.viewmodels.settings_vm.SettingsVM`, plus the
action registry, execution engine and dispatcher that live for the whole
process. The registry is built once against a directory handle that forwards
to whichever adapter is current, so settings changes never rebuild the catalog.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..adapters.directory_mock import DirectoryMock, SessionMock
from ..adapters.directory_rest import DirectoryRestAdapter
from ..adapters.http_client import HttpConfig, RetryingSession
from ..adapters.session_rest import RestSession
from ..domain.actions import ActionRegistry
from ..domain.catalog import build_default_registry
from ..domain.ports import PreconditionFailure
from ..usecases.dispatch_action import ActionDispatcher, DispatchSinks
from ..usecases.execute_action import ExecutionEngine
from ..viewmodels.settings_vm import SettingsVM


class _DirectoryHandle:
    """Forward directory calls to the controller's current adapter."""

    def __init__(self, controller: "AppController") -> None:
        self._controller = controller

    def __getattr__(self, name: str) -> Any:
        directory = self._controller.directory_adapter
        if directory is None:
            raise PreconditionFailure(
                "Management gateway is not configured. Set its URL in Settings.",
                code="NOT_CONFIGURED",
            )
        return getattr(directory, name)


class AppController:
    """Create and cache runtime adapters from settings state.

    The controller doubles as the dispatcher's ``SessionPort``: it reports
    disconnected whenever no session adapter exists yet.

    Call chain:
        ``opsconsole.app.main.App`` creates one instance, calls
        ``ensure_ready`` before connecting and routes Run clicks to
        ``dispatcher.dispatch``.
    """

    def __init__(
        self,
        settings_vm: SettingsVM,
        *,
        sinks: Optional[DispatchSinks] = None,
        offline: bool = False,
        api_key: Optional[str] = None,
    ) -> None:
        """Initialize controller with settings-backed lazy dependencies.

        Args:
            settings_vm: Settings state with gateway URL, tenant and pool size.
            sinks: Display callbacks handed to the dispatcher.
            offline: Use the in-memory mock directory and session.
            api_key: Gateway API key; read from the environment by the app.
        """
        self._log = logging.getLogger(__name__)
        self.settings_vm = settings_vm
        self.offline = offline
        self.api_key = api_key
        self._http: Optional[RetryingSession] = None
        self._session: Optional[Any] = None
        self._directory: Optional[Any] = None

        self.registry: ActionRegistry = build_default_registry(
            _DirectoryHandle(self), session_info=self.session_info
        )
        self.engine = ExecutionEngine(pool_size=settings_vm.worker_pool_size)
        self.dispatcher = ActionDispatcher(
            registry=self.registry,
            engine=self.engine,
            session=self,
            settings=lambda: self.settings_vm.config,
            sinks=sinks,
        )

    @property
    def directory_adapter(self) -> Optional[Any]:
        """Return the cached directory adapter used by catalog handlers."""
        return self._directory

    @property
    def session_adapter(self) -> Optional[Any]:
        return self._session

    def ensure_ready(self) -> bool:
        """Ensure session and directory adapters exist.

        Returns:
            ``True`` when adapters are available, ``False`` when the gateway
            URL is missing from settings (online mode only).
        """
        if self._session is not None and self._directory is not None:
            return True

        if self.offline:
            self._session = SessionMock(
                tenant=self.settings_vm.config.tenant or "contoso.test",
                admin_upn=self.settings_vm.config.admin_upn or "admin@contoso.test",
            )
            self._directory = DirectoryMock(latency_s=0.3)
            return True

        base_url = self.settings_vm.api_base_url
        if not base_url:
            return False

        config = self.settings_vm.config
        self._http = RetryingSession(
            self.api_key,
            HttpConfig(request_timeout_s=config.request_timeout_s, retries=2),
        )
        self._session = RestSession(
            self._http, base_url, tenant=config.tenant, admin_upn=config.admin_upn
        )
        self._directory = DirectoryRestAdapter(self._http, base_url)
        return True

    def reset(self) -> None:
        """Disconnect and drop cached adapters.

        Side Effects:
            The next ``ensure_ready`` call rebuilds adapters from current
            settings. A changed pool size replaces the engine when no async job
            is outstanding.
        """
        self.disconnect()
        if self._http is not None:
            self._http.close()
        self._http = None
        self._session = None
        self._directory = None
        self.apply_pool_size()

    def apply_pool_size(self) -> bool:
        """Replace the engine when the configured pool size changed.

        The swap waits until no async job is outstanding, so the old engine
        still delivers every result it owes. Returns ``True`` once the engine
        matches the settings.
        """
        wanted = self.settings_vm.worker_pool_size
        if wanted == self.engine.pool_size:
            return True
        if self.engine.pending_count():
            self._log.info(
                "Worker pool resize to %s deferred: %s job(s) still running",
                wanted,
                self.engine.pending_count(),
            )
            return False
        self.engine.shutdown(wait=False)
        self.engine = ExecutionEngine(pool_size=wanted)
        self.dispatcher.engine = self.engine
        self._log.info("Worker pool resized to %s", self.engine.pool_size)
        return True

    # ---- SessionPort ----
    def connect(self) -> None:
        """Open the remote session.

        Raises:
            PreconditionFailure: When the gateway URL is not configured.
            ApiError: When the gateway rejects or cannot be reached.
        """
        if not self.ensure_ready():
            raise PreconditionFailure(
                "Management gateway is not configured. Set its URL in Settings.",
                code="NOT_CONFIGURED",
            )
        self._session.connect()

    def disconnect(self) -> None:
        if self._session is not None:
            self._session.disconnect()

    def is_connected(self) -> bool:
        return self._session is not None and bool(self._session.is_connected())

    def session_info(self) -> Dict[str, Any]:
        config = self.settings_vm.config
        if self._session is not None and hasattr(self._session, "describe"):
            info = dict(self._session.describe())
        else:
            info = {"Gateway": config.api_base_url or "(not configured)", "Connected": False}
        info["Mode"] = "offline" if self.offline else "online"
        info["Async for heavy actions"] = config.async_enabled_for_heavy
        info["Worker pool"] = self.engine.pool_size
        return info

    def shutdown(self) -> None:
        """Release the session and worker threads at process exit."""
        try:
            self.disconnect()
        finally:
            self.engine.shutdown(wait=False)
            if self._http is not None:
                self._http.close()


__all__ = ["AppController"]
