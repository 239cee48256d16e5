from __future__ import annotations

import threading

import pytest

from opsconsole.adapters.directory_mock import DirectoryMock, SessionMock
from opsconsole.adapters.directory_rest import DirectoryRestAdapter
from opsconsole.adapters.session_rest import RestSession
from opsconsole.app.controller import AppController
from opsconsole.domain.context import ExecutionContext
from opsconsole.domain.ports import PreconditionFailure
from opsconsole.usecases.dispatch_action import DispatchSinks
from opsconsole.viewmodels.settings_vm import SettingsVM


class _Sink:
    def __init__(self) -> None:
        self.rows = []

    def present(self, rows) -> None:
        self.rows.append(rows)


def test_controller_ensure_ready_wires_rest_adapters() -> None:
    settings = SettingsVM()
    settings.apply_dict({"api_base_url": "http://gateway.local", "tenant": "contoso.test"})

    controller = AppController(settings, api_key="token")
    try:
        assert controller.ensure_ready() is True
        assert isinstance(controller.session_adapter, RestSession)
        assert isinstance(controller.directory_adapter, DirectoryRestAdapter)
        assert controller.is_connected() is False
        assert controller.registry.count() == 14
    finally:
        controller.shutdown()


def test_controller_without_url_is_not_ready() -> None:
    controller = AppController(SettingsVM())
    try:
        assert controller.ensure_ready() is False
        assert controller.is_connected() is False
    finally:
        controller.shutdown()


def test_offline_controller_runs_heavy_action_after_connect() -> None:
    sink = _Sink()
    controller = AppController(SettingsVM(), offline=True, sinks=DispatchSinks(present=sink.present))
    try:
        blocked = controller.dispatcher.dispatch(5, {"primary": "sales@contoso.test"})
        assert blocked.error.code == "NOT_CONNECTED"

        controller.connect()
        assert isinstance(controller.session_adapter, SessionMock)
        assert isinstance(controller.directory_adapter, DirectoryMock)

        outcome = controller.dispatcher.dispatch(5, {"primary": "sales@contoso.test"})
        assert outcome.error is None
        members = [row["Member"] for row in sink.rows[-1]]
        assert members == ["alice@contoso.test", "bob@contoso.test"]
    finally:
        controller.shutdown()


def test_session_details_runs_without_connection() -> None:
    sink = _Sink()
    controller = AppController(SettingsVM(), sinks=DispatchSinks(present=sink.present))
    try:
        outcome = controller.dispatcher.dispatch(13, {})
    finally:
        controller.shutdown()

    assert outcome.error is None
    row = sink.rows[-1][0]
    assert row["Connected"] is False
    assert row["Mode"] == "online"
    assert row["Async for heavy actions"] is False


def test_connect_without_gateway_url_raises_precondition() -> None:
    controller = AppController(SettingsVM())
    try:
        with pytest.raises(PreconditionFailure) as excinfo:
            controller.connect()
    finally:
        controller.shutdown()

    assert excinfo.value.code == "NOT_CONFIGURED"


def test_reset_rebuilds_engine_for_new_pool_size() -> None:
    settings = SettingsVM()
    controller = AppController(settings, offline=True)
    try:
        controller.connect()
        settings.worker_pool_size = 4

        controller.reset()

        assert controller.engine.pool_size == 4
        assert controller.dispatcher.engine is controller.engine
        assert controller.session_adapter is None
        assert controller.is_connected() is False
    finally:
        controller.shutdown()


def test_pool_resize_waits_for_running_jobs_then_applies() -> None:
    settings = SettingsVM()
    controller = AppController(settings, offline=True)
    release = threading.Event()
    delivered = []
    try:
        original = controller.engine
        original.submit(lambda ctx: release.wait(5), ExecutionContext(action_key=5, action_label="Get group members"), delivered.append)
        settings.worker_pool_size = 3

        assert controller.apply_pool_size() is False
        assert controller.engine is original

        release.set()
        original.join(timeout=5)
        assert original.drain() == 1

        assert controller.apply_pool_size() is True
        assert controller.engine.pool_size == 3
        assert controller.dispatcher.engine is controller.engine
        assert len(delivered) == 1
    finally:
        release.set()
        controller.shutdown()
