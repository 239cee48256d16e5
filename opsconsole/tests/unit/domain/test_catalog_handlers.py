from __future__ import annotations

from datetime import datetime

import pytest

from opsconsole.adapters.api_errors import ApiClientError
from opsconsole.adapters.directory_mock import DirectoryMock
from opsconsole.domain.catalog import CatalogHandlers, build_default_registry
from opsconsole.domain.context import ExecutionContext
from opsconsole.domain.ports import UseCaseError


def _ctx(label: str = "test", **values) -> ExecutionContext:
    return ExecutionContext(action_key=0, action_label=label, **values)


class _RecordingDirectory:
    def __init__(self) -> None:
        self.calls = []

    def set_auto_reply(self, mailbox, config):
        self.calls.append(("set_auto_reply", mailbox, config))
        return {"Mailbox": mailbox}

    def message_trace(self, sender, start, end):
        self.calls.append(("message_trace", sender, start, end))
        return []

    def set_mailbox_quota(self, mailbox, quota):
        self.calls.append(("set_mailbox_quota", mailbox, quota))
        return {"Mailbox": mailbox, "Quota": quota}


def test_grant_and_list_mailbox_permissions_against_mock() -> None:
    directory = DirectoryMock()
    registry = build_default_registry(directory)
    grant = registry.get(1)
    ctx = _ctx(primary="bob@contoso.test", secondary="alice@contoso.test", option="SendAs")

    result = grant.handler_for(ctx)(ctx)
    listed = registry.get(0).handler(_ctx(primary="bob@contoso.test"))

    assert result["AccessRights"] == "SendAs"
    assert {"Mailbox": "bob@contoso.test", "Trustee": "alice@contoso.test", "AccessRights": "SendAs"} in listed


def test_unknown_mailbox_propagates_client_error() -> None:
    handlers = CatalogHandlers(DirectoryMock())

    with pytest.raises(ApiClientError) as excinfo:
        handlers.list_mailbox_permissions(_ctx(primary="nobody@contoso.test"))

    assert excinfo.value.status == 404


def test_remove_group_member_returns_confirmation_text() -> None:
    directory = DirectoryMock()
    handlers = CatalogHandlers(directory)

    message = handlers.remove_group_member(_ctx(primary="sales@contoso.test", secondary="bob@contoso.test"))

    assert message == "Removed bob@contoso.test from sales@contoso.test."
    assert "bob@contoso.test" not in directory.groups["sales@contoso.test"]


def test_quota_is_normalized_before_the_call() -> None:
    directory = _RecordingDirectory()
    handlers = CatalogHandlers(directory)

    handlers.set_mailbox_quota(_ctx(primary="a@x", extra=" 50 gb "))

    assert directory.calls == [("set_mailbox_quota", "a@x", "50GB")]


def test_malformed_quota_raises_use_case_error() -> None:
    handlers = CatalogHandlers(_RecordingDirectory())

    with pytest.raises(UseCaseError) as excinfo:
        handlers.set_mailbox_quota(_ctx(primary="a@x", extra="lots"))

    assert excinfo.value.code == "INVALID_QUOTA"


def test_scheduled_auto_reply_needs_window() -> None:
    handlers = CatalogHandlers(_RecordingDirectory())

    with pytest.raises(UseCaseError) as excinfo:
        handlers.set_auto_reply(_ctx(primary="a@x"), state="Scheduled")

    assert excinfo.value.code == "SCHEDULE_REQUIRED"


def test_auto_reply_config_per_state() -> None:
    directory = _RecordingDirectory()
    handlers = CatalogHandlers(directory)
    ctx = _ctx(
        primary="a@x",
        start=datetime(2026, 7, 1, 8, 0),
        end=datetime(2026, 7, 14, 18, 0),
        message_internal="Out until the 14th.",
        message_external="Away.",
    )

    handlers.set_auto_reply(ctx, state="Scheduled")
    handlers.set_auto_reply(ctx, state="Disabled")

    scheduled = directory.calls[0][2]
    disabled = directory.calls[1][2]
    assert scheduled == {
        "state": "Scheduled",
        "start": "2026-07-01T08:00:00",
        "end": "2026-07-14T18:00:00",
        "internal_message": "Out until the 14th.",
        "external_message": "Away.",
    }
    assert disabled == {"state": "Disabled"}


def test_message_trace_passes_wire_timestamps_and_optional_sender() -> None:
    directory = _RecordingDirectory()
    handlers = CatalogHandlers(directory)

    handlers.message_trace(_ctx(start=datetime(2026, 1, 2, 3, 4), end=datetime(2026, 1, 3, 3, 4)))

    assert directory.calls == [("message_trace", None, "2026-01-02T03:04:00", "2026-01-03T03:04:00")]


def test_message_trace_against_mock_filters_sender() -> None:
    handlers = CatalogHandlers(DirectoryMock())
    ctx = _ctx(
        primary="alice@contoso.test",
        start=datetime(2026, 1, 1, 0, 0),
        end=datetime(2026, 1, 2, 0, 0),
    )

    rows = handlers.message_trace(ctx)

    assert rows
    assert {row["Sender"] for row in rows} == {"alice@contoso.test"}


def test_session_details_reads_provider() -> None:
    handlers = CatalogHandlers(DirectoryMock(), session_info=lambda: {"Tenant": "contoso.test"})

    assert handlers.session_details(_ctx()) == {"Tenant": "contoso.test"}
    assert CatalogHandlers(DirectoryMock()).session_details(_ctx()) == {}


def test_convert_mailbox_option_handler_passes_target() -> None:
    directory = DirectoryMock()
    convert = build_default_registry(directory).get(12)
    ctx = _ctx(primary="bob@contoso.test", option="Shared")

    result = convert.handler_for(ctx)(ctx)

    assert result == {"Mailbox": "bob@contoso.test", "PreviousType": "Regular", "Type": "Shared"}
