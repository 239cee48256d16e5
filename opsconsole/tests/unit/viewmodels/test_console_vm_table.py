from __future__ import annotations

from datetime import datetime

import pytest

from opsconsole.domain.catalog import build_default_registry
from opsconsole.viewmodels.console_vm import ConsoleVM, format_cell


def _vm(**callbacks) -> ConsoleVM:
    return ConsoleVM(build_default_registry(directory=object()), **callbacks)


def test_select_action_defaults_option_to_first_value() -> None:
    vm = _vm()

    descriptor = vm.select_action(1)

    assert descriptor.label == "Grant mailbox permission"
    assert vm.fields["option"] == "FullAccess"
    assert vm.option_values() == ("FullAccess", "SendAs", "SendOnBehalf")
    assert vm.select_action(99) is None
    assert vm.selected_index == 1


def test_field_states_follow_field_spec() -> None:
    vm = _vm()
    vm.select_action(11)

    states = {state.slot: state for state in vm.field_states()}

    assert states["primary"].enabled is True
    assert states["primary"].required is False
    assert states["primary"].caption == "Sender (optional)"
    assert states["start"].required is True
    assert states["start"].caption == "Start time (YYYY-MM-DD HH:MM)"
    assert states["secondary"].enabled is False


def test_set_field_and_snapshot() -> None:
    vm = _vm()
    vm.set_field("primary", "sales@contoso.test")
    vm.set_field("extra", None)

    snapshot = vm.snapshot()

    assert snapshot.primary == "sales@contoso.test"
    assert snapshot.extra == ""
    with pytest.raises(KeyError):
        vm.set_field("nope", "x")


def test_present_builds_column_union_and_blank_cells() -> None:
    changes = []
    statuses = []
    vm = _vm(on_rows_changed=lambda: changes.append(True), on_status=statuses.append)

    vm.present([{"Mailbox": "a", "Size": 1}, {"Mailbox": "b", "Owner": "z"}])
    columns, values = vm.table()

    assert columns == ["Mailbox", "Size", "Owner"]
    assert values == [("a", "1", ""), ("b", "", "z")]
    assert changes == [True]
    assert statuses[-1] == "2 rows."


def test_present_failure_and_info_status() -> None:
    vm = _vm()

    vm.present([{"Status": "Error", "Code": "NOT_CONNECTED", "Message": "Connect first."}])
    assert vm.status_message == "Connect first."

    vm.present([{"Status": "Info", "Message": "No results."}])
    assert vm.status_message == "No results."

    vm.present([{"Value": "done"}])
    assert vm.status_message == "1 row."


def test_set_busy_notifies() -> None:
    busy = []
    vm = _vm(on_busy_changed=busy.append)

    vm.set_busy(True)
    assert vm.status_message == "Running..."
    vm.set_busy(False)

    assert busy == [True, False]
    assert vm.busy is False


def test_format_cell_variants() -> None:
    assert format_cell(None) == ""
    assert format_cell(True) == "Yes"
    assert format_cell(datetime(2026, 1, 2, 3, 4)) == "2026-01-02 03:04"
    assert format_cell(["a", "b"]) == "a, b"
    assert format_cell({"k": 1}) == "k=1"
