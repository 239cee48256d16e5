from __future__ import annotations

from collections import namedtuple
from dataclasses import dataclass
from datetime import datetime

from opsconsole.domain.normalizer import (
    NO_RESULTS_MESSAGE,
    column_union,
    failure_rows,
    info_row,
    is_failure,
    materialize,
    normalize,
    normalize_result,
)
from opsconsole.domain.ports import HandlerFailure
from opsconsole.domain.results import ExecutionMode, ExecutionResult


@dataclass
class _Member:
    Name: str
    Role: str


def test_none_becomes_single_info_row() -> None:
    assert normalize(None) == [{"Status": "Info", "Message": NO_RESULTS_MESSAGE}]


def test_empty_list_becomes_single_info_row() -> None:
    rows = normalize([])

    assert rows == [info_row()]
    assert len(rows) == 1


def test_scalar_becomes_value_row() -> None:
    stamp = datetime(2026, 3, 1, 9, 30)

    assert normalize("Removed x from y.") == [{"Value": "Removed x from y."}]
    assert normalize(42) == [{"Value": 42}]
    assert normalize(stamp) == [{"Value": stamp}]


def test_mapping_becomes_one_row() -> None:
    assert normalize({"Mailbox": "a@x", "Quota": "50GB"}) == [{"Mailbox": "a@x", "Quota": "50GB"}]


def test_dataclass_and_namedtuple_records() -> None:
    Pair = namedtuple("Pair", "left right")

    assert normalize(_Member("alice", "Owner")) == [{"Name": "alice", "Role": "Owner"}]
    assert normalize(Pair(1, 2)) == [{"left": 1, "right": 2}]


def test_heterogeneous_records_keep_order_and_count() -> None:
    raw = [
        {"Mailbox": "a", "Size": 1},
        {"Mailbox": "b"},
        {"Mailbox": "c", "Owner": "z"},
        {"Size": 4},
        {"Mailbox": "e", "Size": 5, "Extra": True},
    ]

    rows = normalize(raw)

    assert rows == raw
    assert column_union(rows) == ["Mailbox", "Size", "Owner", "Extra"]


def test_generator_payload_is_consumed_once() -> None:
    rows = normalize(({"n": i} for i in range(3)))

    assert rows == [{"n": 0}, {"n": 1}, {"n": 2}]


def test_mixed_list_of_scalars_and_records() -> None:
    assert normalize(["x", {"a": 1}]) == [{"Value": "x"}, {"a": 1}]


def test_normalize_is_idempotent() -> None:
    for raw in (None, [], "text", {"a": 1}, [{"a": 1}, {"b": 2}], [1, 2]):
        once = normalize(raw)
        assert normalize(once) == once


def test_normalize_result_uses_failure_row_for_errors() -> None:
    failure = HandlerFailure("NOT_FOUND", "Object not found.")
    result = ExecutionResult(
        action_key=0,
        action_label="Get mailbox permissions",
        mode=ExecutionMode.SYNC,
        error=failure,
    )

    rows = normalize_result(result)

    assert rows == [{"Status": "Error", "Code": "NOT_FOUND", "Message": "Object not found."}]
    assert rows == failure_rows(failure)
    assert is_failure(rows) is True
    assert is_failure(normalize([{"Status": "Error"}, {"Status": "OK"}])) is False


def test_materialize_reads_iterators_and_keeps_records() -> None:
    record = {"Mailbox": "a"}
    text = "plain"

    assert materialize(record) is record
    assert materialize(text) is text
    assert materialize(None) is None
    assert materialize(iter([record, (n for n in (1, 2))])) == [record, [1, 2]]
