"""Flatten heterogeneous handler output into uniform display rows.

Handlers return whatever fits the operation: nothing for a fire-and-forget
trigger, a status record for a mutation, a list for a report. The grid only
ever receives a list of dictionaries produced here, so no view or presenter
needs to know which handler ran.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .ports import UseCaseError
from .results import ExecutionResult

Row = Dict[str, Any]

STATUS_COLUMN = "Status"
MESSAGE_COLUMN = "Message"
CODE_COLUMN = "Code"
VALUE_COLUMN = "Value"
NO_RESULTS_MESSAGE = "No results."

_SCALARS = (str, bytes, bytearray, int, float, complex, bool, date, datetime)


def info_row(message: str = NO_RESULTS_MESSAGE) -> Row:
    return {STATUS_COLUMN: "Info", MESSAGE_COLUMN: message}


def failure_row(error: UseCaseError) -> Row:
    return {
        STATUS_COLUMN: "Error",
        CODE_COLUMN: error.code,
        MESSAGE_COLUMN: error.message,
    }


def failure_rows(error: UseCaseError) -> List[Row]:
    return [failure_row(error)]


def normalize(raw: Any) -> List[Row]:
    """Convert raw handler output into an ordered list of rows.

    Rules, first match wins:
      1. ``None`` -> one informational row.
      2. Scalars (text, numbers, dates) -> one ``{"Value": raw}`` row.
      3. Records (mappings, dataclasses, named tuples) -> one row, unchanged.
      4. Other iterables -> each element normalized the same way, concatenated
         in the original order; an empty iterable -> one informational row.
    Anything else is wrapped like a scalar.
    """
    rows = _normalize_into(raw, [])
    if not rows:
        return [info_row()]
    return rows


def _normalize_into(raw: Any, out: List[Row]) -> List[Row]:
    if raw is None:
        out.append(info_row())
        return out
    if isinstance(raw, _SCALARS):
        out.append({VALUE_COLUMN: raw})
        return out
    record = _as_record(raw)
    if record is not None:
        out.append(record)
        return out
    if isinstance(raw, Iterable):
        start = len(out)
        for item in raw:
            _normalize_into(item, out)
        if len(out) == start:
            out.append(info_row())
        return out
    out.append({VALUE_COLUMN: raw})
    return out


def materialize(raw: Any) -> Any:
    """Read lazy iterables (generators, iterators) into lists.

    Scalars and records pass through untouched. Nested iterables are read
    depth-first, so any error raised while producing items surfaces here
    rather than later when rows are built.
    """
    if raw is None or isinstance(raw, _SCALARS) or _is_record(raw):
        return raw
    if isinstance(raw, Iterable):
        return [materialize(item) for item in raw]
    return raw


def _is_record(raw: Any) -> bool:
    if isinstance(raw, Mapping):
        return True
    if dataclasses.is_dataclass(raw) and not isinstance(raw, type):
        return True
    return isinstance(raw, tuple) and hasattr(raw, "_asdict")


def _as_record(raw: Any) -> Optional[Row]:
    if isinstance(raw, Mapping):
        return dict(raw)
    if dataclasses.is_dataclass(raw) and not isinstance(raw, type):
        return dataclasses.asdict(raw)
    if isinstance(raw, tuple) and hasattr(raw, "_asdict"):
        return dict(raw._asdict())
    return None


def normalize_result(result: ExecutionResult) -> List[Row]:
    """Rows for a finished execution: one failure row or the normalized payload."""
    if result.error is not None:
        return failure_rows(result.error)
    return normalize(result.payload)


def column_union(rows: Iterable[Mapping[str, Any]]) -> List[str]:
    """Union of row keys in first-seen order."""
    columns: Dict[str, None] = {}
    for row in rows:
        for key in row:
            columns.setdefault(str(key), None)
    return list(columns)


def is_failure(rows: List[Row]) -> bool:
    return bool(rows) and all(row.get(STATUS_COLUMN) == "Error" for row in rows)


__all__ = [
    "NO_RESULTS_MESSAGE",
    "Row",
    "column_union",
    "failure_row",
    "failure_rows",
    "info_row",
    "is_failure",
    "materialize",
    "normalize",
    "normalize_result",
]
