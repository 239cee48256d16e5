"""View model for the action form, busy indicator and result grid.

The dispatcher writes into this view model through ``present`` and
``set_busy``; the main window reads ``table()`` and ``field_states()`` and
never looks at handler output directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..domain.actions import SLOTS, ActionDescriptor, ActionRegistry
from ..domain.context import FieldSnapshot
from ..domain.normalizer import MESSAGE_COLUMN, STATUS_COLUMN, Row, column_union, is_failure
from ..domain.time_utils import TIMESTAMP_HINT


@dataclass(frozen=True)
class FieldState:
    """Display state of one form slot for the selected action."""

    slot: str
    enabled: bool
    required: bool
    caption: str


def format_cell(value: Any) -> str:
    """Render a row value for a grid cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple, set)):
        return ", ".join(format_cell(item) for item in value)
    if isinstance(value, dict):
        return ", ".join(f"{key}={format_cell(item)}" for key, item in value.items())
    return str(value)


class ConsoleVM:
    """Form state, busy flag and current result rows. No I/O here."""

    def __init__(
        self,
        registry: ActionRegistry,
        *,
        on_rows_changed: Optional[Callable[[], None]] = None,
        on_busy_changed: Optional[Callable[[bool], None]] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.registry = registry
        self.on_rows_changed = on_rows_changed
        self.on_busy_changed = on_busy_changed
        self.on_status = on_status

        self.selected_index: int = 0
        self.fields: Dict[str, str] = {slot: "" for slot in SLOTS}
        self.rows: List[Row] = []
        self.busy: bool = False
        self.status_message: str = ""

    # ------------------------------------------------------------------
    # Form
    # ------------------------------------------------------------------
    def select_action(self, index: int) -> Optional[ActionDescriptor]:
        descriptor = self.registry.get(index)
        if descriptor is None:
            return None
        self.selected_index = index
        options = descriptor.fields.options
        if options and self.fields.get("option") not in options:
            self.fields["option"] = options[0]
        return descriptor

    def selected_descriptor(self) -> Optional[ActionDescriptor]:
        return self.registry.get(self.selected_index)

    def set_field(self, slot: str, value: Any) -> None:
        if slot not in self.fields:
            raise KeyError(f"Unknown field: {slot}")
        self.fields[slot] = "" if value is None else str(value)

    def snapshot(self) -> FieldSnapshot:
        return FieldSnapshot.from_mapping(self.fields)

    def field_states(self) -> List[FieldState]:
        descriptor = self.selected_descriptor()
        states: List[FieldState] = []
        for slot in SLOTS:
            if descriptor is None:
                states.append(FieldState(slot, False, False, slot))
                continue
            caption = descriptor.caption_for(slot)
            if slot in ("start", "end"):
                caption = f"{caption} ({TIMESTAMP_HINT})"
            states.append(
                FieldState(
                    slot=slot,
                    enabled=descriptor.fields.uses(slot),
                    required=descriptor.fields.is_required(slot),
                    caption=caption,
                )
            )
        return states

    def option_values(self) -> Tuple[str, ...]:
        descriptor = self.selected_descriptor()
        return descriptor.fields.options if descriptor else ()

    # ------------------------------------------------------------------
    # Dispatcher sinks
    # ------------------------------------------------------------------
    def present(self, rows: List[Row]) -> None:
        """Replace the grid with a new result set."""
        self.rows = [dict(row) for row in rows]
        if is_failure(self.rows):
            self._set_status(str(self.rows[0].get(MESSAGE_COLUMN) or "Action failed."))
        elif len(self.rows) == 1 and self.rows[0].get(STATUS_COLUMN) == "Info":
            self._set_status(str(self.rows[0].get(MESSAGE_COLUMN) or ""))
        else:
            count = len(self.rows)
            self._set_status(f"{count} row{'s' if count != 1 else ''}.")
        if self.on_rows_changed:
            self.on_rows_changed()

    def set_busy(self, value: bool) -> None:
        self.busy = bool(value)
        if self.busy:
            self._set_status("Running...")
        if self.on_busy_changed:
            self.on_busy_changed(self.busy)

    # ------------------------------------------------------------------
    # Grid
    # ------------------------------------------------------------------
    def columns(self) -> List[str]:
        return column_union(self.rows)

    def table(self) -> Tuple[List[str], List[Tuple[str, ...]]]:
        """Columns (union across rows) and cell text, blank where a row lacks a column."""
        columns = self.columns()
        values = [
            tuple(format_cell(row.get(column)) for column in columns) for row in self.rows
        ]
        return columns, values

    def _set_status(self, message: str) -> None:
        self.status_message = message
        if self.on_status:
            self.on_status(message)


__all__ = ["ConsoleVM", "FieldState", "format_cell"]
