"""Use case that turns raw form text into a typed execution context.

The builder is pure: it reads the descriptor's ``FieldSpec`` and the field
snapshot, and either returns an ``ExecutionContext`` or raises
``ValidationFailure`` for the first unmet requirement in slot order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

from ..domain.actions import SLOTS, SLOT_LABELS, TIMESTAMP_SLOTS, ActionDescriptor, Requirement
from ..domain.context import ExecutionContext, FieldSnapshot
from ..domain.ports import ValidationFailure
from ..domain.time_utils import TIMESTAMP_HINT, parse_console_timestamp

RawFields = Union[FieldSnapshot, Mapping[str, Any]]


@dataclass
class BuildExecutionContext:
    """Validate a field snapshot against one action descriptor."""

    def __call__(self, descriptor: ActionDescriptor, raw: RawFields) -> ExecutionContext:
        """Build the context for ``descriptor``.

        Args:
            descriptor: Action selected by the operator.
            raw: Field snapshot or plain mapping of slot name to text.

        Returns:
            Context with declared slots populated and unused slots cleared.

        Raises:
            ValidationFailure: A required slot is empty, the option is not one
                of the legal values, or a timestamp does not parse.
        """
        snapshot = raw if isinstance(raw, FieldSnapshot) else FieldSnapshot.from_mapping(raw)
        spec = descriptor.fields
        values: Dict[str, Any] = {}

        for slot in SLOTS:
            requirement = spec.requirement(slot)
            if requirement is Requirement.UNUSED:
                continue
            raw_text = snapshot.value(slot)
            text = raw_text.strip()
            if not text:
                if requirement is Requirement.REQUIRED:
                    raise ValidationFailure(f"{SLOT_LABELS[slot]} required.", slot=slot)
                continue
            if slot.startswith("message_"):
                # Message bodies keep the operator's own line breaks and indentation.
                values[slot] = raw_text
            else:
                values[slot] = self._coerce(slot, text, spec.options)

        start: Optional[datetime] = values.get("start")
        end: Optional[datetime] = values.get("end")
        if start is not None and end is not None and end < start:
            raise ValidationFailure("End must not be before start.", slot="end")

        return ExecutionContext(
            action_key=descriptor.key,
            action_label=descriptor.label,
            **values,
        )

    @staticmethod
    def _coerce(slot: str, text: str, options) -> Any:
        if slot == "option":
            if text not in options:
                raise ValidationFailure(
                    f"Option must be one of: {', '.join(options)}.", slot=slot
                )
            return text
        if slot in TIMESTAMP_SLOTS:
            try:
                return parse_console_timestamp(text)
            except ValueError:
                raise ValidationFailure(
                    f"{SLOT_LABELS[slot]} must use the format {TIMESTAMP_HINT}.", slot=slot
                ) from None
        return text


__all__ = ["BuildExecutionContext", "RawFields"]
