"""Raw form snapshots and the typed per-invocation execution context."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class FieldSnapshot:
    """Form values exactly as typed by the operator."""

    primary: str = ""
    secondary: str = ""
    option: str = ""
    extra: str = ""
    start: str = ""
    end: str = ""
    message_internal: str = ""
    message_external: str = ""

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]]) -> "FieldSnapshot":
        """Build a snapshot from a loose mapping; missing or ``None`` becomes ``""``."""
        data = dict(values or {})
        kwargs: Dict[str, str] = {}
        for spec in fields(cls):
            raw = data.get(spec.name)
            kwargs[spec.name] = "" if raw is None else str(raw)
        return cls(**kwargs)

    def value(self, slot: str) -> str:
        return getattr(self, slot)


@dataclass(frozen=True)
class ExecutionContext:
    """Validated inputs for one invocation of one action.

    Slots the action does not declare are always empty (``""`` or ``None``).
    """

    action_key: int
    action_label: str
    primary: str = ""
    secondary: str = ""
    option: Optional[str] = None
    extra: str = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    message_internal: str = ""
    message_external: str = ""

    def describe(self) -> str:
        """Short log-friendly summary of populated slots."""
        parts = []
        for name in ("primary", "secondary", "option", "extra"):
            value = getattr(self, name)
            if value:
                parts.append(f"{name}={value}")
        if self.start is not None:
            parts.append(f"start={self.start:%Y-%m-%d %H:%M}")
        if self.end is not None:
            parts.append(f"end={self.end:%Y-%m-%d %H:%M}")
        return ", ".join(parts) or "-"


__all__ = ["ExecutionContext", "FieldSnapshot"]
