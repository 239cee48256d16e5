"""Timestamp parsing for the start/end form fields."""

from __future__ import annotations

from datetime import datetime

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"
TIMESTAMP_HINT = "YYYY-MM-DD HH:MM"

_ACCEPTED_FORMATS = (
    TIMESTAMP_FORMAT,
    "%Y-%m-%d %H:%M:%S",
)


def parse_console_timestamp(value: str) -> datetime:
    """Parse operator text in the fixed console format.

    Raises:
        ValueError: When the text is empty or does not match the format.
    """
    text = " ".join(str(value or "").split())
    if not text:
        raise ValueError("empty timestamp")
    for fmt in _ACCEPTED_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"{text!r} does not match {TIMESTAMP_HINT}")


def format_console_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def to_wire(value: datetime) -> str:
    """Serialize for remote calls (ISO 8601, seconds precision)."""
    return value.replace(microsecond=0).isoformat()


__all__ = [
    "TIMESTAMP_FORMAT",
    "TIMESTAMP_HINT",
    "format_console_timestamp",
    "parse_console_timestamp",
    "to_wire",
]
