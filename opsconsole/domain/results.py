"""Raw execution results shared by the engine, dispatcher and normalizer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .ports import UseCaseError


class ExecutionMode(str, Enum):
    SYNC = "sync"
    ASYNC = "async"


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one handler invocation, identical in shape for both modes."""

    action_key: int
    action_label: str
    mode: ExecutionMode
    payload: Any = None
    """Raw handler output before normalization."""
    error: Optional[UseCaseError] = None
    """Failure marker; set instead of raising past the engine boundary."""
    duration_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


__all__ = ["ExecutionMode", "ExecutionResult"]
