"""Domain layer: action catalog model, contexts, results and the row normalizer."""

from .actions import ActionDescriptor, ActionRegistry, FieldSpec, Requirement
from .context import ExecutionContext, FieldSnapshot
from .normalizer import normalize, normalize_result
from .results import ExecutionMode, ExecutionResult

__all__ = [
    "ActionDescriptor",
    "ActionRegistry",
    "ExecutionContext",
    "ExecutionMode",
    "ExecutionResult",
    "FieldSnapshot",
    "FieldSpec",
    "Requirement",
    "normalize",
    "normalize_result",
]
