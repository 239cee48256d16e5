"""Coordinator for the operator's "Run" command, free of UI concerns.

One call to :meth:`ActionDispatcher.dispatch` walks a single invocation
through ``IDLE -> VALIDATING -> (BLOCKED | PRECONDITION_FAILED | EXECUTING)
-> PRESENTING -> IDLE``. Every path ends with exactly one ``present`` call;
failures are presented as one failure row rather than raised.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, List, Optional, Protocol

from ..domain.actions import ActionDescriptor, ActionRegistry
from ..domain.normalizer import Row, failure_rows, normalize_result
from ..domain.ports import (
    EngineFailure,
    PreconditionFailure,
    SessionPort,
    UseCaseError,
    ValidationFailure,
)
from ..domain.results import ExecutionMode, ExecutionResult
from .build_context import BuildExecutionContext, RawFields
from .execute_action import ExecutionEngine

HISTORY_LIMIT = 50


class DispatchState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    BLOCKED = "blocked"
    PRECONDITION_FAILED = "precondition_failed"
    EXECUTING = "executing"
    PRESENTING = "presenting"


class DispatchSettings(Protocol):
    """Settings fields the dispatcher reads once per invocation."""

    async_enabled_for_heavy: bool


def _noop(*_: object, **__: object) -> None:
    """Default no-op sink."""


@dataclass
class DispatchSinks:
    """Callbacks owned by the display collaborator."""

    present: Callable[[List[Row]], None] = _noop
    set_busy: Callable[[bool], None] = _noop

    def __post_init__(self) -> None:
        self.present = self.present or _noop
        self.set_busy = self.set_busy or _noop


@dataclass
class DispatchOutcome:
    """Record of one invocation, kept in the dispatcher history."""

    index: Any
    label: str
    state: DispatchState
    mode: Optional[ExecutionMode] = None
    result: Optional[ExecutionResult] = None
    error: Optional[UseCaseError] = None
    rows: List[Row] = field(default_factory=list)
    delivered: bool = False

    @property
    def pending(self) -> bool:
        """True while an async job has not been delivered yet."""
        return self.state is DispatchState.EXECUTING and not self.delivered


class ActionDispatcher:
    """Validate, gate, execute and present one catalog action per call."""

    def __init__(
        self,
        *,
        registry: ActionRegistry,
        engine: ExecutionEngine,
        session: SessionPort,
        settings: Callable[[], DispatchSettings],
        sinks: Optional[DispatchSinks] = None,
        build_context: Optional[BuildExecutionContext] = None,
    ) -> None:
        """Store collaborators.

        Args:
            registry: Read-only action catalog.
            engine: Execution engine shared by all invocations.
            session: Remote session; ``is_connected`` gates heavy actions.
            settings: Provider returning the current settings object.
            sinks: ``present`` and ``set_busy`` callbacks.
            build_context: Context builder, defaults to ``BuildExecutionContext``.
        """
        self._log = logging.getLogger(__name__)
        self.registry = registry
        self.engine = engine
        self.session = session
        self.settings = settings
        self.sinks = sinks or DispatchSinks()
        self.build_context = build_context or BuildExecutionContext()
        self.state = DispatchState.IDLE
        self.history: Deque[DispatchOutcome] = deque(maxlen=HISTORY_LIMIT)
        self._busy_jobs = 0

    @property
    def busy(self) -> bool:
        return self._busy_jobs > 0

    def dispatch(self, index: Any, raw_fields: RawFields) -> DispatchOutcome:
        """Run the action at ``index`` with the operator's raw field values.

        Returns the outcome; for async runs the outcome stays ``EXECUTING``
        until the engine delivers the result and is then updated in place.
        """
        self.state = DispatchState.VALIDATING
        descriptor = self.registry.get(index)
        if descriptor is None:
            error = ValidationFailure(f"Unknown action: {index!r}.")
            return self._finish(DispatchOutcome(index, "", DispatchState.BLOCKED, error=error))

        try:
            context = self.build_context(descriptor, raw_fields)
        except ValidationFailure as exc:
            self._log.info("%s rejected: %s", descriptor.label, exc.message)
            return self._finish(
                DispatchOutcome(index, descriptor.label, DispatchState.BLOCKED, error=exc)
            )
        except Exception as exc:
            self._log.exception("Reading fields for %s failed", descriptor.label)
            error = ValidationFailure(f"Could not read the form fields: {exc}")
            return self._finish(
                DispatchOutcome(index, descriptor.label, DispatchState.BLOCKED, error=error)
            )

        if descriptor.heavy and not self._connected():
            error = PreconditionFailure(
                f"'{descriptor.label}' needs a live connection. Connect first."
            )
            self._log.info("%s blocked: not connected", descriptor.label)
            return self._finish(
                DispatchOutcome(index, descriptor.label, DispatchState.PRECONDITION_FAILED, error=error)
            )

        mode = self._mode_for(descriptor)
        outcome = DispatchOutcome(index, descriptor.label, DispatchState.EXECUTING, mode=mode)
        self.state = DispatchState.EXECUTING
        self._enter_busy()

        if mode is ExecutionMode.SYNC:
            try:
                result = self.engine.run_sync(descriptor.handler_for(context), context)
            except Exception as exc:
                result = None
                outcome.error = EngineFailure(f"Execution failed: {exc}", cause=exc)
                self._log.exception("Sync execution of %s failed outside the handler", descriptor.label)
            finally:
                self._leave_busy()
            outcome.result = result
            return self._finish(outcome)

        try:
            handler = descriptor.handler_for(context)
            self.engine.submit(
                handler,
                context,
                lambda result, _outcome=outcome: self._on_async_complete(_outcome, result),
            )
        except Exception as exc:
            self._leave_busy()
            outcome.error = EngineFailure(f"Could not start '{descriptor.label}': {exc}", cause=exc)
            self._log.exception("Async submission of %s failed", descriptor.label)
            return self._finish(outcome)

        self.history.append(outcome)
        self.state = DispatchState.IDLE
        return outcome

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _on_async_complete(self, outcome: DispatchOutcome, result: ExecutionResult) -> None:
        """Completion sink; runs on the consumer thread via ``engine.drain``."""
        outcome.result = result
        self._leave_busy()
        self._present(outcome)
        self.state = DispatchState.IDLE

    def _finish(self, outcome: DispatchOutcome) -> DispatchOutcome:
        self._present(outcome)
        self.history.append(outcome)
        self.state = DispatchState.IDLE
        return outcome

    def _present(self, outcome: DispatchOutcome) -> None:
        self.state = DispatchState.PRESENTING
        if outcome.error is None and outcome.result is not None:
            outcome.error = outcome.result.error
        if outcome.error is not None:
            rows = failure_rows(outcome.error)
        elif outcome.result is not None:
            rows = normalize_result(outcome.result)
        else:
            outcome.error = EngineFailure("No result was produced.")
            rows = failure_rows(outcome.error)
        outcome.rows = rows
        outcome.delivered = True
        try:
            self.sinks.present(rows)
        except Exception:
            self._log.exception("Presenting rows for %s failed", outcome.label or outcome.index)

    def _connected(self) -> bool:
        try:
            return bool(self.session.is_connected())
        except Exception:
            self._log.exception("Connection check failed")
            return False

    def _mode_for(self, descriptor: ActionDescriptor) -> ExecutionMode:
        try:
            enabled = bool(getattr(self.settings(), "async_enabled_for_heavy", False))
        except Exception:
            self._log.exception("Reading settings failed; falling back to sync mode")
            enabled = False
        if enabled and descriptor.heavy:
            return ExecutionMode.ASYNC
        return ExecutionMode.SYNC

    def _enter_busy(self) -> None:
        self._busy_jobs += 1
        if self._busy_jobs == 1:
            self._emit_busy(True)

    def _leave_busy(self) -> None:
        self._busy_jobs = max(0, self._busy_jobs - 1)
        if self._busy_jobs == 0:
            self._emit_busy(False)

    def _emit_busy(self, value: bool) -> None:
        try:
            self.sinks.set_busy(value)
        except Exception:
            self._log.exception("Busy indicator update failed")


__all__ = [
    "ActionDispatcher",
    "DispatchOutcome",
    "DispatchSettings",
    "DispatchSinks",
    "DispatchState",
    "HISTORY_LIMIT",
]
