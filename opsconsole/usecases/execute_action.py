"""Execution engine running action handlers in sync or async mode.

Sync mode calls the handler on the caller's thread. Async mode submits it to a
small ``ThreadPoolExecutor``; the worker never touches UI state. Instead it
puts ``(job, result)`` on a completion queue and the host event loop calls
:meth:`ExecutionEngine.drain` (see ``opsconsole.app.completion_pump``) to hand
each result to its sink on the consumer thread.

Both modes wrap the handler the same way, so a failing handler yields the
same ``ExecutionResult`` shape regardless of where it ran.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass, field
from typing import Callable, Optional, Set, Tuple, Union

from ..domain.actions import Handler
from ..domain.context import ExecutionContext
from ..domain.normalizer import materialize
from ..domain.ports import EngineFailure
from ..domain.results import ExecutionMode, ExecutionResult
from .error_mapping import map_handler_error

CompletionSink = Callable[[ExecutionResult], None]

MIN_WORKERS = 1
MAX_WORKERS = 4


def clamp_pool_size(value: object) -> int:
    """Clamp a configured pool size into ``[MIN_WORKERS, MAX_WORKERS]``."""
    try:
        size = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        size = MIN_WORKERS
    return max(MIN_WORKERS, min(MAX_WORKERS, size))


@dataclass
class EngineJob:
    """One in-flight async execution.

    The future doubles as the liveness token: it lives as long as the worker
    holds the job, which is bounded by the host process.
    """

    job_id: int
    handler: Handler
    context: ExecutionContext
    sink: CompletionSink
    submitted_at: float
    future: Optional[Future] = field(default=None, repr=False)


class ExecutionEngine:
    """Run handlers inline or on a bounded worker pool."""

    def __init__(
        self,
        pool_size: int = 2,
        *,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self._pool_size = clamp_pool_size(pool_size)
        self._clock = clock
        self._executor: Optional[ThreadPoolExecutor] = None
        self._completions: "queue.Queue[Tuple[EngineJob, ExecutionResult]]" = queue.Queue()
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._futures: Set[Future] = set()
        self._outstanding = 0
        self._closed = False

    @property
    def pool_size(self) -> int:
        return self._pool_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def execute(
        self,
        handler: Handler,
        context: ExecutionContext,
        mode: ExecutionMode = ExecutionMode.SYNC,
        on_complete: Optional[CompletionSink] = None,
    ) -> Union[ExecutionResult, EngineJob]:
        """Run ``handler`` in the requested mode.

        Returns the finished result in sync mode and the submitted job in
        async mode. Async mode requires ``on_complete``.
        """
        if ExecutionMode(mode) is ExecutionMode.ASYNC:
            if on_complete is None:
                raise ValueError("Async execution requires a completion sink.")
            return self.submit(handler, context, on_complete)
        result = self.run_sync(handler, context)
        if on_complete is not None:
            on_complete(result)
        return result

    def run_sync(self, handler: Handler, context: ExecutionContext) -> ExecutionResult:
        """Run the handler on the calling thread and return its result."""
        return self._invoke(handler, context, ExecutionMode.SYNC)

    def submit(
        self,
        handler: Handler,
        context: ExecutionContext,
        on_complete: CompletionSink,
    ) -> EngineJob:
        """Queue the handler on the worker pool without blocking.

        A submission that the pool rejects is turned into an ``EngineFailure``
        result and delivered through the same completion queue.
        """
        job = EngineJob(
            job_id=next(self._ids),
            handler=handler,
            context=context,
            sink=on_complete,
            submitted_at=self._clock(),
        )
        with self._lock:
            self._outstanding += 1
        try:
            executor = self._ensure_executor()
            future = executor.submit(self._work, job)
        except Exception as exc:
            self._log.error("Could not submit %s: %s", context.action_label, exc)
            failure = EngineFailure(f"Could not start '{context.action_label}': {exc}", cause=exc)
            self._completions.put((job, self._result(context, ExecutionMode.ASYNC, error=failure)))
            return job

        job.future = future
        with self._lock:
            self._futures.add(future)
        future.add_done_callback(self._forget_future)
        self._log.debug("Submitted job %s (%s)", job.job_id, context.action_label)
        return job

    def drain(self, limit: Optional[int] = None) -> int:
        """Deliver queued completions to their sinks on the calling thread.

        Returns the number of results delivered. Each job is delivered exactly
        once; a sink that raises is logged and draining continues.
        """
        delivered = 0
        while limit is None or delivered < limit:
            try:
                job, result = self._completions.get_nowait()
            except queue.Empty:
                break
            with self._lock:
                self._outstanding -= 1
            delivered += 1
            try:
                job.sink(result)
            except Exception:
                self._log.exception(
                    "Completion sink failed for job %s (%s)", job.job_id, job.context.action_label
                )
        return delivered

    def pending_count(self) -> int:
        """Async jobs submitted but not yet delivered to their sink."""
        with self._lock:
            return self._outstanding

    def in_flight(self) -> int:
        """Async jobs still held by the worker pool."""
        with self._lock:
            return len(self._futures)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Block until every submitted job has queued its result.

        Intended for shutdown and tests; the UI thread never calls this.
        """
        with self._lock:
            futures = list(self._futures)
        if not futures:
            return True
        _, not_done = wait_futures(futures, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and release the worker threads."""
        with self._lock:
            self._closed = True
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _ensure_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._closed:
                raise RuntimeError("execution engine is shut down")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._pool_size,
                    thread_name_prefix="opsconsole-worker",
                )
            return self._executor

    def _work(self, job: EngineJob) -> None:
        try:
            result = self._invoke(job.handler, job.context, ExecutionMode.ASYNC)
        except Exception as exc:  # pragma: no cover - _invoke already catches handler faults
            failure = EngineFailure(f"Worker failed: {exc}", cause=exc)
            result = self._result(job.context, ExecutionMode.ASYNC, error=failure)
        self._completions.put((job, result))

    def _forget_future(self, future: Future) -> None:
        with self._lock:
            self._futures.discard(future)

    def _invoke(
        self,
        handler: Handler,
        context: ExecutionContext,
        mode: ExecutionMode,
    ) -> ExecutionResult:
        label = context.action_label
        self._log.debug("Running %s [%s] with %s", label, mode.value, context.describe())
        started = self._clock()
        try:
            # Lazy output is read here so its work stays on this thread.
            payload = materialize(handler(context))
        except Exception as exc:
            elapsed = self._clock() - started
            failure = map_handler_error(exc)
            self._log.warning(
                "%s failed after %.2fs [%s]: %s", label, elapsed, failure.code, failure.message
            )
            return self._result(context, mode, error=failure, duration_s=elapsed)
        elapsed = self._clock() - started
        self._log.info("%s finished in %.2fs [%s]", label, elapsed, mode.value)
        return self._result(context, mode, payload=payload, duration_s=elapsed)

    @staticmethod
    def _result(
        context: ExecutionContext,
        mode: ExecutionMode,
        *,
        payload: object = None,
        error=None,
        duration_s: float = 0.0,
    ) -> ExecutionResult:
        return ExecutionResult(
            action_key=context.action_key,
            action_label=context.action_label,
            mode=mode,
            payload=payload,
            error=error,
            duration_s=duration_s,
        )


__all__ = [
    "CompletionSink",
    "EngineJob",
    "ExecutionEngine",
    "MAX_WORKERS",
    "MIN_WORKERS",
    "clamp_pool_size",
]
