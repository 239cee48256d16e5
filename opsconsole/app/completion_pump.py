"""Timer that drains engine completions on the Tk thread.

The app passes Tk ``after`` and ``after_cancel`` into this class; each tick
calls ``ExecutionEngine.drain`` so async results reach the view model on the
same thread that owns every widget.
"""

from __future__ import annotations


import logging
from typing import Callable, Optional

ScheduleFn = Callable[[int, Callable[[], None]], str]
CancelFn = Callable[[str], None]
DrainFn = Callable[[], int]


class CompletionPump:
    """Periodically drain completed jobs using a UI scheduler (for example Tk)."""

    def __init__(
        self,
        schedule: ScheduleFn,
        cancel: CancelFn,
        drain: DrainFn,
        *,
        interval_ms: int = 100,
    ) -> None:
        """Store scheduler hooks.

        Args:
            schedule: Function compatible with ``after(delay_ms, callback)``.
            cancel: Function compatible with ``after_cancel(token)``.
            drain: Callable delivering queued results, returns the count.
            interval_ms: Delay between ticks in milliseconds.
        """
        self._log = logging.getLogger(__name__)
        self._schedule = schedule
        self._cancel = cancel
        self._drain = drain
        self.interval_ms = max(1, int(interval_ms))
        self._token: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._token is not None

    def start(self) -> None:
        """Schedule the first tick; calling twice keeps a single timer."""
        if self._token is None:
            self._token = self._schedule(self.interval_ms, self.tick)

    def stop(self) -> None:
        token, self._token = self._token, None
        if token is None:
            return
        try:
            self._cancel(token)
        except Exception:
            self._log.debug("Cancelling completion timer %s failed", token, exc_info=True)

    def tick(self) -> None:
        """Drain pending completions, then schedule the next tick."""
        try:
            delivered = self._drain()
            if delivered:
                self._log.debug("Delivered %d completion(s)", delivered)
        except Exception:
            self._log.exception("Draining completions failed")
        if self._token is not None:
            self._token = self._schedule(self.interval_ms, self.tick)


__all__ = ["CompletionPump"]
