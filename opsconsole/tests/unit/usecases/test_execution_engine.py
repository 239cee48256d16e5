from __future__ import annotations

import threading
import time
from typing import List

import pytest

from opsconsole.domain.context import ExecutionContext
from opsconsole.domain.normalizer import normalize_result
from opsconsole.domain.results import ExecutionMode, ExecutionResult
from opsconsole.usecases.execute_action import ExecutionEngine, clamp_pool_size


def _ctx(label: str = "Get group members") -> ExecutionContext:
    return ExecutionContext(action_key=5, action_label=label, primary="sales@contoso.test")


def _failing(ctx: ExecutionContext):
    raise RuntimeError("directory unavailable")


def _drain_until(engine: ExecutionEngine, expected: int, timeout: float = 5.0) -> int:
    delivered = 0
    deadline = time.monotonic() + timeout
    while delivered < expected and time.monotonic() < deadline:
        engine.join(timeout=0.5)
        delivered += engine.drain()
    return delivered


def test_clamp_pool_size_bounds() -> None:
    assert clamp_pool_size(0) == 1
    assert clamp_pool_size(9) == 4
    assert clamp_pool_size("3") == 3
    assert clamp_pool_size(None) == 1


def test_run_sync_returns_payload_and_mode() -> None:
    engine = ExecutionEngine()

    result = engine.run_sync(lambda ctx: [{"Member": ctx.primary}], _ctx())

    assert result.ok is True
    assert result.mode is ExecutionMode.SYNC
    assert result.payload == [{"Member": "sales@contoso.test"}]
    assert result.action_label == "Get group members"


def test_failure_rows_match_across_modes() -> None:
    engine = ExecutionEngine(pool_size=1)
    received: List[ExecutionResult] = []
    try:
        sync_result = engine.run_sync(_failing, _ctx())
        engine.submit(_failing, _ctx(), received.append)
        assert _drain_until(engine, 1) == 1
    finally:
        engine.shutdown()

    async_result = received[0]
    assert async_result.mode is ExecutionMode.ASYNC
    assert sync_result.error.code == async_result.error.code == "HANDLER_FAILED"
    assert normalize_result(sync_result) == normalize_result(async_result)
    assert normalize_result(sync_result) == [
        {"Status": "Error", "Code": "HANDLER_FAILED", "Message": "directory unavailable"}
    ]


def test_execute_async_requires_sink() -> None:
    engine = ExecutionEngine()

    with pytest.raises(ValueError):
        engine.execute(lambda ctx: None, _ctx(), ExecutionMode.ASYNC)


def test_execute_sync_calls_sink_inline() -> None:
    engine = ExecutionEngine()
    seen: List[ExecutionResult] = []

    result = engine.execute(lambda ctx: "done", _ctx(), ExecutionMode.SYNC, seen.append)

    assert seen == [result]


def test_pool_never_exceeds_configured_size() -> None:
    engine = ExecutionEngine(pool_size=2)
    lock = threading.Lock()
    release = threading.Event()
    active = 0
    high_water = 0

    def slow(ctx: ExecutionContext):
        nonlocal active, high_water
        with lock:
            active += 1
            high_water = max(high_water, active)
        release.wait(timeout=5)
        with lock:
            active -= 1
        return ctx.primary

    delivered: List[ExecutionResult] = []
    try:
        for _ in range(6):
            engine.submit(slow, _ctx(), delivered.append)

        deadline = time.monotonic() + 5
        while time.monotonic() < deadline:
            with lock:
                if active == 2:
                    break
            time.sleep(0.01)
        assert engine.pending_count() == 6
        release.set()

        assert _drain_until(engine, 6) == 6
    finally:
        release.set()
        engine.shutdown()

    assert high_water == 2
    assert len(delivered) == 6
    assert all(result.ok for result in delivered)
    assert engine.pending_count() == 0


def test_worker_threads_never_call_the_sink() -> None:
    engine = ExecutionEngine(pool_size=2)
    sink_threads: List[threading.Thread] = []
    try:
        engine.submit(lambda ctx: None, _ctx(), lambda result: sink_threads.append(threading.current_thread()))
        engine.join(timeout=5)
        assert sink_threads == []
        assert engine.drain() == 1
    finally:
        engine.shutdown()

    assert sink_threads == [threading.current_thread()]


def test_drain_delivers_each_job_once() -> None:
    engine = ExecutionEngine(pool_size=1)
    seen: List[ExecutionResult] = []
    try:
        engine.submit(lambda ctx: 1, _ctx(), seen.append)
        assert _drain_until(engine, 1) == 1
        assert engine.drain() == 0
    finally:
        engine.shutdown()

    assert len(seen) == 1


def test_raising_sink_is_logged_and_draining_continues(caplog) -> None:
    engine = ExecutionEngine(pool_size=1)
    seen: List[ExecutionResult] = []

    def bad_sink(result: ExecutionResult) -> None:
        raise RuntimeError("view gone")

    try:
        engine.submit(lambda ctx: 1, _ctx(), bad_sink)
        engine.submit(lambda ctx: 2, _ctx(), seen.append)
        with caplog.at_level("ERROR"):
            assert _drain_until(engine, 2) == 2
    finally:
        engine.shutdown()

    assert [result.payload for result in seen] == [2]
    assert "Completion sink failed" in caplog.text


def test_submit_after_shutdown_delivers_engine_failure() -> None:
    engine = ExecutionEngine()
    engine.shutdown()
    seen: List[ExecutionResult] = []

    engine.submit(lambda ctx: 1, _ctx(), seen.append)
    assert engine.drain() == 1

    assert seen[0].error.code == "ENGINE_FAILED"
    assert engine.pending_count() == 0


def test_lazy_payload_is_read_inside_the_timed_call() -> None:
    ticks = iter([0.0, 2.5])
    engine = ExecutionEngine(clock=lambda: next(ticks))

    def members(ctx):
        yield {"Member": "alice"}
        yield (row for row in [{"Member": "bob"}])

    result = engine.run_sync(members, _ctx())

    assert result.payload == [{"Member": "alice"}, [{"Member": "bob"}]]
    assert result.duration_s == 2.5


def test_async_generator_fault_is_caught_at_engine_boundary() -> None:
    engine = ExecutionEngine(pool_size=1)
    seen: List[ExecutionResult] = []
    threads: List[str] = []

    def stream(ctx):
        threads.append(threading.current_thread().name)
        yield {"Member": "alice"}
        raise TimeoutError("gateway stalled")

    try:
        engine.submit(stream, _ctx(), seen.append)
        assert _drain_until(engine, 1) == 1
    finally:
        engine.shutdown()

    assert threads[0].startswith("opsconsole-worker")
    assert seen[0].error is not None
    assert seen[0].payload is None
