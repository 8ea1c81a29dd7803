"""
Shutdown Orchestrator (shutdown.py)

Tests ShutdownOrchestrator directly and through Scheduler.shutdown():
teardown order, aggregate failure, global timeout, phases.
"""

import asyncio

import pytest

from ignition import (
    LifecyclePhase,
    NotStarted,
    Scheduler,
    ShutdownOrchestrator,
    ShutdownTimeout,
    UnknownDependency,
)


# ============================================================================
# Helpers
# ============================================================================

class FakeConnection:
    """Instance exposing teardown as a ``shutdown`` method."""

    def __init__(self, log):
        self.log = log

    def shutdown(self):
        self.log.append("connection")


# ============================================================================
# ShutdownOrchestrator
# ============================================================================

class TestShutdownOrchestrator:

    @pytest.mark.asyncio
    async def test_invokes_actions_in_order(self):
        log = []
        teardown = {
            "A": lambda: log.append("A"),
            "B": lambda: log.append("B"),
            "C": lambda: log.append("C"),
        }

        await ShutdownOrchestrator(teardown, 1000).run()

        assert log == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_async_actions_run_concurrently(self):
        log = []

        async def slow(name):
            log.append(f"{name}:start")
            await asyncio.sleep(0.01)
            log.append(f"{name}:end")

        teardown = {"A": lambda: slow("A"), "B": lambda: slow("B")}

        await ShutdownOrchestrator(teardown, 1000).run()

        assert log == ["A:start", "B:start", "A:end", "B:end"]

    @pytest.mark.asyncio
    async def test_empty_teardown(self):
        await ShutdownOrchestrator({}, 10).run()

    @pytest.mark.asyncio
    async def test_synchronous_failure_propagates(self):
        error = RuntimeError("close failed")
        invoked = []

        def broken():
            raise error

        teardown = {"A": broken, "B": lambda: invoked.append("B")}

        with pytest.raises(RuntimeError) as exc_info:
            await ShutdownOrchestrator(teardown, 1000).run()

        assert exc_info.value is error
        assert invoked == ["B"]

    @pytest.mark.asyncio
    async def test_asynchronous_failure_propagates(self):
        async def broken():
            raise ValueError("flush failed")

        with pytest.raises(ValueError, match="flush failed"):
            await ShutdownOrchestrator({"A": broken}, 1000).run()

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def hang():
            await asyncio.sleep(1)

        teardown = {"fast": lambda: None, "slow": hang}

        with pytest.raises(ShutdownTimeout) as exc_info:
            await ShutdownOrchestrator(teardown, 10).run()

        assert exc_info.value.timeout == 10
        assert exc_info.value.pending == ["slow"]
        assert "timeout" in exc_info.value.message.lower()

    @pytest.mark.asyncio
    async def test_action_timeout_error_is_not_a_shutdown_timeout(self):
        error = asyncio.TimeoutError("pool close timed out")

        async def close_pool():
            raise error

        with pytest.raises(asyncio.TimeoutError) as exc_info:
            await ShutdownOrchestrator({"pool": close_pool}, 5000).run()

        assert exc_info.value is error
        assert not isinstance(exc_info.value, ShutdownTimeout)


# ============================================================================
# Scheduler.shutdown()
# ============================================================================

class TestSchedulerShutdown:

    @pytest.mark.asyncio
    async def test_teardown_follows_resolution_order(self, recorder):
        scheduler = Scheduler({
            "services": {
                "B": {"module": recorder.stoppable("B"), "dependencies": ["A"]},
                "A": {"module": recorder.stoppable("A")},
            },
        })

        await scheduler.execute()
        await scheduler.shutdown()

        assert list(scheduler.resolved) == ["A", "B"]
        assert recorder.stopped == ["A", "B"]
        assert scheduler.phase == LifecyclePhase.STOPPED

    @pytest.mark.asyncio
    async def test_teardown_from_attribute(self):
        log = []
        scheduler = Scheduler({
            "services": {"conn": {"module": lambda options, imports: FakeConnection(log)}},
        })

        await scheduler.execute()
        await scheduler.shutdown()

        assert log == ["connection"]

    @pytest.mark.asyncio
    async def test_instances_without_teardown(self, recorder):
        scheduler = Scheduler({
            "services": {
                "plain": {"module": recorder.sync("plain", "value")},
                "empty": {"module": recorder.sync("empty")},
                "flag": {"module": recorder.sync("flag", {"shutdown": True})},
            },
        })

        await scheduler.execute()
        await scheduler.shutdown()

        assert scheduler.phase == LifecyclePhase.STOPPED

    @pytest.mark.asyncio
    async def test_shutdown_before_start(self, recorder):
        scheduler = Scheduler({"services": {"A": {"module": recorder.sync("A")}}})

        with pytest.raises(NotStarted) as exc_info:
            await scheduler.shutdown()

        assert "until fully started" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_shutdown_after_failed_start(self, recorder):
        scheduler = Scheduler({
            "services": {"A": {"module": recorder.sync("A"), "dependencies": ["missing"]}},
        })

        with pytest.raises(UnknownDependency):
            await scheduler.execute()

        with pytest.raises(NotStarted):
            await scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_timeout(self, recorder):
        scheduler = Scheduler({
            "shutdown_timeout": 10,
            "services": {"A": {"module": recorder.stoppable("A", delay=0.5)}},
        })

        await scheduler.execute()

        with pytest.raises(ShutdownTimeout) as exc_info:
            await scheduler.shutdown()

        assert exc_info.value.pending == ["A"]
        assert scheduler.phase == LifecyclePhase.ERROR

    @pytest.mark.asyncio
    async def test_shutdown_completes_within_timeout(self, recorder):
        scheduler = Scheduler({
            "shutdown_timeout": 200,
            "services": {
                "A": {"module": recorder.stoppable("A", delay=0.01)},
                "B": {"module": recorder.stoppable("B", delay=0.02), "dependencies": ["A"]},
            },
        })

        await scheduler.execute()
        await scheduler.shutdown()

        assert sorted(recorder.stopped) == ["A", "B"]

    @pytest.mark.asyncio
    async def test_teardown_failure(self, recorder):
        error = RuntimeError("stop failed")
        events = []
        scheduler = Scheduler({
            "services": {"A": {"module": recorder.stoppable("A", error=error)}},
        })
        scheduler.on_event(events.append)

        await scheduler.execute()

        with pytest.raises(RuntimeError) as exc_info:
            await scheduler.shutdown()

        assert exc_info.value is error
        assert scheduler.phase == LifecyclePhase.ERROR
        assert events[-1].phase == LifecyclePhase.ERROR
        assert events[-1].error is error

    @pytest.mark.asyncio
    async def test_second_shutdown_is_noop(self, recorder):
        scheduler = Scheduler({"services": {"A": {"module": recorder.stoppable("A")}}})

        await scheduler.execute()
        await scheduler.shutdown()
        await scheduler.shutdown()

        assert recorder.stopped == ["A"]
