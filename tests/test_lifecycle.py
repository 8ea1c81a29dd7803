"""
Lifecycle (lifecycle.py)

Tests LifecyclePhase, LifecycleEvent and LifecycleManager.
"""

import pytest

from ignition import (
    CircularDependency,
    LifecycleEvent,
    LifecycleManager,
    LifecyclePhase,
    Scheduler,
)


# ============================================================================
# LifecyclePhase
# ============================================================================

class TestLifecyclePhase:

    def test_values(self):
        assert LifecyclePhase.INIT.value == "init"
        assert LifecyclePhase.STARTING.value == "starting"
        assert LifecyclePhase.READY.value == "ready"
        assert LifecyclePhase.STOPPING.value == "stopping"
        assert LifecyclePhase.STOPPED.value == "stopped"
        assert LifecyclePhase.ERROR.value == "error"


# ============================================================================
# LifecycleEvent
# ============================================================================

class TestLifecycleEvent:

    def test_create(self):
        event = LifecycleEvent(phase=LifecyclePhase.INIT)
        assert event.phase == LifecyclePhase.INIT
        assert event.service is None
        assert event.message is None
        assert event.error is None

    def test_create_with_service(self):
        event = LifecycleEvent(
            phase=LifecyclePhase.STARTING,
            service="db",
            message="db started",
        )
        assert event.service == "db"
        assert event.message == "db started"


# ============================================================================
# LifecycleManager
# ============================================================================

class TestLifecycleManager:

    @pytest.mark.asyncio
    async def test_starts_and_stops(self, recorder):
        scheduler = Scheduler({
            "services": {
                "db": {"module": recorder.stoppable("db")},
                "api": {"module": recorder.stoppable("api"), "dependencies": ["db"]},
            },
        })

        async with LifecycleManager(scheduler) as services:
            assert list(services) == ["db", "api"]
            assert scheduler.phase == LifecyclePhase.READY
            assert recorder.stopped == []

        assert recorder.stopped == ["db", "api"]
        assert scheduler.phase == LifecyclePhase.STOPPED

    @pytest.mark.asyncio
    async def test_stops_when_body_raises(self, recorder):
        scheduler = Scheduler({"services": {"db": {"module": recorder.stoppable("db")}}})

        with pytest.raises(RuntimeError, match="request failed"):
            async with LifecycleManager(scheduler):
                raise RuntimeError("request failed")

        assert recorder.stopped == ["db"]

    @pytest.mark.asyncio
    async def test_startup_failure_propagates(self, recorder):
        scheduler = Scheduler({
            "services": {"A": {"module": recorder.stoppable("A"), "dependencies": ["A"]}},
        })

        with pytest.raises(CircularDependency):
            async with LifecycleManager(scheduler):
                pass  # pragma: no cover

        assert scheduler.phase == LifecyclePhase.ERROR
        assert recorder.stopped == []

    @pytest.mark.asyncio
    async def test_exit_skips_shutdown_after_manual_stop(self, recorder):
        scheduler = Scheduler({"services": {"db": {"module": recorder.stoppable("db")}}})

        async with LifecycleManager(scheduler):
            await scheduler.shutdown()

        assert recorder.stopped == ["db"]
