"""
Lifecycle phases and events emitted by the scheduler.
"""

from typing import Any, Dict, Optional
from dataclasses import dataclass
from enum import Enum
import logging


logger = logging.getLogger("ignition.lifecycle")


class LifecyclePhase(Enum):
    """Lifecycle phases."""
    INIT = "init"
    STARTING = "starting"
    READY = "ready"
    STOPPING = "stopping"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass
class LifecycleEvent:
    """Event emitted during lifecycle transitions."""
    phase: LifecyclePhase
    service: Optional[str] = None
    message: Optional[str] = None
    error: Optional[BaseException] = None


class LifecycleManager:
    """
    Context manager that starts a scheduler on entry and stops it on exit.

    Usage:
        async with LifecycleManager(Scheduler(config)) as services:
            # All services are started
            await serve(services["http"])
        # Services automatically shut down
    """

    def __init__(self, scheduler: Any):
        self.scheduler = scheduler

    async def __aenter__(self) -> Dict[str, Any]:
        return await self.scheduler.execute()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.scheduler.phase == LifecyclePhase.READY:
            if exc_type is not None:
                logger.debug(f"Shutting down after {exc_type.__name__}")
            await self.scheduler.shutdown()
        return False  # Don't suppress exceptions
