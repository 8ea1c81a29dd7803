"""
Shutdown Orchestrator - runs every recorded teardown action once.
"""

from typing import Any, Callable, Dict, List
import asyncio
import logging

from ._futures import as_future, failed_future
from .faults import ShutdownTimeout


logger = logging.getLogger("ignition.shutdown")


class ShutdownOrchestrator:
    """
    Invokes teardown actions in the order their services resolved and
    waits for all of them under one global timeout.

    Every action is invoked before any is awaited, so slow async teardowns
    run concurrently. The first failing action fails the whole shutdown.
    """

    def __init__(self, teardown: Dict[str, Callable[[], Any]], timeout: float):
        """
        Args:
            teardown: Service name -> shutdown action, in resolution order
            timeout: Global timeout in milliseconds
        """
        self.teardown = teardown
        self.timeout = timeout

    async def run(self) -> None:
        """
        Run all teardown actions.

        Raises:
            ShutdownTimeout: If the actions did not settle in time
            Exception: The first failure raised by a teardown action
        """
        loop = asyncio.get_running_loop()
        pending: Dict[str, asyncio.Future] = {}

        for name, action in self.teardown.items():
            logger.debug(f"  ↳ Stopping {name}...")
            try:
                pending[name] = as_future(action(), loop)
            except Exception as e:
                logger.error(f"     ✗ {name} shutdown error: {e}")
                pending[name] = failed_future(e, loop)

        aggregate = asyncio.gather(*pending.values())

        done, _ = await asyncio.wait({aggregate}, timeout=self.timeout / 1000)
        if aggregate not in done:
            unfinished = self._unfinished(pending)
            aggregate.cancel()
            logger.error(f"Shutdown timed out after {self.timeout}ms, waiting on: {', '.join(unfinished)}")
            raise ShutdownTimeout(self.timeout, pending=unfinished)

        # First teardown failure, re-raised as is
        aggregate.result()

        logger.info(f"✅ All services stopped ({len(pending)} services)")

    @staticmethod
    def _unfinished(pending: Dict[str, asyncio.Future]) -> List[str]:
        return [
            name for name, future in pending.items()
            if future.cancelled() or not future.done()
        ]
