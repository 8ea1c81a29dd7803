"""Run command - boot the service graph and keep it alive."""

import asyncio
import logging
import signal
from typing import Any, Callable, Dict, Optional

from ...config import IgnitionConfig
from ...scheduler import Scheduler


logger = logging.getLogger("ignition.cli")


async def run_services(
    config: IgnitionConfig,
    *,
    once: bool = False,
    on_started: Optional[Callable[[Dict[str, Any]], None]] = None,
) -> Dict[str, Any]:
    """
    Start every service, wait for a termination signal, then shut down.

    Args:
        config: Run configuration
        once: Shut down right after a successful start
        on_started: Called with the resolved services once started

    Returns:
        The resolved services

    Raises:
        Fault: The first fault of startup or shutdown
        Exception: A teardown action's own failure, unwrapped
    """
    scheduler = Scheduler(config)
    resolved = await scheduler.execute()

    if on_started is not None:
        on_started(resolved)

    if not once:
        await _wait_for_signal()

    await scheduler.shutdown()
    return resolved


async def _wait_for_signal() -> None:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Signal handlers are unavailable on some platforms
            logger.debug(f"Cannot install handler for {sig.name}")

    try:
        await stop.wait()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass
