"""
Normalization of heterogeneous completion styles onto asyncio futures.
"""

from typing import Any, Optional
import asyncio
import inspect


def as_future(value: Any, loop: Optional[asyncio.AbstractEventLoop] = None) -> asyncio.Future:
    """
    Wrap ``value`` in a future.

    Awaitables (coroutines, tasks, futures, objects with ``__await__``) are
    scheduled on the loop; any other value becomes an already-completed
    future. Completion callbacks therefore always run on a later loop
    iteration, never synchronously inside the caller.
    """
    loop = loop or asyncio.get_running_loop()

    if inspect.isawaitable(value):
        return asyncio.ensure_future(value, loop=loop)

    future = loop.create_future()
    future.set_result(value)
    return future


def failed_future(error: BaseException, loop: Optional[asyncio.AbstractEventLoop] = None) -> asyncio.Future:
    """Return a future already completed with ``error``."""
    loop = loop or asyncio.get_running_loop()
    future = loop.create_future()
    future.set_exception(error)
    return future
