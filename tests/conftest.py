"""
Shared test fixtures and helpers for the Ignition test suite.
"""

import asyncio
import os
import textwrap
from typing import Any, Dict, List, Optional, Tuple

import pytest


# ============================================================================
# Fake services
# ============================================================================


class Recorder:
    """
    Builds fake service implementations and records what they see.

    Every implementation appends ``(name, options, imports)`` to
    ``calls`` when invoked; teardowns append the service name to
    ``stopped``.
    """

    def __init__(self):
        self.calls: List[Tuple[str, Any, Dict[str, Any]]] = []
        self.stopped: List[str] = []

    @property
    def order(self) -> List[str]:
        return [name for name, _, _ in self.calls]

    def options_of(self, name: str) -> Any:
        for called, options, _ in self.calls:
            if called == name:
                return options
        raise KeyError(name)

    def imports_of(self, name: str) -> Dict[str, Any]:
        for called, _, imports in self.calls:
            if called == name:
                return imports
        raise KeyError(name)

    def sync(self, name: str, instance: Any = None):
        """Implementation that returns ``instance`` immediately."""
        def implementation(options, imports):
            self.calls.append((name, options, imports))
            return instance
        return implementation

    def deferred(self, name: str, delay: float = 0.01, instance: Any = None):
        """Implementation that resolves ``instance`` after ``delay`` seconds."""
        async def implementation(options, imports):
            self.calls.append((name, options, imports))
            await asyncio.sleep(delay)
            return instance
        return implementation

    def failing(self, name: str, error: BaseException, *, deferred: bool = False):
        """Implementation that raises ``error`` synchronously or after a tick."""
        if deferred:
            async def implementation(options, imports):
                self.calls.append((name, options, imports))
                await asyncio.sleep(0)
                raise error
        else:
            def implementation(options, imports):
                self.calls.append((name, options, imports))
                raise error
        return implementation

    def stoppable(self, name: str, delay: float = 0.0, error: Optional[BaseException] = None):
        """Implementation whose instance carries an async ``shutdown`` action."""
        async def shutdown():
            if delay:
                await asyncio.sleep(delay)
            if error is not None:
                raise error
            self.stopped.append(name)

        def implementation(options, imports):
            self.calls.append((name, options, imports))
            return {"name": name, "shutdown": shutdown}
        return implementation


@pytest.fixture
def recorder():
    return Recorder()


# ============================================================================
# Filesystem helpers
# ============================================================================


@pytest.fixture
def write_file(tmp_path):
    """Write a dedented text file below ``tmp_path`` and return its path."""
    def _write(relative: str, content: str):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content))
        return path
    return _write


@pytest.fixture
def clean_env(monkeypatch):
    """Remove IGN_* variables leaking in from the surrounding environment."""
    for key in list(os.environ):
        if key.startswith("IGN_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
