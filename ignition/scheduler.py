"""
Activation Engine - boots a graph of interdependent services.

The scheduler works in rounds. Each round scans the awaiting services in
insertion order and activates every one whose dependencies are resolved.
A round is triggered by ``execute()`` and then by every completed
activation, so the engine reacts to whatever order services finish in
and to services or edges added while the graph is being resolved.

Usage:
    scheduler = Scheduler({
        "services": {
            "db": {"module": create_db, "options": {"dsn": "..."}},
            "api": {"module": create_api, "dependencies": ["db"]},
        },
    })
    services = await scheduler.execute()
    ...
    await scheduler.shutdown()
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from dataclasses import replace
from functools import partial
import asyncio
import inspect
import logging

from ._futures import as_future
from .config import IgnitionConfig
from .evaluator import Eligibility, evaluate
from .faults import (
    AlreadyExecuted,
    CircularDependency,
    Fault,
    ModuleLoadError,
    NotStarted,
    ServiceStartupError,
    StartupTimeout,
)
from .lifecycle import LifecycleEvent, LifecyclePhase
from .loader import ModuleLoader
from .registry import (
    APP_KEY,
    REQUIRE_DEFAULT_KEY,
    REQUIRE_KEY,
    RegistryHandle,
    ServiceRegistry,
    ServiceSpec,
)
from .shutdown import ShutdownOrchestrator


logger = logging.getLogger("ignition.scheduler")


def _noop() -> None:
    return None


def _teardown_of(instance: Any) -> Callable[[], Any]:
    """Shutdown action carried by a resolved instance, or a no-op."""
    if isinstance(instance, Mapping):
        action = instance.get("shutdown")
    else:
        action = getattr(instance, "shutdown", None)
    return action if callable(action) else _noop


class Scheduler:
    """
    Dependency-driven service scheduler.

    One instance drives exactly one run: ``execute()`` may be awaited
    once, and ``shutdown()`` only after it succeeded.
    """

    def __init__(
        self,
        config: Union[IgnitionConfig, Mapping[str, Any], None] = None,
        base_path: Optional[str] = None,
        *,
        loader: Optional[ModuleLoader] = None,
    ):
        """
        Initialize scheduler.

        Args:
            config: IgnitionConfig or mapping with ``services`` and timeouts
            base_path: Directory relative service paths are resolved against
                (defaults to the config's ``base_path``)
            loader: Module loader override
        """
        self.config = IgnitionConfig.from_mapping(config)
        if base_path is not None:
            self.config = replace(self.config, base_path=base_path)

        self.startup_timeout = self.config.startup_timeout
        self.shutdown_timeout = self.config.shutdown_timeout

        self.loader = loader or ModuleLoader(self.config.base_path)
        self.registry = ServiceRegistry(self.config.services, config=self.config)
        self.handle = RegistryHandle(self.registry)

        self.phase = LifecyclePhase.INIT
        self.executed = False
        self.event_handlers: List[Callable[[LifecycleEvent], None]] = []

        self._outcome: Optional[asyncio.Future] = None
        self._settled = False
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self.logger = logger

    # ------------------------------------------------------------------
    # Convenience views on the registry
    # ------------------------------------------------------------------

    @property
    def resolved(self) -> Dict[str, Any]:
        return self.registry.resolved

    @property
    def started(self) -> bool:
        return self.registry.started

    def add_service(self, name: str, spec: Union[ServiceSpec, Mapping[str, Any]]) -> None:
        self.registry.add_service(name, spec)

    def add_dependency(self, name: str, dependency: str, alias: Optional[str] = None) -> None:
        self.registry.add_dependency(name, dependency, alias)

    def set_option(self, name: str, key: str, value: Any) -> None:
        self.registry.set_option(name, key, value)

    def add_options(self, name: str, options: Mapping[str, Any]) -> None:
        self.registry.add_options(name, options)

    def get_config(self) -> IgnitionConfig:
        return self.registry.get_config()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_event(self, handler: Callable[[LifecycleEvent], None]):
        """
        Register event handler.

        Args:
            handler: Callable that receives LifecycleEvent
        """
        self.event_handlers.append(handler)
        return self

    def _emit_event(self, event: LifecycleEvent):
        """Emit lifecycle event to all handlers."""
        for handler in self.event_handlers:
            try:
                handler(event)
            except Exception as e:
                self.logger.error(f"Event handler error: {e}")

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def execute(self) -> Dict[str, Any]:
        """
        Start every non-ignored service.

        Returns:
            Mapping of service name to its resolved instance

        Raises:
            AlreadyExecuted: If called more than once
            Fault: The first fatal fault of the run
        """
        if self.executed:
            raise AlreadyExecuted()
        self.executed = True

        loop = asyncio.get_running_loop()
        self._outcome = loop.create_future()
        self.registry.bind(self._fail)

        self.phase = LifecyclePhase.STARTING
        self._emit_event(LifecycleEvent(LifecyclePhase.STARTING))
        self.logger.info(f"Starting {len(self.registry)} services...")

        try:
            self.registry.check_reserved()
        except Fault as e:
            self._fail(e)
        else:
            self.registry.executing = True
            self.registry.fill_ignored()
            if self.registry.ignored:
                self.logger.info(f"Ignoring services: {', '.join(sorted(self.registry.ignored))}")
            self._next_round()

        return await self._outcome

    async def shutdown(self) -> None:
        """
        Gracefully shut down every started service.

        Raises:
            NotStarted: If the run has not fully started
            ShutdownTimeout: If teardown did not finish in time
        """
        if self.phase == LifecyclePhase.STOPPED:
            self.logger.debug("Already stopped")
            return

        if not self.registry.started:
            raise NotStarted()

        self.phase = LifecyclePhase.STOPPING
        self._emit_event(LifecycleEvent(LifecyclePhase.STOPPING))
        self.logger.info("Stopping services...")

        orchestrator = ShutdownOrchestrator(self.registry.teardown, self.shutdown_timeout)
        try:
            await orchestrator.run()
        except Exception as e:
            self.phase = LifecyclePhase.ERROR
            self._emit_event(LifecycleEvent(LifecyclePhase.ERROR, message="Shutdown failed", error=e))
            raise

        self.phase = LifecyclePhase.STOPPED
        self._emit_event(LifecycleEvent(LifecyclePhase.STOPPED))

    def get_status(self) -> Dict[str, Any]:
        """
        Get current run status.

        Returns:
            Status dict with phase and per-state service names
        """
        registry = self.registry
        return {
            "phase": self.phase.value,
            "resolved": list(registry.resolved),
            "starting": sorted(registry.starting),
            "awaiting": list(registry.awaiting),
            "ignored": sorted(registry.ignored),
            "total_services": len(registry),
        }

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    def _next_round(self) -> None:
        """
        Launch a new round.

        Activates every awaiting service whose dependencies are resolved,
        then settles the run when nothing is left, or fails it when no
        progress is possible.
        """
        if self._settled:
            return

        registry = self.registry
        started_in_round = 0

        for name in list(registry.awaiting):
            if name not in registry.awaiting:
                continue

            evaluation = evaluate(name, registry)
            if evaluation.eligibility is Eligibility.DEADLOCKED_INPUT:
                self._fail(evaluation.fault)
                return

            if evaluation.ready:
                self._start_service(name)
                started_in_round += 1
                if self._settled:
                    return

        self.logger.debug(
            f"Round finished: {started_in_round} started, "
            f"{len(registry.starting)} starting, {len(registry.awaiting)} awaiting"
        )

        if not registry.awaiting and not registry.starting:
            self._succeed()
            return

        if started_in_round == 0 and not registry.starting:
            self._fail(CircularDependency(registry.awaiting))

    def _start_service(self, name: str) -> None:
        """Load, wire and invoke one service."""
        registry = self.registry
        spec = registry.services[name]

        try:
            implementation = self.loader.load_service(name, spec)
        except ModuleLoadError as e:
            self._fail(e)
            return
        except Exception as e:
            self._fail(ModuleLoadError(name, e))
            return

        registry.awaiting.remove(name)
        registry.starting.add(name)

        options = spec.options if spec.options is not None else {}
        imports = self._build_imports(spec)

        loop = asyncio.get_running_loop()
        self._timers[name] = loop.call_later(
            self.startup_timeout / 1000,
            partial(self._fail, StartupTimeout(name, self.startup_timeout)),
        )

        self.logger.debug(f"  ↳ Starting {name}...")

        try:
            if spec.callback:
                result = loop.create_future()
                body = implementation(options, imports, partial(self._callback_register, result))
                if inspect.isawaitable(body):
                    as_future(body, loop).add_done_callback(partial(self._on_callback_body, result))
            else:
                result = implementation(options, imports)
        except Exception as e:
            self._fail(ServiceStartupError(name, e))
            return

        try:
            as_future(result, loop).add_done_callback(partial(self._on_activated, name))
        except Exception as e:
            self._fail(ServiceStartupError(name, e))

    def _build_imports(self, spec: ServiceSpec) -> Dict[str, Any]:
        imports: Dict[str, Any] = {
            APP_KEY: self.handle,
            REQUIRE_KEY: self.loader.require,
            REQUIRE_DEFAULT_KEY: self.loader.require_default,
        }

        if isinstance(spec.dependencies, dict):
            for alias, dependency in spec.dependencies.items():
                imports[alias] = self.registry.resolved[dependency]
        elif spec.dependencies:
            for dependency in spec.dependencies:
                imports[dependency] = self.registry.resolved[dependency]

        return imports

    @staticmethod
    def _callback_register(result: asyncio.Future, error: Optional[BaseException] = None, instance: Any = None) -> None:
        if result.done():
            return
        if error is not None:
            result.set_exception(error)
        else:
            result.set_result(instance)

    @staticmethod
    def _on_callback_body(result: asyncio.Future, body: asyncio.Future) -> None:
        """Fail a callback-style service whose coroutine body raised before registering."""
        error = None if body.cancelled() else body.exception()
        if result.done():
            return
        if body.cancelled():
            result.cancel()
        elif error is not None:
            result.set_exception(error)

    def _on_activated(self, name: str, future: asyncio.Future) -> None:
        if future.cancelled():
            self._fail(ServiceStartupError(name, asyncio.CancelledError()))
            return

        error = future.exception()
        if error is not None:
            self._fail(ServiceStartupError(name, error))
            return

        if self._settled:
            self.logger.debug(f"Ignoring late completion of '{name}'")
            return

        timer = self._timers.pop(name, None)
        if timer is not None:
            timer.cancel()

        instance = future.result()
        if instance is None:
            instance = {}

        registry = self.registry
        registry.starting.discard(name)
        registry.resolved[name] = instance
        registry.teardown[name] = _teardown_of(instance)

        self.logger.info(f"     ✓ {name} started")
        self._emit_event(LifecycleEvent(LifecyclePhase.STARTING, service=name, message=f"{name} started"))

        self._next_round()

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def _succeed(self) -> None:
        if not self._settle():
            return

        self.registry.started = True
        self.phase = LifecyclePhase.READY
        self._emit_event(LifecycleEvent(LifecyclePhase.READY))
        self.logger.info(f"✅ All services started successfully ({len(self.registry.resolved)} services)")
        self._outcome.set_result(self.registry.resolved)

    def _fail(self, fault: Fault) -> None:
        if not self._settle():
            self.logger.debug(f"Dropping fault after settlement: {fault}")
            return

        self.phase = LifecyclePhase.ERROR
        self._emit_event(LifecycleEvent(LifecyclePhase.ERROR, message="Startup failed", error=fault))
        self.logger.error(f"❌ Startup failed: {fault}")
        self._outcome.set_exception(fault)

    def _settle(self) -> bool:
        """Claim the single settlement of the run; False if already claimed."""
        if self._settled or self._outcome is None:
            return False
        self._settled = True

        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        return True
