"""
Service Registry - the mutable table of service declarations.

Holds every declared ``ServiceSpec`` together with the run bookkeeping
(awaiting / starting / resolved / ignored / teardown). The registry is a
single owned structure shared by reference with every scheduling round;
running services mutate it through a ``RegistryHandle``.
"""

from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Set, Union
from dataclasses import dataclass, field
import logging

from .faults import (
    AlreadyStarted,
    AlreadyStarting,
    ConfigInvalidFault,
    DuplicateService,
    Fault,
    NotDependent,
    ReservedName,
    UnknownService,
)
from .options import deep_merge, deep_set


logger = logging.getLogger("ignition.registry")

# Import key under which every service receives its RegistryHandle.
APP_KEY = "__app__"

# Module-loading capabilities injected next to the registry handle.
REQUIRE_KEY = "require"
REQUIRE_DEFAULT_KEY = "require_default"

RESERVED_NAMES = frozenset({REQUIRE_KEY, REQUIRE_DEFAULT_KEY, APP_KEY})

Dependencies = Union[List[str], Dict[str, str], None]


@dataclass
class ServiceSpec:
    """
    Declaration of one service.

    ``dependencies`` is ``None`` when the service has no dependency
    container at all, a list of names imported under their own name, or a
    dict mapping a local alias to a service name.
    """

    dependencies: Dependencies = None
    options: Any = None
    ignore: bool = False
    module: Optional[Callable[..., Any]] = None
    path: Optional[str] = None
    callback: bool = False

    _FIELDS = ("dependencies", "options", "ignore", "module", "path", "callback")

    @classmethod
    def from_mapping(cls, name: str, data: Union["ServiceSpec", Mapping[str, Any]]) -> "ServiceSpec":
        """
        Build a spec from a plain mapping (config file or ``add_service``).

        Raises:
            ConfigInvalidFault: On unknown keys or a malformed dependency container
        """
        if isinstance(data, ServiceSpec):
            return data

        if data is None:
            data = {}

        if not isinstance(data, Mapping):
            raise ConfigInvalidFault(
                f"services.{name}", f"expected a mapping, got {type(data).__name__}"
            )

        unknown = set(data) - set(cls._FIELDS)
        if unknown:
            raise ConfigInvalidFault(
                f"services.{name}", f"unknown keys: {', '.join(sorted(unknown))}"
            )

        dependencies = data.get("dependencies")
        if dependencies is not None:
            if isinstance(dependencies, Mapping):
                dependencies = dict(dependencies)
            elif isinstance(dependencies, (list, tuple)):
                dependencies = list(dependencies)
            else:
                raise ConfigInvalidFault(
                    f"services.{name}.dependencies",
                    "expected a list of names or a mapping of alias to name",
                )

        return cls(
            dependencies=dependencies,
            options=data.get("options"),
            ignore=bool(data.get("ignore", False)),
            module=data.get("module"),
            path=data.get("path"),
            callback=bool(data.get("callback", False)),
        )

    def dependency_names(self) -> List[str]:
        """Names of the services this one depends on, in declaration order."""
        if not self.dependencies:
            return []
        if isinstance(self.dependencies, dict):
            return list(self.dependencies.values())
        return list(self.dependencies)

    def import_keys(self) -> List[str]:
        """Keys under which dependencies land in the service's imports."""
        if not self.dependencies:
            return []
        return list(self.dependencies)


class ServiceRegistry:
    """
    Service table plus the run-state of one scheduler.

    Invariant: after registration a name is in exactly one of
    ``ignored``, ``awaiting``, ``starting`` or ``resolved``.
    """

    def __init__(self, services: Optional[Mapping[str, Any]] = None, config: Any = None):
        self.config = config
        self.services: Dict[str, ServiceSpec] = {}
        self.awaiting: List[str] = []
        self.starting: Set[str] = set()
        self.resolved: Dict[str, Any] = {}
        self.ignored: Set[str] = set()
        self.teardown: Dict[str, Callable[[], Any]] = {}

        self.executing = False
        self.started = False

        self._fault_listener: Optional[Callable[[Fault], None]] = None

        for name, data in (services or {}).items():
            self.services[name] = ServiceSpec.from_mapping(name, data)
            self.awaiting.append(name)

    def bind(self, listener: Callable[[Fault], None]) -> None:
        """Route faults raised by dynamic mutations to the running scheduler."""
        self._fault_listener = listener

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_service(self, name: str, spec: Union[ServiceSpec, Mapping[str, Any]]) -> None:
        """
        Add service to the graph.

        Raises:
            DuplicateService: If ``name`` is already declared
            AlreadyStarted: If the run already fully started
            ReservedName: If ``name`` or one of its import keys is reserved
        """
        if name in self.services:
            raise DuplicateService(name)

        if self.started:
            raise AlreadyStarted(name)

        spec = ServiceSpec.from_mapping(name, spec)
        self._guard_names([name, *spec.import_keys()])

        self.services[name] = spec
        if spec.ignore and self.executing:
            self.ignored.add(name)
        else:
            self.awaiting.append(name)

        logger.debug(f"Added service '{name}'")

    def add_dependency(self, name: str, dependency: str, alias: Optional[str] = None) -> None:
        """
        Add new dependency to a service.

        Raises:
            UnknownService: If ``name`` is not declared
            AlreadyStarting: If ``name`` already began activation
            NotDependent: If ``name`` was declared without dependencies
            ReservedName: If the import key is reserved
        """
        if name not in self.services:
            raise UnknownService(name)

        if self.has_begun(name):
            raise AlreadyStarting(name)

        spec = self.services[name]
        if spec.dependencies is None:
            raise NotDependent(name)

        self._guard_names([alias or dependency])

        if alias and isinstance(spec.dependencies, list):
            spec.dependencies = {entry: entry for entry in spec.dependencies}

        if isinstance(spec.dependencies, list):
            spec.dependencies.append(dependency)
        else:
            spec.dependencies[alias or dependency] = dependency

        logger.debug(f"Added dependency '{dependency}' to '{name}'" + (f" as '{alias}'" if alias else ""))

    def set_option(self, name: str, key: str, value: Any) -> None:
        """
        Set option for service at a dot-separated key path.

        Raises:
            UnknownService: If ``name`` is not declared
            AlreadyStarting: If ``name`` already began activation
        """
        if name not in self.services:
            raise UnknownService(name, action="set option")

        if self.has_begun(name):
            raise AlreadyStarting(name, action="set option")

        spec = self.services[name]
        spec.options = deep_set(spec.options, key, value)
        logger.debug(f"Set option '{key}' for '{name}'")

    def add_options(self, name: str, options: Mapping[str, Any]) -> None:
        """
        Deep-merge options into a service's options.

        Raises:
            UnknownService: If ``name`` is not declared
            AlreadyStarting: If ``name`` already began activation
        """
        if name not in self.services:
            raise UnknownService(name, action="add options")

        if self.has_begun(name):
            raise AlreadyStarting(name, action="add options")

        spec = self.services[name]
        spec.options = deep_merge(spec.options, options)
        logger.debug(f"Added options {sorted(options)} for '{name}'")

    def get_config(self) -> Any:
        """Return the run configuration."""
        return self.config

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_begun(self, name: str) -> bool:
        return name in self.starting or name in self.resolved

    def check_reserved(self) -> None:
        """
        Check every declared name and import key against reserved names.

        Raises:
            ReservedName: On the first reserved identifier found
        """
        for name, spec in self.services.items():
            for candidate in (name, *spec.import_keys()):
                if candidate in RESERVED_NAMES:
                    raise ReservedName(candidate)

    def fill_ignored(self) -> None:
        """Move services flagged ``ignore`` out of ``awaiting``."""
        for name in list(self.awaiting):
            if self.services[name].ignore:
                self.ignored.add(name)
                self.awaiting.remove(name)

    def state_of(self, name: str) -> Optional[str]:
        if name in self.ignored:
            return "ignored"
        if name in self.resolved:
            return "resolved"
        if name in self.starting:
            return "starting"
        if name in self.awaiting:
            return "awaiting"
        return None

    def __contains__(self, name: str) -> bool:
        return name in self.services

    def __iter__(self) -> Iterator[str]:
        return iter(self.services)

    def __len__(self) -> int:
        return len(self.services)

    def _guard_names(self, names: List[str]) -> None:
        for candidate in names:
            if candidate in RESERVED_NAMES:
                fault = ReservedName(candidate)
                if self._fault_listener is not None:
                    self._fault_listener(fault)
                raise fault


class RegistryHandle:
    """
    Capability handed to running services under the ``__app__`` import key.

    Exposes the registry mutations and nothing else of the scheduler.
    """

    __slots__ = ("_registry",)

    def __init__(self, registry: ServiceRegistry):
        self._registry = registry

    def add_service(self, name: str, spec: Union[ServiceSpec, Mapping[str, Any]]) -> None:
        self._registry.add_service(name, spec)

    def add_dependency(self, name: str, dependency: str, alias: Optional[str] = None) -> None:
        self._registry.add_dependency(name, dependency, alias)

    def set_option(self, name: str, key: str, value: Any) -> None:
        self._registry.set_option(name, key, value)

    def add_options(self, name: str, options: Mapping[str, Any]) -> None:
        self._registry.add_options(name, options)

    def get_config(self) -> Any:
        return self._registry.get_config()

    def __repr__(self) -> str:
        return f"RegistryHandle({len(self._registry)} services)"
