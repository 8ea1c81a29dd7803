"""
Ignition Faults - Domain-specific fault types.

Provides concrete fault classes for each domain:
- CONFIG faults
- REGISTRY faults (raised synchronously from registry mutations)
- GRAPH faults (unsatisfiable dependency graphs)
- LOADER faults
- STARTUP faults
- SHUTDOWN faults
"""

from typing import Any, Iterable, Optional
from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            severity=severity,
            metadata=metadata,
        )


class ConfigMissingFault(ConfigFault):
    """Required configuration is missing."""

    def __init__(self, key: str, **kwargs):
        super().__init__(
            code="CONFIG_MISSING",
            message=f"Required configuration '{key}' is missing",
            metadata={"key": key, **kwargs.get("metadata", {})},
        )


class ConfigInvalidFault(ConfigFault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str, **kwargs):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# REGISTRY Faults
# ============================================================================

class RegistryFault(Fault):
    """Base class for service registry faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.ERROR,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.REGISTRY,
            severity=severity,
            metadata=metadata,
        )


class DuplicateService(RegistryFault):
    """A service with the same name is already declared."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(
            code="DUPLICATE_SERVICE",
            message=f"Cannot add service '{service}'. The service already exists.",
            metadata={"service": service},
        )


class AlreadyStarted(RegistryFault):
    """The run already reached the fully-started state."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(
            code="ALREADY_STARTED",
            message=f"Cannot add service '{service}' after the application fully started.",
            metadata={"service": service},
        )


class AlreadyStarting(RegistryFault):
    """The target service already began activation."""

    def __init__(self, service: str, action: str = "add dependency"):
        self.service = service
        super().__init__(
            code="ALREADY_STARTING",
            message=f"Cannot {action} for '{service}'. The service has been started.",
            metadata={"service": service, "action": action},
        )


class UnknownService(RegistryFault):
    """The target service is not declared."""

    def __init__(self, service: str, action: str = "add dependency"):
        self.service = service
        super().__init__(
            code="UNKNOWN_SERVICE",
            message=f"Cannot {action} for '{service}'. The service does not exist.",
            metadata={"service": service, "action": action},
        )


class NotDependent(RegistryFault):
    """The target service was declared without a dependency container."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(
            code="NOT_DEPENDENT",
            message=f"Cannot add dependency for '{service}'. The service has no dependencies.",
            metadata={"service": service},
        )


class ReservedName(RegistryFault):
    """A reserved identifier was used as a service name or dependency alias."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            code="RESERVED_NAME",
            message=f"Service name '{name}' is forbidden.",
            severity=Severity.FATAL,
            metadata={"name": name},
        )


# ============================================================================
# GRAPH Faults
# ============================================================================

class GraphFault(Fault):
    """Base class for unsatisfiable dependency graphs."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.GRAPH,
            severity=severity,
            metadata=metadata,
        )


class IgnoredDependency(GraphFault):
    """A service depends on a service flagged as ignored."""

    def __init__(self, service: str, dependency: str):
        self.service = service
        self.dependency = dependency
        super().__init__(
            code="IGNORED_DEPENDENCY",
            message=f"Dependency '{dependency}' on '{service}' is ignored",
            metadata={"service": service, "dependency": dependency},
        )


class UnknownDependency(GraphFault):
    """A service depends on a name that was never declared."""

    def __init__(self, service: str, dependency: str):
        self.service = service
        self.dependency = dependency
        super().__init__(
            code="UNKNOWN_DEPENDENCY",
            message=f"Dependency '{dependency}' on '{service}' was not found",
            metadata={"service": service, "dependency": dependency},
        )


class CircularDependency(GraphFault):
    """Awaiting services exist but none of them can ever become eligible."""

    def __init__(self, services: Iterable[str]):
        self.services = list(services)
        super().__init__(
            code="CIRCULAR_DEPENDENCY",
            message=(
                "Circular dependency detected while resolving "
                + ", ".join(self.services)
            ),
            metadata={"services": self.services},
        )


# ============================================================================
# LOADER Faults
# ============================================================================

class LoaderFault(Fault):
    """Base class for service module loading faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.LOADER,
            severity=severity,
            metadata=metadata,
        )


class ModuleNotFoundFault(LoaderFault):
    """Identifier does not point at an importable module or attribute."""

    def __init__(self, identifier: str, reason: str):
        self.identifier = identifier
        super().__init__(
            code="MODULE_NOT_FOUND",
            message=f"Cannot load '{identifier}': {reason}",
            metadata={"identifier": identifier, "reason": reason},
        )


class ModuleLoadError(LoaderFault):
    """The implementation of a service could not be obtained."""

    def __init__(self, service: str, cause: Optional[BaseException] = None):
        self.service = service
        detail = f": {cause}" if cause is not None else ": loader returned nothing"
        super().__init__(
            code="MODULE_LOAD_ERROR",
            message=f"Error occurs during module requiring ({service}){detail}",
            metadata={"service": service, "cause": cause},
        )
        self.__cause__ = cause


# ============================================================================
# STARTUP Faults
# ============================================================================

class StartupFault(Fault):
    """Base class for service activation faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.STARTUP,
            severity=severity,
            metadata=metadata,
        )


class ServiceStartupError(StartupFault):
    """A service implementation raised, or its awaitable failed."""

    def __init__(self, service: str, cause: BaseException):
        self.service = service
        super().__init__(
            code="SERVICE_STARTUP_ERROR",
            message=f"Error occurs during module '{service}' startup: {cause!r}",
            metadata={"service": service, "cause": cause},
        )
        self.__cause__ = cause


class StartupTimeout(StartupFault):
    """A service did not settle within the startup timeout."""

    def __init__(self, service: str, timeout: float):
        self.service = service
        self.timeout = timeout
        super().__init__(
            code="STARTUP_TIMEOUT",
            message=f"Timeout of startup module '{service}' is exceeded ({timeout}ms)",
            metadata={"service": service, "timeout": timeout},
        )


class AlreadyExecuted(StartupFault):
    """execute() was called on a scheduler that already ran."""

    def __init__(self):
        super().__init__(
            code="ALREADY_EXECUTED",
            message="Cannot execute the application twice.",
            severity=Severity.ERROR,
        )


# ============================================================================
# SHUTDOWN Faults
# ============================================================================

class ShutdownFault(Fault):
    """Base class for teardown faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.ERROR,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.SHUTDOWN,
            severity=severity,
            metadata=metadata,
        )


class NotStarted(ShutdownFault):
    """shutdown() was called before the run fully started."""

    def __init__(self):
        super().__init__(
            code="NOT_STARTED",
            message="The application cannot gracefully shutdown until fully started.",
        )


class ShutdownTimeout(ShutdownFault):
    """Teardown actions did not settle within the shutdown timeout."""

    def __init__(self, timeout: float, pending: Optional[list[str]] = None):
        self.timeout = timeout
        self.pending = pending or []
        super().__init__(
            code="SHUTDOWN_TIMEOUT",
            message=f"Timeout of shutdown is exceeded ({timeout}ms)",
            metadata={"timeout": timeout, "pending": self.pending},
        )
