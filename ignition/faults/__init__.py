"""
Ignition Faults - typed fault signals for the service scheduler.

Every failure in Ignition is a ``Fault``: a structured exception with a
stable code, a domain and a severity. Registry faults are raised
synchronously to the caller of a mutation; every other fault settles the
single outcome of a run and is raised from ``Scheduler.execute()``.
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    # Config
    ConfigFault,
    ConfigMissingFault,
    ConfigInvalidFault,
    # Registry
    RegistryFault,
    DuplicateService,
    AlreadyStarted,
    AlreadyStarting,
    UnknownService,
    NotDependent,
    ReservedName,
    # Graph
    GraphFault,
    IgnoredDependency,
    UnknownDependency,
    CircularDependency,
    # Loader
    LoaderFault,
    ModuleNotFoundFault,
    ModuleLoadError,
    # Startup
    StartupFault,
    ServiceStartupError,
    StartupTimeout,
    AlreadyExecuted,
    # Shutdown
    ShutdownFault,
    NotStarted,
    ShutdownTimeout,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",

    # Config
    "ConfigFault",
    "ConfigMissingFault",
    "ConfigInvalidFault",

    # Registry
    "RegistryFault",
    "DuplicateService",
    "AlreadyStarted",
    "AlreadyStarting",
    "UnknownService",
    "NotDependent",
    "ReservedName",

    # Graph
    "GraphFault",
    "IgnoredDependency",
    "UnknownDependency",
    "CircularDependency",

    # Loader
    "LoaderFault",
    "ModuleNotFoundFault",
    "ModuleLoadError",

    # Startup
    "StartupFault",
    "ServiceStartupError",
    "StartupTimeout",
    "AlreadyExecuted",

    # Shutdown
    "ShutdownFault",
    "NotStarted",
    "ShutdownTimeout",
]
