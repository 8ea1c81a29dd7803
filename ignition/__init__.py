"""
Ignition - dependency-driven service activation.

Declare services with their options and dependencies, then let the
scheduler start each one as soon as everything it needs is running:

    from ignition import Scheduler

    async def create_db(options, imports):
        return await connect(options["dsn"])

    def create_api(options, imports):
        return Api(imports["db"])

    scheduler = Scheduler({
        "services": {
            "db": {"module": create_db, "options": {"dsn": "postgres://..."}},
            "api": {"module": create_api, "dependencies": ["db"]},
        },
    })

    services = await scheduler.execute()
    ...
    await scheduler.shutdown()
"""

__version__ = "1.0.0"

# Core
from .scheduler import Scheduler
from .registry import (
    ServiceRegistry,
    ServiceSpec,
    RegistryHandle,
    APP_KEY,
    REQUIRE_KEY,
    REQUIRE_DEFAULT_KEY,
    RESERVED_NAMES,
)
from .evaluator import Eligibility, Evaluation, evaluate
from .shutdown import ShutdownOrchestrator
from .loader import ModuleLoader
from .options import deep_set, deep_merge

# Configuration
from .config import IgnitionConfig, ConfigLoader

# Lifecycle
from .lifecycle import LifecyclePhase, LifecycleEvent, LifecycleManager

# Static analysis
from .graph import DependencyGraph

# Faults
from .faults import (
    Fault,
    FaultDomain,
    Severity,
    ConfigFault,
    ConfigMissingFault,
    ConfigInvalidFault,
    RegistryFault,
    DuplicateService,
    AlreadyStarted,
    AlreadyStarting,
    UnknownService,
    NotDependent,
    ReservedName,
    GraphFault,
    IgnoredDependency,
    UnknownDependency,
    CircularDependency,
    LoaderFault,
    ModuleNotFoundFault,
    ModuleLoadError,
    StartupFault,
    ServiceStartupError,
    StartupTimeout,
    AlreadyExecuted,
    ShutdownFault,
    NotStarted,
    ShutdownTimeout,
)


__all__ = [
    # Core
    "Scheduler",
    "ServiceRegistry",
    "ServiceSpec",
    "RegistryHandle",
    "APP_KEY",
    "REQUIRE_KEY",
    "REQUIRE_DEFAULT_KEY",
    "RESERVED_NAMES",
    "Eligibility",
    "Evaluation",
    "evaluate",
    "ShutdownOrchestrator",
    "ModuleLoader",
    "deep_set",
    "deep_merge",

    # Configuration
    "IgnitionConfig",
    "ConfigLoader",

    # Lifecycle
    "LifecyclePhase",
    "LifecycleEvent",
    "LifecycleManager",

    # Static analysis
    "DependencyGraph",

    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
    "ConfigFault",
    "ConfigMissingFault",
    "ConfigInvalidFault",
    "RegistryFault",
    "DuplicateService",
    "AlreadyStarted",
    "AlreadyStarting",
    "UnknownService",
    "NotDependent",
    "ReservedName",
    "GraphFault",
    "IgnoredDependency",
    "UnknownDependency",
    "CircularDependency",
    "LoaderFault",
    "ModuleNotFoundFault",
    "ModuleLoadError",
    "StartupFault",
    "ServiceStartupError",
    "StartupTimeout",
    "AlreadyExecuted",
    "ShutdownFault",
    "NotStarted",
    "ShutdownTimeout",
]
