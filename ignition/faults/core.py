"""
Ignition Faults - Core types and fault taxonomy.

Defines:
- Fault base class (structured fault objects)
- FaultDomain (explicit fault domains)
- Severity levels
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """
    Fault severity levels.

    Determines logging level and whether the run can continue.
    """
    INFO = "info"       # Informational, no action needed
    WARN = "warn"       # Warning, should be reviewed
    ERROR = "error"     # Error, the current operation failed
    FATAL = "fatal"     # Fatal, the whole run is aborted


class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the functional area where a fault occurred.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name  # For compatibility with Enum consumers
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


# Standard Domains
FaultDomain.CONFIG = FaultDomain("config", "Configuration errors")
FaultDomain.REGISTRY = FaultDomain("registry", "Service registry mutations")
FaultDomain.GRAPH = FaultDomain("graph", "Unsatisfiable dependency graphs")
FaultDomain.LOADER = FaultDomain("loader", "Service module loading")
FaultDomain.STARTUP = FaultDomain("startup", "Service activation")
FaultDomain.SHUTDOWN = FaultDomain("shutdown", "Service teardown")


# Domain defaults
DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: {"severity": Severity.FATAL},
    FaultDomain.REGISTRY: {"severity": Severity.ERROR},
    FaultDomain.GRAPH: {"severity": Severity.FATAL},
    FaultDomain.LOADER: {"severity": Severity.FATAL},
    FaultDomain.STARTUP: {"severity": Severity.FATAL},
    FaultDomain.SHUTDOWN: {"severity": Severity.ERROR},
}


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    A fault is NOT a bare exception. It is a first-class value with:
    - Stable machine-readable code
    - Human-readable message
    - Severity level
    - Domain classification

    Faults are never retried: every fatal fault aborts the run it belongs to.

    Attributes:
        code: Stable machine-readable identifier (e.g., "UNKNOWN_SERVICE")
        message: Human-readable summary
        severity: Fault severity (INFO, WARN, ERROR, FATAL)
        domain: Fault domain (CONFIG, REGISTRY, GRAPH, ...)
        metadata: Additional context data

    Example:
        ```python
        raise Fault(
            code="SERVICE_BROKEN",
            message="Service 'db' is broken",
            domain=FaultDomain.STARTUP,
        )
        ```
    """

    def __init__(
        self,
        code: str | None = None,
        message: str | None = None,
        *,
        domain: FaultDomain | None = None,
        severity: Optional[Severity] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        # Fallback to class attributes if not provided
        self.code = code if code is not None else getattr(self, "code", None)
        self.message = message if message is not None else getattr(self, "message", None)
        self.domain = domain if domain is not None else getattr(self, "domain", None)

        if self.code is None or self.message is None or self.domain is None:
            raise TypeError(f"{self.__class__.__name__} missing required code, message, or domain")

        super().__init__(self.message)

        defaults = DOMAIN_DEFAULTS.get(self.domain, {"severity": Severity.ERROR})
        self.severity = severity or defaults["severity"]
        self.metadata = metadata or {}

    @property
    def cause(self) -> Optional[BaseException]:
        """Underlying exception this fault wraps, if any."""
        return self.metadata.get("cause")

    @property
    def fatal(self) -> bool:
        return self.severity == Severity.FATAL

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize fault to dictionary.

        Returns:
            Dictionary representation suitable for logging/serialization
        """
        metadata = {
            key: (repr(value) if isinstance(value, BaseException) else value)
            for key, value in self.metadata.items()
        }
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "metadata": metadata,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(code={self.code!r}, "
            f"domain={self.domain.value}, severity={self.severity.value})"
        )
