"""Static validation of a service configuration."""

from dataclasses import dataclass, field
from typing import List

from ...config import IgnitionConfig
from ...faults import Fault
from ...graph import DependencyGraph
from ...registry import RESERVED_NAMES, ServiceSpec


@dataclass
class ValidationResult:
    """Result of configuration validation."""

    is_valid: bool
    service_count: int
    ignored_count: int
    layers: List[List[str]] = field(default_factory=list)
    faults: List[str] = field(default_factory=list)


def validate_config(config: IgnitionConfig) -> ValidationResult:
    """
    Validate a service graph without running it.

    Reports the conditions that would abort ``execute()`` before any
    service activates: reserved names, malformed declarations, unknown
    or ignored dependencies and dependency cycles. Services added at
    runtime are out of reach of this check.

    Args:
        config: Run configuration to validate

    Returns:
        ValidationResult with validation status and statistics
    """
    faults: List[str] = []
    specs = {}

    for name, data in config.services.items():
        try:
            spec = ServiceSpec.from_mapping(name, data)
        except Fault as e:
            faults.append(e.message)
            continue

        specs[name] = spec
        for candidate in (name, *spec.import_keys()):
            if candidate in RESERVED_NAMES:
                faults.append(f"Service '{name}' uses reserved name '{candidate}'")

        if spec.module is None and not spec.path:
            faults.append(f"Service '{name}' declares neither a module nor a path")

    graph = DependencyGraph.from_services(specs)

    for service, dependency in graph.missing():
        faults.append(f"Dependency '{dependency}' on '{service}' was not found")

    for service, dependency in graph.ignored_edges():
        faults.append(f"Dependency '{dependency}' on '{service}' is ignored")

    cycle = graph.find_cycle()
    if cycle:
        faults.append(f"Circular dependency: {' → '.join(cycle)} → {cycle[0]}")

    ignored = sum(1 for spec in specs.values() if spec.ignore)

    return ValidationResult(
        is_valid=not faults,
        service_count=len(config.services),
        ignored_count=ignored,
        layers=graph.get_layers() if not faults else [],
        faults=faults,
    )
