"""
Dependency evaluator - decides whether an awaiting service may activate.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .faults import GraphFault, IgnoredDependency, UnknownDependency
from .registry import ServiceRegistry


class Eligibility(str, Enum):
    """Outcome of evaluating one awaiting service."""
    READY = "ready"
    BLOCKED = "blocked"
    DEADLOCKED_INPUT = "deadlocked_input"


@dataclass(frozen=True)
class Evaluation:
    eligibility: Eligibility
    fault: Optional[GraphFault] = None

    @property
    def ready(self) -> bool:
        return self.eligibility is Eligibility.READY


READY = Evaluation(Eligibility.READY)
BLOCKED = Evaluation(Eligibility.BLOCKED)


def evaluate(name: str, registry: ServiceRegistry) -> Evaluation:
    """
    Evaluate service ``name`` against the current registry state.

    A dependency on an ignored or undeclared service is reported as
    ``DEADLOCKED_INPUT`` carrying the fault that must abort the run. The
    check runs on every evaluation, so edges added mid-run are covered.
    """
    spec = registry.services[name]
    if not spec.dependencies:
        return READY

    blocked = False
    for dependency in spec.dependency_names():
        if dependency in registry.ignored:
            return Evaluation(Eligibility.DEADLOCKED_INPUT, IgnoredDependency(name, dependency))

        if dependency not in registry.services:
            return Evaluation(Eligibility.DEADLOCKED_INPUT, UnknownDependency(name, dependency))

        if dependency not in registry.resolved:
            blocked = True

    return BLOCKED if blocked else READY
