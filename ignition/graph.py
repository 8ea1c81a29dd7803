"""
Static dependency graph analysis with Tarjan's algorithm for cycle detection.

The runtime scheduler never needs this module: it discovers deadlocks
round by round. The graph is used to validate a service configuration
before running it and to render it for inspection.
"""

from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from .faults import CircularDependency
from .registry import ServiceSpec


class DependencyGraph:
    """
    Dependency graph with cycle detection and topological sorting.

    Uses Tarjan's strongly connected components algorithm for O(V+E) cycle detection.
    """

    def __init__(self):
        self._adjacency: Dict[str, List[str]] = {}
        self._ignored: Set[str] = set()

    @classmethod
    def from_services(cls, services: Mapping[str, Any]) -> "DependencyGraph":
        """
        Build graph from service declarations (mappings or ServiceSpec).

        Ignored services are kept as known names but contribute no edges.
        """
        graph = cls()
        for name, data in services.items():
            spec = ServiceSpec.from_mapping(name, data)
            if spec.ignore:
                graph._ignored.add(name)
            graph.add_node(name, [] if spec.ignore else spec.dependency_names())
        return graph

    def add_node(self, name: str, dependencies: List[str]) -> None:
        """
        Add node to graph.

        Args:
            name: Node name
            dependencies: List of dependency names
        """
        self._adjacency[name] = list(dependencies)

    def missing(self) -> List[Tuple[str, str]]:
        """
        Edges pointing at undeclared names.

        Returns:
            List of (service, dependency) pairs
        """
        return [
            (name, dep)
            for name, deps in self._adjacency.items()
            for dep in deps
            if dep not in self._adjacency
        ]

    def ignored_edges(self) -> List[Tuple[str, str]]:
        """Edges pointing at ignored services, as (service, dependency) pairs."""
        return [
            (name, dep)
            for name, deps in self._adjacency.items()
            for dep in deps
            if dep in self._ignored
        ]

    def topological_sort(self) -> List[str]:
        """
        Compute topological sort of graph (dependency order).

        Returns:
            List of node names in dependency order (dependencies first)

        Raises:
            CircularDependency: If cycle detected
        """
        cycle = self.find_cycle()
        if cycle:
            raise CircularDependency(cycle)

        # Kahn's algorithm over declared nodes only
        remaining: Dict[str, int] = {
            name: sum(1 for dep in deps if dep in self._adjacency)
            for name, deps in self._adjacency.items()
        }
        queue = [name for name, degree in remaining.items() if degree == 0]
        result: List[str] = []

        while queue:
            node_name = queue.pop(0)
            result.append(node_name)

            for dependent in self.get_dependents(node_name):
                remaining[dependent] -= self._adjacency[dependent].count(node_name)
                if remaining[dependent] == 0:
                    queue.append(dependent)

        return result

    def find_cycle(self) -> Optional[List[str]]:
        """
        Find cycle in graph using Tarjan's algorithm.

        A service depending on itself is a cycle of length one.

        Returns:
            List of node names forming cycle, or None if no cycle
        """
        index_counter = [0]
        stack: List[str] = []
        lowlinks: Dict[str, int] = {}
        index: Dict[str, int] = {}
        on_stack: Set[str] = set()
        cycles: List[List[str]] = []

        def strongconnect(node_name: str) -> None:
            """Tarjan's strongconnect subroutine."""
            index[node_name] = index_counter[0]
            lowlinks[node_name] = index_counter[0]
            index_counter[0] += 1
            stack.append(node_name)
            on_stack.add(node_name)

            for dep_name in self._adjacency.get(node_name, []):
                if dep_name not in self._adjacency:
                    continue
                if dep_name not in index:
                    strongconnect(dep_name)
                    lowlinks[node_name] = min(lowlinks[node_name], lowlinks[dep_name])
                elif dep_name in on_stack:
                    lowlinks[node_name] = min(lowlinks[node_name], index[dep_name])

            # If node is root of SCC, pop the component
            if lowlinks[node_name] == index[node_name]:
                component: List[str] = []
                while True:
                    w = stack.pop()
                    on_stack.remove(w)
                    component.append(w)
                    if w == node_name:
                        break

                if len(component) > 1 or node_name in self._adjacency[node_name]:
                    cycles.append(list(reversed(component)))

        for node_name in self._adjacency:
            if node_name not in index:
                strongconnect(node_name)

        if cycles:
            return cycles[0]

        return None

    def get_dependencies(self, node_name: str) -> List[str]:
        """Get direct dependencies of node."""
        return self._adjacency.get(node_name, [])

    def get_dependents(self, node_name: str) -> List[str]:
        """
        Get nodes that depend on given node (reverse dependencies).

        Args:
            node_name: Node name

        Returns:
            List of dependent node names
        """
        return [name for name, deps in self._adjacency.items() if node_name in deps]

    def get_layers(self) -> List[List[str]]:
        """
        Get dependency layers.

        Every service in a layer is activated in the same scheduling round
        when all activations complete synchronously.

        Returns:
            List of layers; stops early at the first unsatisfiable layer
        """
        layers: List[List[str]] = []
        remaining = [name for name in self._adjacency if name not in self._ignored]
        loaded: Set[str] = set()

        while remaining:
            layer = [
                name for name in remaining
                if set(self._adjacency[name]).issubset(loaded)
            ]

            if not layer:
                break

            layers.append(layer)
            remaining = [name for name in remaining if name not in layer]
            loaded.update(layer)

        return layers

    def validate(self) -> Tuple[bool, Optional[List[str]]]:
        """
        Validate graph for cycles.

        Returns:
            Tuple of (is_valid, cycle_if_invalid)
        """
        cycle = self.find_cycle()
        return (cycle is None, cycle)

    def to_dict(self) -> Dict[str, List[str]]:
        """Export graph as adjacency dict."""
        return {name: list(deps) for name, deps in self._adjacency.items()}

    def to_dot(self) -> str:
        """
        Export graph as DOT format for visualization.

        Returns:
            DOT graph string
        """
        lines = ["digraph services {"]
        lines.append("  rankdir=LR;")
        lines.append("  node [shape=box, style=rounded];")

        for name in self._adjacency:
            style = " [style=dashed]" if name in self._ignored else ""
            lines.append(f'  "{name}"{style};')

        for name, deps in self._adjacency.items():
            for dep in deps:
                lines.append(f'  "{name}" -> "{dep}";')

        lines.append("}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._adjacency)

    def __contains__(self, name: str) -> bool:
        return name in self._adjacency

    def __repr__(self) -> str:
        return f"DependencyGraph({len(self._adjacency)} nodes)"
