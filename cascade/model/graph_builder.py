"""
Cascade Graph Builder
=====================

NetworkX-based dependency graph of the declared nodes of a repository.

Design Decisions:
-----------------
1. Uses a NetworkX DiGraph as the underlying data structure; vertices are
   integer handles in declaration order and carry the Node as an attribute
2. Edges point from a dependency to its dependent (X -> Y means "Y depends
   on X"), so everything impacted by a change is found by following edges
   forward
3. The graph is validated once in build() and never mutated afterwards;
   there are no add/remove methods, so a built graph can be shared freely
4. Queries never raise: unknown names yield empty results
5. The JSON artifact is a trusted snapshot and is reloaded without
   re-running validation

This module is the central data structure that all impact analysis operates on.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import networkx as nx

from .schemas import Node, NodeCreationError, normalize_path

logger = logging.getLogger(__name__)


class DependencyGraphError(Exception):
    """Base class for dependency graph construction and loading errors."""


class DuplicateNodeNameError(DependencyGraphError):
    """A node with the same name was found in the list of nodes."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Duplicate node name found: {name}")


class MissingDependencyError(DependencyGraphError):
    """A node declares a dependency that is not in the graph."""

    def __init__(self, dependency: str, node: str, known_names: str):
        self.dependency = dependency
        self.node = node
        self.known_names = known_names
        super().__init__(
            f"Dependency '{dependency}' not in the graph for '{node}'. "
            f"Existing node names: {known_names}"
        )


class CircularDependencyError(DependencyGraphError):
    """The dependency graph contains a cycle.

    Attributes:
        cycle: Names along the witness cycle, starting at the repeated node
        first: Name of the node the cycle starts (and ends) at
        path: The cycle rendered as ``a -> b -> c``
    """

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        self.first = self.cycle[0]
        self.path = " -> ".join(self.cycle)
        super().__init__(
            f"Circular dependency detected: {self.path} -> {self.first}. "
            "This means there is a cycle in the dependencies where a node depends on itself "
            "either directly or through other nodes."
        )


class ArtifactError(DependencyGraphError):
    """A serialized graph artifact could not be loaded."""


class DependencyGraph:
    """Validated, read-only dependency graph.

    Usage:
        graph = DependencyGraph.build(nodes)
        graph.get_node("api")
        graph.downstream_of("core")         # everything that depends on core
        graph.affected_by(["core/src/x.py"])  # {"core", "api", ...}

        # Artifact round-trip
        graph.save("graph.json")
        same = DependencyGraph.load("graph.json")
    """

    def __init__(self, graph: nx.DiGraph, name_to_index: dict[str, int]):
        """Wrap an already validated graph.

        Use build() or from_dict() instead of calling this directly.
        """
        self._graph = graph
        self._name_to_index = dict(name_to_index)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(cls, nodes: Iterable[Node], allow_cycles: bool = False) -> "DependencyGraph":
        """Build and validate a dependency graph.

        Args:
            nodes: Declared nodes, one per declaration file
            allow_cycles: Skip the acyclicity check

        Returns:
            A fully built DependencyGraph

        Raises:
            DuplicateNodeNameError: Two nodes share a name
            MissingDependencyError: A dependency names an undeclared node
            CircularDependencyError: The graph has a cycle and allow_cycles is False
        """
        nodes = list(nodes)

        seen_names = set()
        for node in nodes:
            if node.name in seen_names:
                raise DuplicateNodeNameError(node.name)
            seen_names.add(node.name)

        graph = nx.DiGraph()
        name_to_index: dict[str, int] = {}
        for index, node in enumerate(nodes):
            graph.add_node(index, node=node)
            name_to_index[node.name] = index

        for index, node in enumerate(nodes):
            for dep_name in sorted(node.dependencies):
                dep_index = name_to_index.get(dep_name)
                if dep_index is None:
                    raise MissingDependencyError(
                        dep_name, node.name, ", ".join(name_to_index.keys())
                    )
                graph.add_edge(dep_index, index)

        if not allow_cycles:
            try:
                list(nx.topological_sort(graph))
            except nx.NetworkXUnfeasible:
                cycle = _trace_cycle(graph)
                names = [graph.nodes[i]["node"].name for i in cycle]
                logger.debug("Cycle detected while building graph: %s", names)
                raise CircularDependencyError(names) from None

        logger.debug(
            "Built dependency graph with %d nodes and %d edges",
            graph.number_of_nodes(), graph.number_of_edges()
        )
        return cls(graph, name_to_index)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _node_at(self, index: int) -> Node:
        return self._graph.nodes[index]["node"]

    def get_node(self, name: str) -> Optional[Node]:
        """Get a node by name, or None if it is not in the graph."""
        index = self._name_to_index.get(name)
        if index is None:
            return None
        return self._node_at(index)

    def get_all_nodes(self) -> list[Node]:
        """All nodes in declaration order."""
        return [self._node_at(index) for index in self._graph.nodes()]

    @property
    def names(self) -> list[str]:
        return list(self._name_to_index.keys())

    @property
    def node_count(self) -> int:
        """Total number of nodes in the graph."""
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        """Total number of dependency edges in the graph."""
        return self._graph.number_of_edges()

    def __len__(self) -> int:
        return self.node_count

    def __contains__(self, name: object) -> bool:
        return name in self._name_to_index

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _reachable(self, name: str, forward: bool) -> list[Node]:
        start = self._name_to_index.get(name)
        if start is None:
            return []

        neighbors = self._graph.successors if forward else self._graph.predecessors
        results = []
        visited = set()
        stack = [start]

        while stack:
            index = stack.pop()
            for neighbor in neighbors(index):
                if neighbor not in visited:
                    visited.add(neighbor)
                    results.append(self._node_at(neighbor))
                    stack.append(neighbor)

        return results

    def upstream_of(self, name: str) -> list[Node]:
        """Nodes that ``name`` directly or transitively depends on.

        Walks incoming edges. Each reachable node appears once; the start node
        only appears if it lies on a cycle.
        """
        return self._reachable(name, forward=False)

    def downstream_of(self, name: str) -> list[Node]:
        """Nodes that directly or transitively depend on ``name``.

        Walks outgoing edges. Each reachable node appears once; the start node
        only appears if it lies on a cycle.
        """
        return self._reachable(name, forward=True)

    def affected_by(self, changed_paths: Iterable[Any]) -> set[str]:
        """Names of all nodes affected by a set of changed files.

        A node is affected when it owns at least one changed path, or when it
        is downstream of such a node.

        Args:
            changed_paths: Repository-relative file paths

        Returns:
            Set of affected node names
        """
        changed = [normalize_path(p) for p in changed_paths]
        affected: set[str] = set()

        for node in self.get_all_nodes():
            if any(node.includes_path(path) for path in changed):
                affected.add(node.name)
                affected.update(n.name for n in self.downstream_of(node.name))

        logger.debug("%d changed paths affect %d nodes", len(changed), len(affected))
        return affected

    def topological_order(self) -> list[Node]:
        """Nodes with every dependency listed before its dependents.

        Ties are broken by declaration order.

        Raises:
            CircularDependencyError: If the graph was built with allow_cycles
                and actually contains a cycle
        """
        try:
            order = list(nx.lexicographical_topological_sort(self._graph))
        except nx.NetworkXUnfeasible:
            cycle = _trace_cycle(self._graph)
            raise CircularDependencyError([self._node_at(i).name for i in cycle]) from None
        return [self._node_at(index) for index in order]

    # ------------------------------------------------------------------
    # Artifact serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Convert graph to a dictionary snapshot.

        Returns:
            Dictionary with 'graph' (nodes and edges by handle) and
            'name_to_index' keys
        """
        return {
            "graph": {
                "nodes": [node.to_dict() for node in self.get_all_nodes()],
                "node_holes": [],
                "edge_property": "directed",
                "edges": [[source, target, None] for source, target in self._graph.edges()],
            },
            "name_to_index": dict(self._name_to_index),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DependencyGraph":
        """Rebuild a graph from a snapshot produced by to_dict().

        The snapshot is trusted: no duplicate, dependency, or cycle checks
        are re-run.

        Raises:
            ArtifactError: If the snapshot is structurally malformed
        """
        try:
            raw_graph = data["graph"]
            nodes = [Node.from_dict(entry) for entry in raw_graph["nodes"]]

            graph = nx.DiGraph()
            for index, node in enumerate(nodes):
                graph.add_node(index, node=node)

            for edge in raw_graph.get("edges", []):
                source, target = int(edge[0]), int(edge[1])
                if not (graph.has_node(source) and graph.has_node(target)):
                    raise ArtifactError(f"Edge {source} -> {target} references an unknown node")
                graph.add_edge(source, target)

            name_to_index = data.get("name_to_index")
            if name_to_index is None:
                name_to_index = {node.name: index for index, node in enumerate(nodes)}
            for name, index in name_to_index.items():
                if not graph.has_node(index) or graph.nodes[index]["node"].name != name:
                    raise ArtifactError(f"Index entry '{name}' -> {index} does not match any node")
        except (KeyError, TypeError, ValueError, IndexError, NodeCreationError) as e:
            raise ArtifactError(f"Malformed graph artifact: {e!r}") from e

        logger.debug("Loaded graph artifact with %d nodes", graph.number_of_nodes())
        return cls(graph, name_to_index)

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, text: str) -> "DependencyGraph":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ArtifactError(f"Graph artifact is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ArtifactError("Graph artifact must be a JSON object")
        return cls.from_dict(data)

    def save(self, path: Union[str, Path], indent: Optional[int] = None) -> Path:
        """Write the graph artifact to ``path`` and return the path."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(indent=indent), encoding="utf-8")
        logger.info("Wrote graph artifact to %s", path)
        return path

    @classmethod
    def load(cls, path: Union[str, Path]) -> "DependencyGraph":
        """Read a graph artifact written by save()."""
        return cls.from_json(Path(path).read_text(encoding="utf-8"))


def _trace_cycle(graph: nx.DiGraph) -> list[int]:
    """Find a witness cycle in a graph known to be cyclic.

    The blocking vertex is the first vertex (in handle order) that belongs to
    a strongly connected component containing a cycle. From there, the walk
    follows the first successor inside that component until a vertex repeats.
    The result is a cycle, not necessarily the shortest one.
    """
    cyclic: dict[int, set] = {}
    for component in nx.strongly_connected_components(graph):
        if len(component) > 1 or any(graph.has_edge(n, n) for n in component):
            for n in component:
                cyclic[n] = component

    current = min(cyclic)
    component = cyclic[current]
    path = [current]
    position = {current: 0}

    while True:
        current = next(s for s in graph.successors(current) if s in component)
        if current in position:
            return path[position[current]:]
        position[current] = len(path)
        path.append(current)
