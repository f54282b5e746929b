"""
Impact Analysis
===============

Query surface used by the CLI and by CI tooling: prepare a graph from a
directory, then ask which nodes a set of changed files affects.

The graph itself answers in node names; this module resolves names back to
full Node records so callers get paths and metadata along with the names.
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Optional, Union

from ..config import CascadeConfig, ScanConfig
from ..ingestion.toml_loader import DeclarationLoader
from ..model.graph_builder import DependencyGraph
from ..model.schemas import Node, normalize_path

logger = logging.getLogger(__name__)


def prepare(root: Union[str, Path], declaration_name: Optional[str] = None,
            allow_cycles: bool = False, scan_config: Optional[ScanConfig] = None) -> DependencyGraph:
    """Build a dependency graph from every declaration under ``root``.

    Args:
        root: Directory to start the recursive scan from
        declaration_name: Declaration file name (defaults to the scan config's)
        allow_cycles: Accept a cyclic graph
        scan_config: Scan settings (uses defaults if None)

    Returns:
        The validated DependencyGraph
    """
    scan_config = scan_config or ScanConfig()
    if declaration_name:
        scan_config = replace(scan_config, declaration_file_name=declaration_name)

    nodes = DeclarationLoader(scan_config).scan(root)
    return DependencyGraph.build(nodes, allow_cycles=allow_cycles)


def _resolve(graph: DependencyGraph, names: Iterable[str]) -> list[Node]:
    wanted = set(names)
    return [node for node in graph.get_all_nodes() if node.name in wanted]


def affected_by(graph: DependencyGraph, changed_paths: Iterable[Union[str, Path]]) -> list[Node]:
    """Nodes affected by the changed files, in declaration order."""
    return _resolve(graph, graph.affected_by(changed_paths))


def upstream_of(graph: DependencyGraph, name: str) -> list[Node]:
    """Nodes that ``name`` transitively depends on."""
    return graph.upstream_of(name)


def downstream_of(graph: DependencyGraph, name: str) -> list[Node]:
    """Nodes that transitively depend on ``name``."""
    return graph.downstream_of(name)


@dataclass
class ImpactSummary:
    """Result of an impact query with the reasoning behind it.

    Attributes:
        changed_paths: The normalized paths that were queried
        owners: Node name -> changed paths it owns directly
        affected: All affected nodes (owners plus their downstream)
        unmatched_paths: Changed paths no node owns
    """
    changed_paths: list = field(default_factory=list)
    owners: dict = field(default_factory=dict)
    affected: list = field(default_factory=list)  # List of Node
    unmatched_paths: list = field(default_factory=list)

    @property
    def affected_names(self) -> list[str]:
        return [node.name for node in self.affected]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "changed_paths": self.changed_paths,
            "owners": self.owners,
            "affected": [node.to_dict() for node in self.affected],
            "unmatched_paths": self.unmatched_paths,
        }


class ImpactAnalyzer:
    """Answers impact queries against one built graph.

    Usage:
        analyzer = ImpactAnalyzer(DependencyGraph.load("graph.json"))
        nodes = analyzer.affected_by(["services/api/src/main.py"])
        summary = analyzer.summarize(["services/api/src/main.py", "README.md"])
    """

    def __init__(self, graph: DependencyGraph, config: Optional[CascadeConfig] = None):
        """Initialize the analyzer.

        Args:
            graph: Built dependency graph
            config: Configuration (uses defaults if None)
        """
        self.graph = graph
        self.config = config or CascadeConfig()

    @classmethod
    def from_artifact(cls, path: Union[str, Path],
                      config: Optional[CascadeConfig] = None) -> "ImpactAnalyzer":
        return cls(DependencyGraph.load(path), config)

    def affected_by(self, changed_paths: Iterable[Union[str, Path]]) -> list[Node]:
        return affected_by(self.graph, changed_paths)

    def upstream_of(self, name: str) -> list[Node]:
        return upstream_of(self.graph, name)

    def downstream_of(self, name: str) -> list[Node]:
        return downstream_of(self.graph, name)

    def summarize(self, changed_paths: Iterable[Union[str, Path]]) -> ImpactSummary:
        """Run an impact query and keep track of which node owns which path.

        Args:
            changed_paths: Repository-relative file paths

        Returns:
            ImpactSummary with owners, affected nodes and unmatched paths
        """
        changed = [normalize_path(p) for p in changed_paths]
        owners: dict[str, list[str]] = {}
        matched = set()

        for node in self.graph.get_all_nodes():
            owned = [path for path in changed if node.includes_path(path)]
            if owned:
                owners[node.name] = owned
                matched.update(owned)

        unmatched = [path for path in changed if path not in matched]
        if unmatched:
            logger.info("%d changed paths are not owned by any node", len(unmatched))

        return ImpactSummary(
            changed_paths=changed,
            owners=owners,
            affected=self.affected_by(changed),
            unmatched_paths=unmatched,
        )
