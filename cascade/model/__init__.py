"""
Cascade Model Module
====================

Contains the node model and the dependency graph engine.

Key Components:
- schemas.py: The Node dataclass and its path-matching rules
- patterns.py: Glob compilation used by Node.includes_path
- graph_builder.py: NetworkX-based graph construction, validation and queries

Design Philosophy:
- Nodes are immutable declarations produced by loaders
- The graph is validated once and read-only afterwards
- Construction errors are specific exception types carrying their payload
"""

from .schemas import Node, NodeCreationError, NoIncludedPathsError
from .graph_builder import (
    DependencyGraph,
    DependencyGraphError,
    DuplicateNodeNameError,
    MissingDependencyError,
    CircularDependencyError,
    ArtifactError,
)
