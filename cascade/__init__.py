"""
dependency-cascade - Affected Module Detection for Multi-Module Repositories
===========================================================================

Computes which modules ("nodes") of a repository are impacted by a set of
changed files, using dependency graphs declared in per-module
``dependencies.toml`` files.

Architecture Overview:
----------------------
- model/: Node declarations and the dependency graph engine
- ingestion/: Declaration file parsing and repository scanning
- analysis/: Impact queries (affected, upstream, downstream)
- reporting/: JSON and text rendering of query results

Design Decisions:
-----------------
1. NetworkX is used as the graph backend
2. Nodes are frozen dataclasses; a built graph is never mutated
3. Graph construction fails fast with a specific error per problem
4. The graph can be saved as a JSON artifact and queried later without rescanning
"""

__version__ = "0.1.0"

from .config import CascadeConfig
from .model import Node, DependencyGraph
