"""
Cascade Data Schemas
====================

The declarative unit of a repository: a named node, the directory it is
rooted at, the file-path rules that decide which files it owns, and the
names of the nodes it depends on.

Design Decisions:
-----------------
1. Node is a frozen dataclass; it is created once by a loader and only read
   afterwards (the graph shares the same instances with its callers)
2. An empty include list is rejected in __post_init__ so no construction path
   can bypass it
3. Metadata is opaque: it is carried through to the artifact and query output
   and never inspected
4. Pattern syntax is not validated here; a malformed glob simply never matches
"""

import copy
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Iterable, Optional

from .patterns import PatternError, matches

logger = logging.getLogger(__name__)


class NodeCreationError(Exception):
    """Base class for errors raised while creating a Node."""


class NoIncludedPathsError(NodeCreationError):
    """Raised when a node is declared without any include pattern."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No included paths found for node {name}")


def normalize_path(path: Any) -> str:
    """Normalize a path to POSIX form without a leading './'.

    ``"."`` and ``""`` both normalize to the empty string so that joining a
    pattern onto a root-level node leaves the pattern untouched.
    """
    normalized = PurePosixPath(str(path)).as_posix()
    return "" if normalized == "." else normalized


def _join(base_path: str, pattern: str) -> str:
    if not base_path:
        return pattern
    return str(PurePosixPath(base_path) / pattern)


@dataclass(frozen=True)
class Node:
    """A declared unit of the repository.

    Attributes:
        name: Identifier, unique across the whole graph
        base_path: Directory the node is rooted at (POSIX, repo-relative)
        included_patterns: Globs (relative to base_path) the node owns
        excluded_patterns: Globs that override an include match
        dependencies: Names of the nodes this node depends on
        metadata: Arbitrary payload carried through unmodified

    Example Usage:
        node = Node.create("api", "services/api", ["src/**"], ["src/gen/**"], ["core"])
        node.includes_path("services/api/src/main.py")   # True
        node.includes_path("services/api/src/gen/x.py")  # False
    """
    name: str
    base_path: str
    included_patterns: tuple[str, ...]
    excluded_patterns: tuple[str, ...] = ()
    dependencies: frozenset[str] = frozenset()
    metadata: Optional[dict] = None

    def __post_init__(self):
        if not self.included_patterns:
            raise NoIncludedPathsError(self.name)

    def __hash__(self):
        return hash(self.name)

    @classmethod
    def create(
        cls,
        name: str,
        base_path: Any,
        included_patterns: Iterable[Any],
        excluded_patterns: Iterable[Any] = (),
        dependencies: Iterable[str] = (),
        metadata: Optional[dict] = None,
    ) -> "Node":
        """Create a node from loosely typed inputs.

        Args:
            name: Unique node name
            base_path: Node root directory (str or Path)
            included_patterns: Include globs (str or Path)
            excluded_patterns: Exclude globs (str or Path)
            dependencies: Dependency names; duplicates collapse
            metadata: Opaque payload, deep-copied

        Returns:
            A new immutable Node

        Raises:
            NoIncludedPathsError: If included_patterns is empty
        """
        return cls(
            name=name,
            base_path=normalize_path(base_path),
            included_patterns=tuple(str(p) for p in included_patterns),
            excluded_patterns=tuple(str(p) for p in excluded_patterns),
            dependencies=frozenset(dependencies),
            metadata=copy.deepcopy(metadata),
        )

    def _any_match(self, patterns: tuple[str, ...], path: str) -> bool:
        for pattern in patterns:
            full_pattern = _join(self.base_path, pattern)
            try:
                if matches(full_pattern, path):
                    return True
            except PatternError as e:
                logger.debug("Node %s: treating pattern as non-match: %s", self.name, e)
        return False

    def includes_path(self, path: Any) -> bool:
        """Check whether this node owns the given file path.

        Args:
            path: Repository-relative file path

        Returns:
            True if at least one include pattern matches and no exclude
            pattern does. Malformed patterns never match.
        """
        candidate = normalize_path(path)
        if not self._any_match(self.included_patterns, candidate):
            return False
        return not self._any_match(self.excluded_patterns, candidate)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "metadata": self.metadata,
            "path": self.base_path,
            "included_paths": list(self.included_patterns),
            "excluded_paths": list(self.excluded_patterns),
            "dependencies": sorted(self.dependencies),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Node":
        """Create a node from its serialized dictionary form."""
        return cls.create(
            name=data["name"],
            base_path=data.get("path", ""),
            included_patterns=data.get("included_paths", []),
            excluded_patterns=data.get("excluded_paths", []),
            dependencies=data.get("dependencies", []),
            metadata=data.get("metadata"),
        )
