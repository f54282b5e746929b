"""
Declaration File Loader
=======================

Parses per-module ``dependencies.toml`` declarations into Nodes and scans a
repository for them.

Declaration Format:
-------------------
    [module]
    name = "service-a"

    [metadata]              # optional, carried verbatim
    owner = "team-x"

    [dependencies]          # keys are ignored, only `name` is used
    core = { name = "core-lib" }

    [file_paths]
    include = ["src/**"]    # required, non-empty
    exclude = ["src/generated/**"]

Design Decisions:
-----------------
1. A node's base path is the declaration's directory as seen from where the
   scan started, so it lines up with repo-relative changed paths
   (e.g. the output of ``git diff --name-only``)
2. The walk is sorted so the node order, and therefore the artifact, is
   deterministic
3. The loader only produces Nodes; all graph validation happens in
   DependencyGraph.build
"""

import logging
import os
import tomllib
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from ..config import ScanConfig
from ..model.schemas import Node, NodeCreationError

logger = logging.getLogger(__name__)


class DeclarationParseError(NodeCreationError):
    """Raised when a declaration file is not valid TOML or misses required keys."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to parse declaration {source}: {reason}")


class DeclarationReadError(NodeCreationError):
    """Raised when a declaration file cannot be read."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Unable to read declaration file {path}: {reason}")


def _string_list(value, key: str, source: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DeclarationParseError(source, f"'file_paths.{key}' must be a list of strings")
    return value


def _base_path_for(directory: Path) -> str:
    """Express ``directory`` the way the scan root was given, minus './' and '/'."""
    posix = PurePosixPath(directory.as_posix()).as_posix()
    if posix == ".":
        return ""
    return posix.lstrip("/")


class DeclarationLoader:
    """Loader for node declaration files.

    Usage:
        loader = DeclarationLoader()
        nodes = loader.scan("services")

        # Or parse a single declaration
        node = loader.node_from_toml_str(content, "services/api")
    """

    def __init__(self, config: Optional[ScanConfig] = None):
        """Initialize the declaration loader.

        Args:
            config: Scan configuration (uses defaults if None)
        """
        self.config = config or ScanConfig()

    @property
    def declaration_name(self) -> str:
        return self.config.declaration_file_name

    def node_from_toml_str(self, content: str, node_path: Union[str, Path],
                           source: str = "<string>") -> Node:
        """Construct a Node from the text of a declaration file.

        Args:
            content: TOML text
            node_path: Base path to assign to the node
            source: Name used in error messages

        Returns:
            The declared Node

        Raises:
            DeclarationParseError: Invalid TOML or missing required keys
            NoIncludedPathsError: The include list is empty or missing
        """
        try:
            parsed = tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            raise DeclarationParseError(source, str(e)) from e

        module = parsed.get("module")
        if not isinstance(module, dict) or not isinstance(module.get("name"), str):
            raise DeclarationParseError(source, "missing string 'module.name'")

        metadata = parsed.get("metadata")
        if metadata is not None and not isinstance(metadata, dict):
            raise DeclarationParseError(source, "'metadata' must be a table")

        dependencies = []
        raw_deps = parsed.get("dependencies", {})
        if not isinstance(raw_deps, dict):
            raise DeclarationParseError(source, "'dependencies' must be a table")
        for key, entry in raw_deps.items():
            if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
                raise DeclarationParseError(source, f"dependency '{key}' has no string 'name'")
            dependencies.append(entry["name"])

        file_paths = parsed.get("file_paths", {})
        if not isinstance(file_paths, dict):
            raise DeclarationParseError(source, "'file_paths' must be a table")

        return Node.create(
            name=module["name"],
            base_path=node_path,
            included_patterns=_string_list(file_paths.get("include", []), "include", source),
            excluded_patterns=_string_list(file_paths.get("exclude", []), "exclude", source),
            dependencies=dependencies,
            metadata=metadata,
        )

    def node_from_file(self, file_path: Union[str, Path],
                       node_path: Optional[Union[str, Path]] = None) -> Node:
        """Construct a Node from a declaration file on disk.

        Args:
            file_path: Path to the declaration file
            node_path: Base path for the node (defaults to the file's directory)
        """
        path = Path(file_path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DeclarationReadError(path, str(e)) from e

        if node_path is None:
            node_path = _base_path_for(path.parent)
        return self.node_from_toml_str(content, node_path, source=str(path))

    def find_declarations(self, root: Union[str, Path]) -> list[Path]:
        """Recursively find declaration files under ``root`` in sorted order."""
        root = Path(root)
        if not root.is_dir():
            raise DeclarationReadError(root, "not a directory")

        found = []
        ignored = set(self.config.ignored_dirs)
        for dirpath, dirnames, filenames in os.walk(root, followlinks=self.config.follow_symlinks):
            dirnames[:] = sorted(d for d in dirnames if d not in ignored)
            if self.declaration_name in filenames:
                found.append(Path(dirpath) / self.declaration_name)
        return found

    def scan(self, root: Union[str, Path]) -> list[Node]:
        """Load every declaration under ``root``.

        Args:
            root: Directory to start the recursive scan from

        Returns:
            One Node per declaration file, in walk order
        """
        root = Path(root)
        nodes = []

        for declaration in self.find_declarations(root):
            logger.debug("Loading declaration %s", declaration)
            node_path = _base_path_for(declaration.parent)
            nodes.append(self.node_from_file(declaration, node_path))

        logger.info("Loaded %d node declarations from %s", len(nodes), root)
        return nodes
