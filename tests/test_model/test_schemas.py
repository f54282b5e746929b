"""Tests for model.schemas module."""

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from cascade.model.schemas import Node, NodeCreationError, NoIncludedPathsError, normalize_path


class TestNodeCreation:
    """Tests for Node.create and construction-time validation."""

    def test_node_creation_success(self):
        """Should store every field, normalizing collections."""
        node = Node.create(
            "test-node",
            Path("/path/to/node"),
            [Path("src/**/*.rs")],
            ["src/excluded"],
            ["dep1", "dep1"],
            {"key": "value"},
        )

        assert node.name == "test-node"
        assert node.base_path == "/path/to/node"
        assert node.included_patterns == ("src/**/*.rs",)
        assert node.excluded_patterns == ("src/excluded",)
        assert node.dependencies == frozenset({"dep1"})
        assert node.metadata == {"key": "value"}

    def test_no_included_paths(self):
        """Should reject a node without include patterns."""
        with pytest.raises(NoIncludedPathsError) as exc_info:
            Node.create("test-node", "/path/to/node", [], ["src/excluded"], ["dep1"])

        assert exc_info.value.name == "test-node"
        assert isinstance(exc_info.value, NodeCreationError)
        assert "test-node" in str(exc_info.value)

    def test_direct_construction_is_validated(self):
        """Should reject empty includes even when bypassing create()."""
        with pytest.raises(NoIncludedPathsError):
            Node(name="x", base_path="", included_patterns=())

    def test_node_is_immutable(self):
        node = Node.create("a", "a", ["src/**"])
        with pytest.raises(FrozenInstanceError):
            node.name = "b"

    def test_metadata_is_copied(self):
        """Should not share the caller's metadata object."""
        metadata = {"nested": {"key": "value"}}
        node = Node.create("a", "a", ["src/**"], metadata=metadata)

        metadata["nested"]["key"] = "changed"

        assert node.metadata["nested"]["key"] == "value"

    def test_base_path_normalization(self):
        assert Node.create("a", "./services/a", ["src/**"]).base_path == "services/a"
        assert Node.create("a", ".", ["src/**"]).base_path == ""

    def test_hash_by_name(self):
        """Should be usable in sets keyed by name."""
        first = Node.create("a", "a", ["src/**"], metadata={"x": 1})
        second = Node.create("a", "a", ["src/**"], metadata={"x": 1})

        assert first == second
        assert len({first, second}) == 1


class TestIncludesPath:
    """Tests for Node.includes_path."""

    def test_includes_and_excludes(self):
        node = Node.create("test", "test", ["src/**", "test/*.rs"], ["src/excluded/**"])

        assert node.includes_path("test/src/file.rs")
        assert node.includes_path(Path("test/test/test.rs"))
        assert not node.includes_path("test/src/excluded/file.rs")
        assert not node.includes_path("test/other/file.rs")

    def test_includes_path_no_excludes(self):
        node = Node.create("test", "test", ["src/**"])

        assert node.includes_path("test/src/any/path.rs")
        assert not node.includes_path("test/other/path.rs")

    def test_exclude_takes_precedence(self):
        """Should reject a path matched by both include and exclude."""
        node = Node.create("gen", "", ["src/**"], ["src/generated/**"])

        assert node.includes_path("src/main.rs")
        assert not node.includes_path("src/generated/x.rs")

    def test_invalid_pattern_never_matches(self):
        """Should treat a malformed include as a non-match instead of raising."""
        node = Node.create("test", "test", ["[invalid"])

        assert not node.includes_path("test/anything.rs")

    def test_invalid_pattern_does_not_hide_valid_ones(self):
        node = Node.create("test", "test", ["[invalid", "src/**"], ["[also-invalid"])

        assert node.includes_path("test/src/a.rs")

    def test_star_stays_within_segment(self):
        node = Node.create("test", "", ["src/*.py"])

        assert node.includes_path("src/main.py")
        assert not node.includes_path("src/pkg/main.py")

    def test_relative_candidate_is_normalized(self):
        node = Node.create("a", "a", ["src/**"])

        assert node.includes_path("./a/src/x.txt")

    def test_absolute_pattern_replaces_base(self):
        node = Node.create("a", "a", ["/abs/**"])

        assert node.includes_path("/abs/file.txt")
        assert not node.includes_path("a/abs/file.txt")


class TestNodeSerialization:
    """Tests for Node.to_dict / Node.from_dict."""

    def test_to_dict_keys(self):
        node = Node.create("a", "svc/a", ["src/**"], ["src/gen/**"], ["c", "b"], {"k": [1, 2]})

        assert node.to_dict() == {
            "name": "a",
            "metadata": {"k": [1, 2]},
            "path": "svc/a",
            "included_paths": ["src/**"],
            "excluded_paths": ["src/gen/**"],
            "dependencies": ["b", "c"],
        }

    def test_round_trip(self):
        node = Node.create("a", "svc/a", ["src/**"], [], ["b"], None)

        assert Node.from_dict(node.to_dict()) == node


def test_normalize_path():
    assert normalize_path("./a/b") == "a/b"
    assert normalize_path("") == ""
    assert normalize_path(Path("a") / "b") == "a/b"
