"""
Shared pytest fixtures for dependency-cascade tests.

Fixtures are organized by what they build:
- node factories and node lists for graph tests
- on-disk repositories with declaration files for loader and CLI tests
"""

from pathlib import Path

import pytest

from cascade.config import set_config
from cascade.model.schemas import Node


def make_node(name, deps=(), base_path=None, include=("src/**/*",), exclude=("test/**/*",),
              metadata=None):
    """Node rooted at test/<name> unless a base path is given."""
    return Node.create(
        name=name,
        base_path=f"test/{name}" if base_path is None else base_path,
        included_patterns=list(include),
        excluded_patterns=list(exclude),
        dependencies=list(deps),
        metadata=metadata,
    )


@pytest.fixture(autouse=True)
def reset_global_config():
    """Each test starts from the default global configuration."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def chain_nodes():
    """a <- b <- c: b depends on a, c depends on b."""
    return [
        make_node("a"),
        make_node("b", ["a"]),
        make_node("c", ["b"]),
    ]


@pytest.fixture
def cyclic_nodes():
    """a -> b -> c -> a through declared dependencies."""
    return [
        make_node("a", ["b"]),
        make_node("b", ["c"]),
        make_node("c", ["a"]),
    ]


@pytest.fixture
def diamond_nodes():
    """Diamond plus an extra edge: a <- b, a <- c, (b, c) <- d, (a, d) <- e."""
    return [
        make_node("a"),
        make_node("b", ["a"]),
        make_node("c", ["a"]),
        make_node("d", ["b", "c"]),
        make_node("e", ["a", "d"]),
    ]


def write_declaration(directory: Path, name: str, deps=(), include=("src/**",), exclude=(),
                      file_name="dependencies.toml", extra="") -> Path:
    """Write a dependencies.toml into ``directory`` and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    lines = ["[module]", f'name = "{name}"', ""]
    if deps:
        lines.append("[dependencies]")
        for dep in deps:
            lines.append(f'{dep.replace("-", "_")} = {{ name = "{dep}" }}')
        lines.append("")
    lines.append("[file_paths]")
    lines.append("include = [" + ", ".join(f'"{p}"' for p in include) + "]")
    if exclude:
        lines.append("exclude = [" + ", ".join(f'"{p}"' for p in exclude) + "]")
    lines.append(extra)
    path = directory / file_name
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def repo(tmp_path, monkeypatch):
    """A small repository with three chained modules; cwd is the repo root.

    services/core      (no deps)
    services/api       depends on core-lib
    apps/web           depends on api
    """
    write_declaration(tmp_path / "services" / "core", "core-lib",
                      exclude=("src/generated/**",),
                      extra='[metadata]\nowner = "platform"\n')
    write_declaration(tmp_path / "services" / "api", "api", deps=("core-lib",))
    write_declaration(tmp_path / "apps" / "web", "web", deps=("api",), include=("app/**",))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def node_factory():
    return make_node


@pytest.fixture
def declaration_writer():
    return write_declaration
