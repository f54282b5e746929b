#!/usr/bin/env python3
"""
dependency-cascade - Affected Module Detection for Multi-Module Repositories
===========================================================================

Command-line interface for preparing and querying dependency graph artifacts.

Usage:
    # Build the graph artifact from every dependencies.toml under a directory
    dependency-cascade prepare --dir . --output graph.json

    # Which nodes are affected by the current change?
    git diff --name-only main | dependency-cascade query -g graph.json -f -

    # What does a node depend on / what depends on it?
    dependency-cascade upstream -g graph.json service-a
    dependency-cascade downstream -g graph.json core-lib

Options:
    --config, -c        TOML or JSON configuration file
    --debug, -d         Increase log verbosity (repeatable)

Environment Variables:
    CASCADE_DECLARATION_NAME    Declaration file name (default: dependencies.toml)
    CASCADE_ALLOW_CYCLES        Accept cyclic graphs when set to 1/true/yes/on
"""

import argparse
import logging
import sys
import traceback
from pathlib import Path
from typing import Optional

from . import __version__
from .analysis.impact import ImpactAnalyzer, prepare
from .config import CascadeConfig, ConfigError, set_config
from .model.graph_builder import DependencyGraph, DependencyGraphError
from .model.schemas import NodeCreationError
from .reporting.report_builder import generate_text_report, nodes_to_json

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="dependency-cascade",
        description="dependency-cascade - find the modules affected by a change",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s prepare --dir . --output graph.json
  %(prog)s query -g graph.json -f services/api/src/main.py
  git diff --name-only HEAD~1 | %(prog)s query -g graph.json -f -
        """
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        metavar="FILE",
        help="Configuration file (TOML, or JSON by .json extension)"
    )
    parser.add_argument(
        "-d", "--debug",
        action="count",
        default=0,
        help="Turn debugging information on (repeat for more detail)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"dependency-cascade {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    prepare_parser = subparsers.add_parser(
        "prepare",
        help="Build a graph artifact from all declaration files under a directory"
    )
    prepare_parser.add_argument(
        "--dir",
        required=True,
        type=Path,
        metavar="DIR",
        help="The directory to start the recursive scan from"
    )
    prepare_parser.add_argument(
        "--dependency-toml-name",
        metavar="NAME",
        help="Declaration file name common to all modules (default: dependencies.toml)"
    )
    prepare_parser.add_argument(
        "--allow-cyclical",
        action="store_true",
        help="Accept a cyclic dependency graph"
    )
    prepare_parser.add_argument(
        "-o", "--output",
        type=Path,
        metavar="FILE",
        help="Write the artifact to FILE instead of stdout"
    )

    query_parser = subparsers.add_parser(
        "query",
        help="List the nodes affected by a set of changed files"
    )
    _add_artifact_argument(query_parser)
    query_parser.add_argument(
        "-f", "--files",
        nargs="+",
        action="extend",
        default=[],
        metavar="FILE",
        help="Changed file paths; '-' reads newline-separated paths from stdin"
    )
    query_parser.add_argument(
        "--format",
        choices=["json", "text"],
        help="Output format (default: json)"
    )

    for name, description in (
        ("upstream", "List the nodes a node transitively depends on"),
        ("downstream", "List the nodes that transitively depend on a node"),
    ):
        sub = subparsers.add_parser(name, help=description)
        _add_artifact_argument(sub)
        sub.add_argument("name", help="Node name")

    return parser


def _add_artifact_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-g", "--graph-artifact-path",
        required=True,
        type=Path,
        metavar="FILE",
        help="Graph artifact produced by the prepare command"
    )


def configure_logging(debug: int) -> None:
    if debug >= 2:
        level = logging.DEBUG
    elif debug == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def _read_changed_files(files: list[str]) -> list[str]:
    changed = []
    for entry in files:
        if entry == "-":
            changed.extend(line.strip() for line in sys.stdin if line.strip())
        else:
            changed.append(entry)
    return changed


def run(args: argparse.Namespace, config: CascadeConfig) -> int:
    """Execute a parsed command and print its result."""
    indent = config.output.indent
    logger.debug("Running command %s", args.command)

    if args.command == "prepare":
        graph = prepare(
            args.dir,
            declaration_name=args.dependency_toml_name,
            allow_cycles=args.allow_cyclical or config.graph.allow_cycles,
            scan_config=config.scan,
        )
        if args.output:
            graph.save(args.output, indent=indent)
            print(f"Wrote {graph.node_count} nodes to {args.output}", file=sys.stderr)
        else:
            print(graph.to_json(indent=indent))
        return 0

    analyzer = ImpactAnalyzer(DependencyGraph.load(args.graph_artifact_path), config)

    if args.command == "query":
        changed = _read_changed_files(args.files)
        output_format = args.format or config.output.format
        if output_format == "text":
            print(generate_text_report(analyzer.summarize(changed)))
        else:
            print(nodes_to_json(analyzer.affected_by(changed), indent=indent))
        return 0

    if args.command == "upstream":
        print(nodes_to_json(analyzer.upstream_of(args.name), indent=indent))
        return 0

    print(nodes_to_json(analyzer.downstream_of(args.name), indent=indent))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.debug)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = CascadeConfig.from_file(args.config) if args.config else CascadeConfig()
        config.debug = max(config.debug, args.debug)
        set_config(config)
        return run(args, config)
    except (NodeCreationError, DependencyGraphError, ConfigError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.debug >= 2:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
