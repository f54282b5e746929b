"""
Report Builder Module
=====================

Renders query results for the CLI.

- JSON: a list of full node records (name, path, patterns, dependencies,
  metadata), suitable for piping into other CI steps
- Text: a human-readable summary of an impact query
"""

import json
from typing import Iterable, Optional

from ..analysis.impact import ImpactSummary
from ..model.schemas import Node


def nodes_to_json(nodes: Iterable[Node], indent: Optional[int] = None) -> str:
    """Serialize node records as a JSON list."""
    return json.dumps([node.to_dict() for node in nodes], indent=indent)


def summary_to_json(summary: ImpactSummary, indent: Optional[int] = None) -> str:
    return json.dumps(summary.to_dict(), indent=indent)


def generate_text_report(summary: ImpactSummary) -> str:
    """Generate a text-based impact report.

    Args:
        summary: ImpactSummary to render

    Returns:
        Formatted text report
    """
    lines = [
        "=" * 60,
        "dependency-cascade - Impact Report",
        "=" * 60,
        "",
        f"Changed files: {len(summary.changed_paths)}",
        f"Affected nodes: {len(summary.affected)}",
        "",
        "DIRECTLY CHANGED",
        "-" * 40,
    ]

    if summary.owners:
        for name, paths in summary.owners.items():
            lines.append(f"{name}")
            for path in paths:
                lines.append(f"   {path}")
    else:
        lines.append("(none)")

    lines.extend([
        "",
        "AFFECTED",
        "-" * 40,
    ])
    for node in summary.affected:
        marker = "*" if node.name in summary.owners else " "
        location = node.base_path or "."
        lines.append(f"{marker} {node.name}  ({location})")
    if not summary.affected:
        lines.append("(none)")

    if summary.unmatched_paths:
        lines.extend([
            "",
            "NOT OWNED BY ANY NODE",
            "-" * 40,
        ])
        lines.extend(summary.unmatched_paths)

    lines.append("")
    lines.append("=" * 60)
    return "\n".join(lines)
