"""
Cascade Analysis Module
=======================

Impact queries over a built dependency graph.

Components:
- impact.py: prepare/affected_by/upstream_of/downstream_of and ImpactAnalyzer

Design Philosophy:
- All analysis is deterministic and side-effect free
- Unknown names and unmatched paths produce empty results, never errors
"""

from .impact import (
    ImpactAnalyzer,
    ImpactSummary,
    prepare,
    affected_by,
    upstream_of,
    downstream_of,
)
