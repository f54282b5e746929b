"""
Cascade Ingestion Module
========================

Loaders that turn per-module declaration files into Nodes.

Supported Sources:
- dependencies.toml declarations (file name configurable)

Design Philosophy:
- Loaders produce plain Node lists; DependencyGraph.build does all validation
- Scans are deterministic so the same tree always yields the same artifact
"""

from .toml_loader import DeclarationLoader, DeclarationParseError, DeclarationReadError
