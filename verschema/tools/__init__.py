"""
CLI tools for verschema.

This module provides command-line tools for:
- schema: Compile, validate and diff versioned schema files

Invariants:
    - Tools work on local files only
    - Invalid schemas cause a non-zero exit code
"""

from .schema_cli import SchemaCLI

__all__ = ["SchemaCLI"]
