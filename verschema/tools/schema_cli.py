# mypy: ignore-errors
"""
Schema CLI tool for verschema.

This tool compiles and inspects versioned schema files:
- compile: Export the compiled per-version snapshots as JSON
- check: Validate a schema file
- versions: List the types active in each version
- diff: Classify the changes between two versions

Usage:
    verschema compile schema.vsd > schema.lock.json
    verschema check schema.vsd
    verschema versions schema.vsd
    verschema diff schema.vsd --old 1 --new 2

Invariants:
    - Invalid schemas and breaking diffs cause non-zero exit code
    - Compiled output is deterministic (sorted JSON)
    - Diagnostics go to stderr, results to stdout

How to change safely:
    - Add new commands, don't modify existing ones
    - Keep output format stable for CI parsing
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Optional, Sequence

from ..config import CompilerSettings, setup_logging
from ..errors import VerSchemaError
from ..schema import (
    CompiledSchema,
    compile_schema,
    declarations_from_dict,
    diff_versions,
    parse_schema,
)

logger = logging.getLogger(__name__)


class SchemaCLI:
    """CLI tool for schema files.

    Example:
        >>> cli = SchemaCLI()
        >>> print(cli.snapshot("schema.vsd"))  # Compiled JSON
        >>> ok, message = cli.check("schema.vsd")
    """

    def __init__(self, settings: Optional[CompilerSettings] = None) -> None:
        self.settings = settings or CompilerSettings()

    def load(self, path: str) -> list:
        """Read a declaration list from schema text or a ``.json`` dump."""
        with open(path) as f:
            if path.endswith(".json"):
                return declarations_from_dict(json.load(f))
            return parse_schema(f.read(), file=path)

    def compile(self, path: str) -> CompiledSchema:
        return compile_schema(self.load(path), self.settings)

    def snapshot(self, path: str) -> str:
        """Compile a schema file and export it to JSON.

        Args:
            path: Schema file

        Returns:
            JSON string representation
        """
        compiled = self.compile(path)
        output = {
            "fingerprint": compiled.fingerprint,
            "schema": compiled.to_dict(),
        }
        return json.dumps(output, indent=2, sort_keys=True)

    def check(self, path: str) -> tuple[bool, str]:
        """Validate a schema file.

        Returns:
            Tuple of (is_valid, message)
        """
        try:
            compiled = self.compile(path)
        except VerSchemaError as e:
            return False, str(e)
        return True, f"Schema is valid ({compiled.versions} versions)"

    def versions(self, path: str) -> list[tuple[int, list[str]]]:
        """List the type names active in each version."""
        compiled = self.compile(path)
        return [(v, compiled.type_names(v)) for v in range(1, compiled.versions + 1)]

    def diff(self, path: str, old: int, new: int) -> list[dict[str, Any]]:
        """Show the changes between two versions of one schema.

        Args:
            path: Schema file
            old: Version to upgrade from
            new: Version to upgrade to

        Returns:
            List of change dictionaries
        """
        compiled = self.compile(path)
        return [change.to_dict() for change in diff_versions(compiled, old, new)]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="verschema", description="Versioned schema compiler"
    )
    parser.add_argument(
        "--max-version", type=int, help="Highest version number a schema may mention"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # compile command
    compile_parser = subparsers.add_parser("compile", help="Export compiled schema to JSON")
    compile_parser.add_argument("file", help="Schema file (.json for a declaration dump)")
    compile_parser.add_argument("--output", "-o", help="Output file (default: stdout)")

    # check command
    check_parser = subparsers.add_parser("check", help="Validate a schema file")
    check_parser.add_argument("file", help="Schema file")

    # versions command
    versions_parser = subparsers.add_parser("versions", help="List types per version")
    versions_parser.add_argument("file", help="Schema file")

    # diff command
    diff_parser = subparsers.add_parser("diff", help="Show changes between two versions")
    diff_parser.add_argument("file", help="Schema file")
    diff_parser.add_argument("--old", type=int, required=True, help="Version to upgrade from")
    diff_parser.add_argument("--new", type=int, required=True, help="Version to upgrade to")
    diff_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for schema tool."""
    args = _build_parser().parse_args(argv)

    settings = CompilerSettings()
    if args.max_version is not None:
        settings = settings.model_copy(update={"max_version": args.max_version})
    setup_logging(settings)
    cli = SchemaCLI(settings)

    try:
        if args.command == "compile":
            output = cli.snapshot(args.file)
            if args.output:
                with open(args.output, "w") as f:
                    f.write(output)
                print(f"Schema exported to {args.output}", file=sys.stderr)
            else:
                print(output)
            return 0

        if args.command == "check":
            is_valid, message = cli.check(args.file)
            print(message)
            return 0 if is_valid else 1

        if args.command == "versions":
            for number, names in cli.versions(args.file):
                print(f"v{number}: {', '.join(names)}")
            return 0

        changes = cli.diff(args.file, args.old, args.new)
        if args.format == "json":
            print(json.dumps(changes, indent=2))
        elif not changes:
            print("No changes detected")
        else:
            print(f"Found {len(changes)} change(s):")
            for change in changes:
                status = "BREAKING" if change["breaking"] else "OK"
                print(f"  [{status}] {change['kind']}: {change['path']}")
                print(f"          {change['message']}")

        # Exit with error if breaking changes
        return 1 if any(c["breaking"] for c in changes) else 0

    except VerSchemaError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyError as e:
        print(f"error: {e.args[0]}", file=sys.stderr)
        return 1
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"Failed to load {args.file}: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
