"""
Error types for verschema.

This module defines all exception types raised by the compiler:
- VerSchemaError: Base exception
- CompileError: Any error tied to a position in the schema source
- One CompileError subclass per failure kind

Invariants:
    - All errors inherit from VerSchemaError
    - Every CompileError carries a stable ``code``
    - Every error is fatal for the compilation run
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .source_location import SourceLocation, format_location


class VerSchemaError(Exception):
    """Base exception for all verschema errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "VERSCHEMA_ERROR"
        self.details = details or {}


class CompileError(VerSchemaError):
    """Error reported against a position in the schema source.

    Attributes:
        location: Where the offending token sits, if known
    """

    code_name = "COMPILE_ERROR"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=self.code_name, details=details)
        self.location = location

    def __str__(self) -> str:
        return f"{format_location(self.location)}{self.message}"


class SchemaSyntaxError(CompileError):
    """Schema text could not be parsed."""

    code_name = "SYNTAX_ERROR"


class MalformedVersionError(CompileError):
    """A version annotation is invalid on its own.

    Raised when:
    - rem is less than or equal to add
    - rem is below 2
    - add is below 1
    """

    code_name = "MALFORMED_VERSION"


class ContainmentError(CompileError):
    """A field's or variant's range escapes its container's range."""

    code_name = "CONTAINMENT_VIOLATION"


class VersionLimitError(CompileError):
    """A version literal exceeds the configured maximum."""

    code_name = "VERSION_LIMIT_EXCEEDED"


class NameOverlapError(CompileError):
    """Two same-named siblings may be active in the same version."""

    code_name = "NAME_OVERLAP"


class EmptyVersionError(CompileError):
    """A computed version contains no types at all."""

    code_name = "EMPTY_VERSION"

    def __init__(self, version: int) -> None:
        super().__init__(f"version {version} is empty", details={"version": version})
        self.version = version


class EnumShapeError(CompileError):
    """An enum mixes integer discriminants with tuple or struct variants."""

    code_name = "ENUM_SHAPE_CONFLICT"


class EnumDiscriminantError(CompileError):
    """A discriminant does not increase within one version."""

    code_name = "ENUM_DISCRIMINANT_ORDER"


class DanglingReferenceError(CompileError):
    """A type name is used in a version where no such type is active."""

    code_name = "DANGLING_REFERENCE"


class ReferenceKindError(CompileError):
    """Node/value reference rules are violated.

    Raised when:
    - A node type is used without a ref<> wrapper
    - A non-node type is used inside ref<>
    - ``any`` is used outside ref<>
    """

    code_name = "REFERENCE_KIND_MISMATCH"
