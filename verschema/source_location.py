"""Source positions attached to declarations and literals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class SourceLocation:
    """Position of a token in a schema file.

    Attributes:
        line: 1-based line number
        column: 1-based column number
        file: Schema file path, if the text came from a file
    """

    line: int
    column: int
    file: Optional[str] = None

    def __str__(self) -> str:
        if self.file:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation (the file is not serialized)."""
        return {"line": self.line, "column": self.column}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional[SourceLocation]:
        """Create from dictionary representation; None passes through."""
        if not data:
            return None
        return cls(line=data["line"], column=data["column"])


def format_location(loc: Optional[SourceLocation]) -> str:
    if loc is None:
        return ""
    return f"{loc}: "
