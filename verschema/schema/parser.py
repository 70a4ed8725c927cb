"""
Text front end for the schema language.

Example schema:

    // Version headers apply to the item that follows them
    struct Point {
        x: i32,
        y: i32,
        #[add(2)]
        z: opt<i32>,
    }

    #[add(2), rem(4)]
    node Shape {
        origin: Point,
        parent: ref<Shape>,
        children: [ref<any>],
        corners: [Point; 4],
    }

    enum Color { Red = 1, Green, Blue = 5 }

parse_schema() turns schema text into the declaration list the compiler
consumes. It checks syntax only; version semantics are left to the compiler.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional

from ..errors import SchemaSyntaxError
from ..source_location import SourceLocation
from .types import (
    ArrayValue,
    CompositeValue,
    Declaration,
    EnumDef,
    FieldDef,
    IntLiteral,
    OptionalValue,
    PrimitiveKind,
    PrimitiveValue,
    RecordDef,
    ReferenceValue,
    SliceValue,
    TupleValue,
    ValueExpr,
    VariantDef,
    VariantKind,
    VersionAnnotation,
)

_MAX_LITERAL = 2**32 - 1

_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
    | (?P<comment>//[^\n]*)
    | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<int>[0-9]+)
    | (?P<punct>[\#\[\](){}<>,:;=])
    | (?P<bad>.)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    kind: str  # ident, int, punct, eof
    text: str
    location: SourceLocation


def tokenize(text: str, file: Optional[str] = None) -> Iterator[Token]:
    """Split schema text into tokens, skipping whitespace and comments.

    Raises:
        SchemaSyntaxError: On a character that starts no token
    """
    line = 1
    line_start = 0
    for match in _TOKEN_RE.finditer(text):
        kind = match.lastgroup
        value = match.group()
        location = SourceLocation(line, match.start() - line_start + 1, file)
        if kind == "bad":
            raise SchemaSyntaxError(f"unexpected character '{value}'", location)
        if kind in ("ident", "int", "punct"):
            yield Token(kind, value, location)
        newlines = value.count("\n")
        if newlines:
            line += newlines
            line_start = match.start() + value.rindex("\n") + 1
    yield Token("eof", "end of input", SourceLocation(line, len(text) - line_start + 1, file))


class SchemaParser:
    """Recursive-descent parser over a token list."""

    def __init__(self, text: str, file: Optional[str] = None) -> None:
        self._tokens: List[Token] = list(tokenize(text, file))
        self._pos = 0

    def parse(self) -> list[Declaration]:
        declarations: list[Declaration] = []
        while self._peek().kind != "eof":
            version = self._parse_header("type def (struct, node or enum)")
            declarations.append(self._parse_type(version))
        return declarations

    # --- token helpers ---

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _next(self) -> Token:
        token = self._tokens[self._pos]
        if token.kind != "eof":
            self._pos += 1
        return token

    def _is(self, text: str) -> bool:
        token = self._peek()
        return token.kind in ("punct", "ident") and token.text == text

    def _error(self, expected: str, token: Optional[Token] = None) -> SchemaSyntaxError:
        token = token or self._peek()
        return SchemaSyntaxError(f"expected {expected}, found '{token.text}'", token.location)

    def _expect(self, text: str) -> Token:
        if not self._is(text):
            raise self._error(f"'{text}'")
        return self._next()

    def _expect_ident(self, what: str = "identifier") -> Token:
        if self._peek().kind != "ident":
            raise self._error(what)
        return self._next()

    def _expect_int(self, what: str) -> IntLiteral:
        token = self._peek()
        if token.kind != "int":
            raise self._error(what)
        self._next()
        value = int(token.text)
        if value > _MAX_LITERAL:
            raise SchemaSyntaxError(f"invalid {what}", token.location)
        return IntLiteral(value, token.location)

    def _separator(self, closing: str) -> None:
        """Consume the ',' between items; the last comma is optional."""
        if self._is(","):
            self._next()
        elif not self._is(closing):
            raise self._error(f"',' or '{closing}'")

    # --- version headers ---

    def _parse_header(self, expected: str) -> Optional[VersionAnnotation]:
        if not self._is("#"):
            return None
        annotation = self._parse_version()
        if self._is("#"):
            raise SchemaSyntaxError(
                f"expected a {expected} after the version header", self._peek().location
            )
        return annotation

    def _parse_version(self) -> VersionAnnotation:
        pound = self._expect("#")
        self._expect("[")

        items: list[tuple[Token, IntLiteral]] = []
        while not self._is("]"):
            if items:
                self._expect(",")
            keyword = self._peek()
            if keyword.kind != "ident" or keyword.text not in ("add", "rem"):
                raise self._error("'add' or 'rem'")
            self._next()
            self._expect("(")
            literal = self._expect_int("version literal")
            self._expect(")")
            items.append((keyword, literal))
        self._expect("]")

        if not items:
            raise SchemaSyntaxError(
                "version header must contain at least one of 'add' or 'rem'", pound.location
            )
        if len(items) > 2:
            raise SchemaSyntaxError(
                "version header can contain at most two specifiers: "
                "an 'add' specifier, and a 'rem' specifier",
                items[2][0].location,
            )

        added: Optional[IntLiteral] = None
        removed: Optional[IntLiteral] = None
        for keyword, literal in items:
            if keyword.text == "add":
                if removed is not None:
                    raise SchemaSyntaxError(
                        "'add' specifier must come before 'rem' specifier", keyword.location
                    )
                if added is not None:
                    raise SchemaSyntaxError(
                        "version header can only contain one 'add' specifier", keyword.location
                    )
                added = literal
            else:
                if removed is not None:
                    raise SchemaSyntaxError(
                        "version header can only contain one 'rem' specifier", keyword.location
                    )
                removed = literal
        return VersionAnnotation(added=added, removed=removed, location=pound.location)

    # --- types ---

    def _parse_type(self, version: Optional[VersionAnnotation]) -> Declaration:
        keyword = self._peek()
        if keyword.kind != "ident" or keyword.text not in ("struct", "node", "enum"):
            raise self._error("'struct', 'node' or 'enum'")
        self._next()
        name = self._expect_ident("type name")

        if keyword.text == "enum":
            self._expect("{")
            variants = self._parse_variants()
            self._expect("}")
            return EnumDef(name.text, tuple(variants), version, name.location)

        self._expect("{")
        fields = self._parse_fields()
        self._expect("}")
        return RecordDef(name.text, tuple(fields), keyword.text == "node", version, name.location)

    def _parse_fields(self) -> list[FieldDef]:
        fields = []
        while not self._is("}"):
            version = self._parse_header("struct field")
            name = self._expect_ident("field name")
            self._expect(":")
            value = self._parse_value()
            fields.append(FieldDef(name.text, value, version, name.location))
            self._separator("}")
        return fields

    def _parse_variants(self) -> list[VariantDef]:
        variants = []
        while not self._is("}"):
            version = self._parse_header("enum variant")
            name = self._expect_ident("variant name")

            if self._is("{"):
                self._next()
                fields = self._parse_fields()
                self._expect("}")
                variant = VariantDef(
                    name.text, VariantKind.STRUCT, fields=tuple(fields),
                    version=version, location=name.location,
                )
            elif self._is("("):
                values = self._parse_tuple()
                variant = VariantDef(
                    name.text, VariantKind.TUPLE, values=tuple(values),
                    version=version, location=name.location,
                )
            elif self._is("="):
                self._next()
                discriminant = self._expect_int("enum int literal")
                variant = VariantDef(
                    name.text, VariantKind.INT, discriminant=discriminant,
                    version=version, location=name.location,
                )
            else:
                variant = VariantDef(name.text, version=version, location=name.location)

            variants.append(variant)
            self._separator("}")
        return variants

    # --- values ---

    def _parse_tuple(self) -> list[ValueExpr]:
        self._expect("(")
        values = []
        while not self._is(")"):
            values.append(self._parse_value())
            self._separator(")")
        self._expect(")")
        return values

    def _parse_wrapped(self) -> ValueExpr:
        self._expect("<")
        value = self._parse_value()
        self._expect(">")
        return value

    def _parse_value(self) -> ValueExpr:
        token = self._peek()
        location = token.location

        if self._is("["):
            self._next()
            inner = self._parse_value()
            if self._is(";"):
                self._next()
                size = self._expect_int("array size literal")
                self._expect("]")
                return ArrayValue(inner, size.value, location)
            self._expect("]")
            return SliceValue(inner, location)

        if self._is("("):
            return TupleValue(tuple(self._parse_tuple()), location)

        if token.kind != "ident":
            raise self._error("a type")
        self._next()

        if token.text == "ref":
            return ReferenceValue(self._parse_wrapped(), location)
        if token.text == "opt":
            return OptionalValue(self._parse_wrapped(), location)
        if PrimitiveKind.is_primitive(token.text):
            return PrimitiveValue(PrimitiveKind.from_str(token.text), location)
        return CompositeValue(token.text, location)


def parse_schema(text: str, file: Optional[str] = None) -> list[Declaration]:
    """Parse schema text into a declaration list.

    Args:
        text: Schema source
        file: Path used in error locations

    Raises:
        SchemaSyntaxError: On the first syntax error
    """
    return SchemaParser(text, file).parse()
