"""
Declaration model for verschema.

This module defines the already-parsed representation of one schema file:
- RecordDef: A ``struct`` or ``node`` type with ordered fields
- EnumDef: A tagged enum with ordered variants
- FieldDef / VariantDef: Members, each optionally version-annotated
- Value expressions: The recursive type of a field

Invariants:
    - A declaration's identity is its index in the declaration list
    - Declarations are immutable once built
    - Every integer literal keeps its source location for diagnostics
    - A VersionAnnotation carries at least one of add/rem

How to change safely:
    - Add new value expression kinds together with their to_dict/from_dict
    - Never reorder declaration lists; validators rely on source order

Example:
    >>> from verschema.schema.types import RecordDef, field, version
    >>> User = RecordDef(
    ...     name="User",
    ...     node=True,
    ...     fields=(
    ...         field("email", "str"),
    ...         field("nickname", "str", version=version(add=2)),
    ...     ),
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Union

from ..source_location import SourceLocation


class PrimitiveKind(Enum):
    """Built-in scalar types of the schema language."""

    INT8 = "i8"
    INT16 = "i16"
    INT32 = "i32"
    INT64 = "i64"
    UINT8 = "u8"
    UINT16 = "u16"
    UINT32 = "u32"
    UINT64 = "u64"
    FLOAT32 = "f32"
    FLOAT64 = "f64"
    BOOLEAN = "bool"
    STRING = "str"
    ANY = "any"  # Only valid directly inside ref<>

    @classmethod
    def from_str(cls, value: str) -> PrimitiveKind:
        """Convert string representation to PrimitiveKind.

        Raises:
            ValueError: If value is not a primitive type name
        """
        for kind in cls:
            if kind.value == value:
                return kind
        valid = [k.value for k in cls]
        raise ValueError(f"Invalid primitive '{value}'. Valid primitives: {valid}")

    @classmethod
    def is_primitive(cls, value: str) -> bool:
        return any(kind.value == value for kind in cls)


class DeclKind(Enum):
    """Kinds of top-level declarations."""

    NODE = "node"
    STRUCT = "struct"
    ENUM = "enum"


class VariantKind(Enum):
    """Shapes an enum variant can take."""

    UNIT = "unit"  # Name
    INT = "int"  # Name = 10
    TUPLE = "tuple"  # Name(u8, str)
    STRUCT = "struct"  # Name { field: u8 }


@dataclass(frozen=True)
class IntLiteral:
    """An integer literal and where it was written."""

    value: int
    location: Optional[SourceLocation] = None

    def to_dict(self) -> Union[int, dict[str, Any]]:
        if self.location is None:
            return self.value
        return {"value": self.value, **self.location.to_dict()}

    @classmethod
    def from_dict(cls, data: Union[int, dict[str, Any]]) -> IntLiteral:
        """Load a bare int, or a {"value", "line", "column"} mapping.

        Raises:
            ValueError: If the literal is not an integer
        """
        value = data.get("value") if isinstance(data, dict) else data
        # bool is an int subclass; JSON true/false is not a literal
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"Invalid integer literal {value!r}")
        location = None
        if isinstance(data, dict) and "line" in data:
            location = SourceLocation.from_dict(data)
        return cls(value=value, location=location)


@dataclass(frozen=True)
class VersionAnnotation:
    """An explicit ``#[add(N), rem(M)]`` header.

    Attributes:
        added: First version the item exists in
        removed: First version the item no longer exists in
        location: Position of the header itself
    """

    added: Optional[IntLiteral] = None
    removed: Optional[IntLiteral] = None
    location: Optional[SourceLocation] = None

    def __post_init__(self) -> None:
        if self.added is None and self.removed is None:
            raise ValueError("version annotation must contain at least one of 'add' or 'rem'")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.added is not None:
            result["add"] = self.added.to_dict()
        if self.removed is not None:
            result["rem"] = self.removed.to_dict()
        if self.location is not None:
            result["location"] = self.location.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional[VersionAnnotation]:
        if data is None:
            return None
        return cls(
            added=IntLiteral.from_dict(data["add"]) if "add" in data else None,
            removed=IntLiteral.from_dict(data["rem"]) if "rem" in data else None,
            location=SourceLocation.from_dict(data.get("location")),
        )


def version(
    add: Optional[int] = None,
    rem: Optional[int] = None,
    location: Optional[SourceLocation] = None,
) -> VersionAnnotation:
    """Convenience function to create a VersionAnnotation from plain ints.

    Example:
        >>> version(add=2, rem=4)
    """
    return VersionAnnotation(
        added=IntLiteral(add, location) if add is not None else None,
        removed=IntLiteral(rem, location) if rem is not None else None,
        location=location,
    )


# --- Value expressions ---


@dataclass(frozen=True)
class PrimitiveValue:
    kind: PrimitiveKind
    location: Optional[SourceLocation] = None


@dataclass(frozen=True)
class CompositeValue:
    """A reference to another declared type by name."""

    name: str
    location: Optional[SourceLocation] = None


@dataclass(frozen=True)
class OptionalValue:
    inner: ValueExpr
    location: Optional[SourceLocation] = None


@dataclass(frozen=True)
class ReferenceValue:
    """``ref<T>``: indirect access, required for node types."""

    inner: ValueExpr
    location: Optional[SourceLocation] = None


@dataclass(frozen=True)
class ArrayValue:
    inner: ValueExpr
    size: int
    location: Optional[SourceLocation] = None


@dataclass(frozen=True)
class SliceValue:
    inner: ValueExpr
    location: Optional[SourceLocation] = None


@dataclass(frozen=True)
class TupleValue:
    items: tuple[ValueExpr, ...]
    location: Optional[SourceLocation] = None


ValueExpr = Union[
    PrimitiveValue,
    CompositeValue,
    OptionalValue,
    ReferenceValue,
    ArrayValue,
    SliceValue,
    TupleValue,
]


def value_to_dict(value: ValueExpr) -> dict[str, Any]:
    """Convert a value expression to dictionary representation."""
    if isinstance(value, PrimitiveValue):
        result: dict[str, Any] = {"kind": "primitive", "name": value.kind.value}
    elif isinstance(value, CompositeValue):
        result = {"kind": "composite", "name": value.name}
    elif isinstance(value, OptionalValue):
        result = {"kind": "opt", "of": value_to_dict(value.inner)}
    elif isinstance(value, ReferenceValue):
        result = {"kind": "ref", "of": value_to_dict(value.inner)}
    elif isinstance(value, ArrayValue):
        result = {"kind": "array", "of": value_to_dict(value.inner), "size": value.size}
    elif isinstance(value, SliceValue):
        result = {"kind": "slice", "of": value_to_dict(value.inner)}
    elif isinstance(value, TupleValue):
        result = {"kind": "tuple", "items": [value_to_dict(v) for v in value.items]}
    else:
        raise TypeError(f"Not a value expression: {value!r}")
    if value.location is not None:
        result["location"] = value.location.to_dict()
    return result


def value_from_dict(data: dict[str, Any]) -> ValueExpr:
    """Create a value expression from dictionary representation.

    Raises:
        ValueError: If the value kind is unknown
    """
    kind = data["kind"]
    location = SourceLocation.from_dict(data.get("location"))
    if kind == "primitive":
        return PrimitiveValue(PrimitiveKind.from_str(data["name"]), location)
    if kind == "composite":
        return CompositeValue(data["name"], location)
    if kind == "opt":
        return OptionalValue(value_from_dict(data["of"]), location)
    if kind == "ref":
        return ReferenceValue(value_from_dict(data["of"]), location)
    if kind == "array":
        return ArrayValue(value_from_dict(data["of"]), data["size"], location)
    if kind == "slice":
        return SliceValue(value_from_dict(data["of"]), location)
    if kind == "tuple":
        return TupleValue(tuple(value_from_dict(v) for v in data["items"]), location)
    raise ValueError(f"Invalid value kind '{kind}'")


def format_value(value: ValueExpr) -> str:
    """Render a value expression in schema syntax, e.g. ``[ref<Child>; 2]``."""
    if isinstance(value, PrimitiveValue):
        return value.kind.value
    if isinstance(value, CompositeValue):
        return value.name
    if isinstance(value, OptionalValue):
        return f"opt<{format_value(value.inner)}>"
    if isinstance(value, ReferenceValue):
        return f"ref<{format_value(value.inner)}>"
    if isinstance(value, ArrayValue):
        return f"[{format_value(value.inner)}; {value.size}]"
    if isinstance(value, SliceValue):
        return f"[{format_value(value.inner)}]"
    if isinstance(value, TupleValue):
        return "(" + ", ".join(format_value(v) for v in value.items) + ")"
    raise TypeError(f"Not a value expression: {value!r}")


def named_value(name: str) -> ValueExpr:
    """Primitive for a builtin name, composite reference otherwise."""
    if PrimitiveKind.is_primitive(name):
        return PrimitiveValue(PrimitiveKind.from_str(name))
    return CompositeValue(name)


# --- Declarations ---


@dataclass(frozen=True)
class FieldDef:
    """A named, typed member of a record or struct-shaped variant.

    Attributes:
        name: Field name (unique per version within its container)
        value: The field's type expression
        version: Explicit version annotation, if any
        location: Position of the field name
    """

    name: str
    value: ValueExpr
    version: Optional[VersionAnnotation] = None
    location: Optional[SourceLocation] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Field name cannot be empty")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"name": self.name, "value": value_to_dict(self.value)}
        if self.version is not None:
            result["version"] = self.version.to_dict()
        if self.location is not None:
            result["location"] = self.location.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldDef:
        return cls(
            name=data["name"],
            value=value_from_dict(data["value"]),
            version=VersionAnnotation.from_dict(data.get("version")),
            location=SourceLocation.from_dict(data.get("location")),
        )


def field(
    name: str,
    value: Union[str, ValueExpr],
    *,
    version: Optional[VersionAnnotation] = None,
    location: Optional[SourceLocation] = None,
) -> FieldDef:
    """Convenience function to create a FieldDef.

    A string value names either a primitive (``"u8"``) or another type.

    Example:
        >>> title = field("title", "str")
        >>> owner = field("owner", ReferenceValue(CompositeValue("User")))
    """
    if isinstance(value, str):
        value = named_value(value)
    return FieldDef(name=name, value=value, version=version, location=location)


@dataclass(frozen=True)
class RecordDef:
    """A ``struct`` (plain value) or ``node`` (reference-only) type.

    Attributes:
        name: Type name
        fields: Ordered field declarations
        node: True for node types, which may only be used through ref<>
        version: Explicit version annotation, if any
        location: Position of the type name
    """

    name: str
    fields: tuple[FieldDef, ...] = ()
    node: bool = False
    version: Optional[VersionAnnotation] = None
    location: Optional[SourceLocation] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Type name cannot be empty")

    @property
    def kind(self) -> DeclKind:
        return DeclKind.NODE if self.node else DeclKind.STRUCT

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields],
        }
        if self.version is not None:
            result["version"] = self.version.to_dict()
        if self.location is not None:
            result["location"] = self.location.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RecordDef:
        return cls(
            name=data["name"],
            fields=tuple(FieldDef.from_dict(f) for f in data.get("fields", [])),
            node=data["kind"] == DeclKind.NODE.value,
            version=VersionAnnotation.from_dict(data.get("version")),
            location=SourceLocation.from_dict(data.get("location")),
        )


@dataclass(frozen=True)
class VariantDef:
    """One variant of an enum.

    Attributes:
        name: Variant name
        kind: Shape of the variant
        discriminant: Explicit integer tag (INT variants only)
        values: Payload types (TUPLE variants only)
        fields: Payload fields, each optionally annotated (STRUCT variants only)
        version: Explicit version annotation, if any
        location: Position of the variant name

    Invariants:
        - The payload attributes match ``kind``
        - Discriminants are non-negative
    """

    name: str
    kind: VariantKind = VariantKind.UNIT
    discriminant: Optional[IntLiteral] = None
    values: tuple[ValueExpr, ...] = ()
    fields: tuple[FieldDef, ...] = ()
    version: Optional[VersionAnnotation] = None
    location: Optional[SourceLocation] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Variant name cannot be empty")
        if (self.kind == VariantKind.INT) != (self.discriminant is not None):
            raise ValueError(f"discriminant is required exactly for INT variant '{self.name}'")
        if self.discriminant is not None and self.discriminant.value < 0:
            raise ValueError(f"discriminant must be non-negative, got {self.discriminant.value}")
        if self.values and self.kind != VariantKind.TUPLE:
            raise ValueError(f"values are only allowed on TUPLE variant '{self.name}'")
        if self.fields and self.kind != VariantKind.STRUCT:
            raise ValueError(f"fields are only allowed on STRUCT variant '{self.name}'")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"name": self.name, "kind": self.kind.value}
        if self.discriminant is not None:
            result["discriminant"] = self.discriminant.to_dict()
        if self.kind == VariantKind.TUPLE:
            result["values"] = [value_to_dict(v) for v in self.values]
        if self.kind == VariantKind.STRUCT:
            result["fields"] = [f.to_dict() for f in self.fields]
        if self.version is not None:
            result["version"] = self.version.to_dict()
        if self.location is not None:
            result["location"] = self.location.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VariantDef:
        discriminant = data.get("discriminant")
        return cls(
            name=data["name"],
            kind=VariantKind(data.get("kind", VariantKind.UNIT.value)),
            discriminant=IntLiteral.from_dict(discriminant) if discriminant is not None else None,
            values=tuple(value_from_dict(v) for v in data.get("values", [])),
            fields=tuple(FieldDef.from_dict(f) for f in data.get("fields", [])),
            version=VersionAnnotation.from_dict(data.get("version")),
            location=SourceLocation.from_dict(data.get("location")),
        )


@dataclass(frozen=True)
class EnumDef:
    """A tagged enum type.

    Attributes:
        name: Type name
        variants: Ordered variant declarations
        version: Explicit version annotation, if any
        location: Position of the type name
    """

    name: str
    variants: tuple[VariantDef, ...] = ()
    version: Optional[VersionAnnotation] = None
    location: Optional[SourceLocation] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Type name cannot be empty")

    @property
    def kind(self) -> DeclKind:
        return DeclKind.ENUM

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": DeclKind.ENUM.value,
            "name": self.name,
            "variants": [v.to_dict() for v in self.variants],
        }
        if self.version is not None:
            result["version"] = self.version.to_dict()
        if self.location is not None:
            result["location"] = self.location.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnumDef:
        return cls(
            name=data["name"],
            variants=tuple(VariantDef.from_dict(v) for v in data.get("variants", [])),
            version=VersionAnnotation.from_dict(data.get("version")),
            location=SourceLocation.from_dict(data.get("location")),
        )


Declaration = Union[RecordDef, EnumDef]


def declaration_from_dict(data: dict[str, Any]) -> Declaration:
    """Create a declaration from dictionary representation.

    Raises:
        ValueError: If the declaration kind is unknown
    """
    kind = DeclKind(data["kind"])
    if kind == DeclKind.ENUM:
        return EnumDef.from_dict(data)
    return RecordDef.from_dict(data)


def declarations_to_dict(declarations: Sequence[Declaration]) -> dict[str, Any]:
    """Convert a declaration list to dictionary representation."""
    return {"types": [d.to_dict() for d in declarations]}


def declarations_from_dict(data: dict[str, Any]) -> list[Declaration]:
    """Create a declaration list from dictionary representation."""
    return [declaration_from_dict(d) for d in data.get("types", [])]
