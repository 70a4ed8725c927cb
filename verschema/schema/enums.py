"""
Enum semantics checks.

Two rules apply to enums:
- Shape consistency (whole file): an enum's variants are either integer
  discriminants or tuple/struct payloads, never both. Unit variants fit
  either style. This holds even across variants that never coexist.
- Discriminant order (per version): within one module's active variants,
  each discriminant must exceed the previous one plus the number of unit
  variants in between, since each unit variant takes the next value.

Both are checked one variant at a time, by the walk that visits it: the
timeline builder checks shapes in declaration order, and the type graph walk
checks discriminants in each module's variant order.
"""

from __future__ import annotations

from typing import Optional

from ..errors import EnumDiscriminantError, EnumShapeError
from .types import EnumDef, VariantDef, VariantKind

_PAYLOAD_KINDS = frozenset({VariantKind.TUPLE, VariantKind.STRUCT})


def _shape_class(kind: VariantKind) -> Optional[str]:
    if kind == VariantKind.INT:
        return "int"
    if kind in _PAYLOAD_KINDS:
        return "payload"
    return None


class VariantShapeCheck:
    """Checks one enum's variants for mixed discriminant and payload styles.

    Example:
        >>> shapes = VariantShapeCheck(enum_def)
        >>> for variant in enum_def.variants:
        ...     shapes.check(variant)
    """

    def __init__(self, enum_def: EnumDef) -> None:
        self._enum = enum_def
        self._seen: Optional[str] = None

    def check(self, variant: VariantDef) -> None:
        """Check the next variant in declaration order.

        Raises:
            EnumShapeError: At the variant whose shape conflicts
        """
        shape = _shape_class(variant.kind)
        if shape is None:
            return
        if self._seen is None:
            self._seen = shape
        elif self._seen != shape:
            raise EnumShapeError(
                f"Enum '{self._enum.name}' cannot have variants with both integer values, "
                "and tuple or struct values",
                variant.location,
                details={"enum": self._enum.name, "variant": variant.name},
            )


class DiscriminantCounter:
    """Running discriminant state over one enum's active variants in one module."""

    def __init__(self, enum_def: EnumDef, version: int) -> None:
        self._enum = enum_def
        self._version = version
        self._last: Optional[int] = None
        self._increment = 0

    def check(self, variant: VariantDef) -> None:
        """Advance past the next active variant.

        Raises:
            EnumDiscriminantError: At an out-of-order discriminant literal
        """
        if variant.kind == VariantKind.UNIT:
            if self._last is not None:
                self._increment += 1
            return
        if variant.kind != VariantKind.INT:
            return

        literal = variant.discriminant
        if self._last is not None and literal.value <= self._last + self._increment:
            raise EnumDiscriminantError(
                "Enum discriminant must be greater than the last discriminant "
                f"value + any increment values (version {self._version})",
                literal.location,
                details={
                    "enum": self._enum.name,
                    "variant": variant.name,
                    "version": self._version,
                },
            )
        self._last = literal.value
        self._increment = 0
