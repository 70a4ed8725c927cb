"""
Version-to-version change classification for compiled schemas.

This module compares two versions of one compiled schema and reports what a
consumer upgrading from the old version to the new one would see:
- Types, fields and variants that appear are additions
- Types, fields and variants that disappear are removals
- A name that is backed by a different declaration is a redefinition

Invariants:
    - Additions are never breaking
    - Removals and redefinitions are always breaking
    - Changes are reported in declaration order of the newer version,
      removals first

How to change safely:
    - New change kinds must state whether they are breaking in is_breaking
    - Keep path formats stable; CI jobs grep for them

Example:
    >>> from verschema.schema.compat import diff_versions
    >>> changes = diff_versions(compiled, old=1, new=2)
    >>> breaking = [c for c in changes if c.is_breaking]
    >>> if breaking:
    ...     raise CompatibilityError(breaking)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Sequence

from .compiler import CompiledSchema
from .timeline import FieldSlot, TypeSlot, VariantSlot
from .types import Declaration, EnumDef, FieldDef, VariantDef, VariantKind, format_value

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    """Types of schema changes."""
    # Non-breaking changes (allowed)
    TYPE_ADDED = auto()
    FIELD_ADDED = auto()
    VARIANT_ADDED = auto()

    # Breaking changes (forbidden)
    TYPE_REMOVED = auto()
    TYPE_REDEFINED = auto()
    FIELD_REMOVED = auto()
    FIELD_REDEFINED = auto()
    VARIANT_REMOVED = auto()
    VARIANT_REDEFINED = auto()

    @property
    def is_breaking(self) -> bool:
        """Whether this change kind is a breaking change."""
        breaking_kinds = {
            ChangeKind.TYPE_REMOVED,
            ChangeKind.TYPE_REDEFINED,
            ChangeKind.FIELD_REMOVED,
            ChangeKind.FIELD_REDEFINED,
            ChangeKind.VARIANT_REMOVED,
            ChangeKind.VARIANT_REDEFINED,
        }
        return self in breaking_kinds


@dataclass
class SchemaChange:
    """Represents a single schema change between versions.

    Attributes:
        kind: The type of change
        path: Path to the changed element (e.g., "User.email", "Shape.Circle")
        old_value: Previous rendering (if applicable)
        new_value: New rendering (if applicable)
        message: Human-readable description of the change
    """
    kind: ChangeKind
    path: str
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    message: str = ""

    @property
    def is_breaking(self) -> bool:
        """Whether this is a breaking change."""
        return self.kind.is_breaking

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.name,
            "path": self.path,
            "breaking": self.is_breaking,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "message": self.message,
        }

    def __str__(self) -> str:
        status = "BREAKING" if self.is_breaking else "OK"
        return f"[{status}] {self.kind.name}: {self.path} - {self.message}"


class CompatibilityError(Exception):
    """Raised when breaking schema changes are detected.

    Attributes:
        changes: List of breaking changes detected
    """

    def __init__(self, changes: List[SchemaChange]):
        self.changes = changes
        messages = [str(c) for c in changes]
        super().__init__(
            f"Schema compatibility check failed with {len(changes)} breaking change(s):\n"
            + "\n".join(messages)
        )


def _field_map(fields: Sequence[FieldDef], indices: Sequence[int]) -> Dict[str, int]:
    return {fields[i].name: i for i in indices}


def _diff_fields(
    path: str,
    fields: Sequence[FieldDef],
    old_indices: Sequence[int],
    new_indices: Sequence[int],
) -> List[SchemaChange]:
    """Compare the active fields of one container across two versions."""
    changes: List[SchemaChange] = []
    old_fields = _field_map(fields, old_indices)
    new_fields = _field_map(fields, new_indices)

    for name, index in old_fields.items():
        if name not in new_fields:
            changes.append(SchemaChange(
                kind=ChangeKind.FIELD_REMOVED,
                path=f"{path}.{name}",
                old_value=format_value(fields[index].value),
                message=f"Field '{name}' was removed from '{path}'",
            ))

    for name, index in new_fields.items():
        if name not in old_fields:
            changes.append(SchemaChange(
                kind=ChangeKind.FIELD_ADDED,
                path=f"{path}.{name}",
                new_value=format_value(fields[index].value),
                message=f"Field '{name}' added to '{path}'",
            ))
        elif old_fields[name] != index:
            changes.append(SchemaChange(
                kind=ChangeKind.FIELD_REDEFINED,
                path=f"{path}.{name}",
                old_value=format_value(fields[old_fields[name]].value),
                new_value=format_value(fields[index].value),
                message=f"Field '{name}' of '{path}' is backed by a different declaration",
            ))

    return changes


def describe_variant(variant: VariantDef) -> str:
    """Render a variant in schema syntax, e.g. ``Fail = 1`` or ``Pair(u8, str)``."""
    if variant.kind == VariantKind.INT:
        return f"{variant.name} = {variant.discriminant.value}"
    if variant.kind == VariantKind.TUPLE:
        return f"{variant.name}({', '.join(format_value(v) for v in variant.values)})"
    if variant.kind == VariantKind.STRUCT:
        fields = ", ".join(f"{f.name}: {format_value(f.value)}" for f in variant.fields)
        return f"{variant.name} {{ {fields} }}"
    return variant.name


def _variant_map(slots: Sequence[FieldSlot]) -> Dict[int, FieldSlot]:
    return {
        (s.variant_index if isinstance(s, VariantSlot) else s): s
        for s in slots
    }


def _diff_variants(enum_def: EnumDef, old_slot: TypeSlot, new_slot: TypeSlot) -> List[SchemaChange]:
    """Compare the active variants of one enum across two versions."""
    changes: List[SchemaChange] = []
    old_variants = _variant_map(old_slot.fields)
    new_variants = _variant_map(new_slot.fields)
    old_by_name = {enum_def.variants[i].name: i for i in old_variants}
    new_by_name = {enum_def.variants[i].name: i for i in new_variants}

    for name in old_by_name:
        if name not in new_by_name:
            changes.append(SchemaChange(
                kind=ChangeKind.VARIANT_REMOVED,
                path=f"{enum_def.name}.{name}",
                old_value=describe_variant(enum_def.variants[old_by_name[name]]),
                message=f"Variant '{name}' was removed from enum '{enum_def.name}'",
            ))

    for name, index in new_by_name.items():
        path = f"{enum_def.name}.{name}"
        if name not in old_by_name:
            changes.append(SchemaChange(
                kind=ChangeKind.VARIANT_ADDED,
                path=path,
                new_value=describe_variant(enum_def.variants[index]),
                message=f"Variant '{name}' added to enum '{enum_def.name}'",
            ))
        elif old_by_name[name] != index:
            changes.append(SchemaChange(
                kind=ChangeKind.VARIANT_REDEFINED,
                path=path,
                old_value=describe_variant(enum_def.variants[old_by_name[name]]),
                new_value=describe_variant(enum_def.variants[index]),
                message=f"Variant '{name}' of '{enum_def.name}' is backed by a different declaration",
            ))
        else:
            old_variant = old_variants[index]
            new_variant = new_variants[index]
            if isinstance(old_variant, VariantSlot) and isinstance(new_variant, VariantSlot):
                changes.extend(_diff_fields(
                    path,
                    enum_def.variants[index].fields,
                    old_variant.field_indices,
                    new_variant.field_indices,
                ))

    return changes


def _diff_type(decl: Declaration, old_slot: TypeSlot, new_slot: TypeSlot) -> List[SchemaChange]:
    if isinstance(decl, EnumDef):
        return _diff_variants(decl, old_slot, new_slot)
    return _diff_fields(decl.name, decl.fields, old_slot.fields, new_slot.fields)


def diff_versions(compiled: CompiledSchema, old: int, new: int) -> List[SchemaChange]:
    """Classify every change between two versions of a compiled schema.

    Args:
        compiled: The compiled schema
        old: The version consumers are upgrading from
        new: The version consumers are upgrading to

    Returns:
        List of SchemaChange objects describing all differences

    Raises:
        KeyError: If either version does not exist
    """
    declarations = compiled.declarations
    old_types = {declarations[t.decl_index].name: t for t in compiled.module(old).types}
    new_types = {declarations[t.decl_index].name: t for t in compiled.module(new).types}
    changes: List[SchemaChange] = []

    for name, slot in old_types.items():
        if name not in new_types:
            changes.append(SchemaChange(
                kind=ChangeKind.TYPE_REMOVED,
                path=name,
                old_value=declarations[slot.decl_index].kind.value,
                message=f"Type '{name}' was removed",
            ))

    for name, slot in new_types.items():
        decl = declarations[slot.decl_index]
        if name not in old_types:
            changes.append(SchemaChange(
                kind=ChangeKind.TYPE_ADDED,
                path=name,
                new_value=decl.kind.value,
                message=f"Type '{name}' ({decl.kind.value}) added",
            ))
        elif old_types[name].decl_index != slot.decl_index:
            old_decl = declarations[old_types[name].decl_index]
            changes.append(SchemaChange(
                kind=ChangeKind.TYPE_REDEFINED,
                path=name,
                old_value=old_decl.kind.value,
                new_value=decl.kind.value,
                message=f"Type '{name}' is backed by a different declaration",
            ))
        else:
            changes.extend(_diff_type(decl, old_types[name], slot))

    logger.debug(f"Version {old} -> {new}: {len(changes)} change(s)")
    return changes


def check_upgrade(compiled: CompiledSchema, old: int, new: int) -> List[SchemaChange]:
    """Diff two versions and fail on breaking changes.

    Returns:
        All changes, when none of them is breaking

    Raises:
        CompatibilityError: If any breaking change is found
    """
    changes = diff_versions(compiled, old, new)
    breaking = [c for c in changes if c.is_breaking]
    if breaking:
        raise CompatibilityError(breaking)
    return changes
