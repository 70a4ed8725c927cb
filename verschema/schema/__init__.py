"""
Schema module for verschema.

This module provides the versioned type system and its compiler, including:
- Declarations (RecordDef, EnumDef, FieldDef, VariantDef) and value expressions
- The schema text parser
- Version range resolution and per-version module snapshots
- Validation passes (name overlap, enum rules, type graph)
- Version-to-version change classification

Invariants:
    - Version ranges are half-open: [add, rem)
    - Every version from 1 to the highest mentioned is non-empty
    - Names are unique per version within each scope
    - Node types are only reached through ref<>

How to change safely:
    - Never change the meaning of an existing annotation
    - Retire items with rem() instead of deleting their declarations
    - Run ``verschema diff`` between released versions before shipping
"""

from .compat import (
    ChangeKind,
    CompatibilityError,
    SchemaChange,
    check_upgrade,
    diff_versions,
)
from .compiler import CompiledSchema, compile_schema, render_module
from .parser import parse_schema
from .timeline import Module, TypeSlot, VariantSlot, build_timeline
from .types import (
    ArrayValue,
    CompositeValue,
    DeclKind,
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
    VariantDef,
    VariantKind,
    VersionAnnotation,
    declarations_from_dict,
    declarations_to_dict,
    field,
    version,
)
from .versions import EffectiveRange, resolve

__all__ = [
    # Types
    "ArrayValue",
    "CompositeValue",
    "DeclKind",
    "EnumDef",
    "FieldDef",
    "IntLiteral",
    "OptionalValue",
    "PrimitiveKind",
    "PrimitiveValue",
    "RecordDef",
    "ReferenceValue",
    "SliceValue",
    "TupleValue",
    "VariantDef",
    "VariantKind",
    "VersionAnnotation",
    "declarations_from_dict",
    "declarations_to_dict",
    "field",
    "version",
    # Front end
    "parse_schema",
    # Versions
    "EffectiveRange",
    "resolve",
    "Module",
    "TypeSlot",
    "VariantSlot",
    "build_timeline",
    # Compiler
    "CompiledSchema",
    "compile_schema",
    "render_module",
    # Compatibility
    "SchemaChange",
    "ChangeKind",
    "CompatibilityError",
    "check_upgrade",
    "diff_versions",
]
