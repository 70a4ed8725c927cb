"""
Compilation entry point.

compile_schema() checks a declaration list in source order and stops at the
first error:
1. Timeline construction, which checks each item as it is placed: enum
   variant shapes, version ranges, the version bound and name overlaps
2. Per module, in version order: the empty check, then one walk over the
   active types for discriminant order and type references

The result is a CompiledSchema: the declarations, the module snapshots, and a
canonical rendering with a fingerprint that changes whenever any version's
shape changes.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Optional, Sequence

from ..config import CompilerSettings
from ..errors import EmptyVersionError
from .timeline import Module, TimelineBuilder, VariantSlot
from .typegraph import TypeGraphValidator
from .types import Declaration, EnumDef, RecordDef, VariantDef, VariantKind, format_value

logger = logging.getLogger(__name__)


class CompiledSchema:
    """Validated per-version snapshots of a schema.

    Attributes:
        declarations: The source declaration list
        modules: One Module per version, modules[v - 1] for version v
    """

    def __init__(self, declarations: Sequence[Declaration], modules: list[Module]) -> None:
        self.declarations = tuple(declarations)
        self.modules = modules
        self._fingerprint: Optional[str] = None

    @property
    def versions(self) -> int:
        """Number of versions (the highest version number)."""
        return len(self.modules)

    def module(self, version: int) -> Module:
        """Get the snapshot for a version.

        Raises:
            KeyError: If the version does not exist
        """
        if version < 1 or version > len(self.modules):
            raise KeyError(f"version {version} does not exist (1..{len(self.modules)})")
        return self.modules[version - 1]

    def type_names(self, version: int) -> list[str]:
        """Names of the types active in a version, in declaration order."""
        return [self.declarations[t.decl_index].name for t in self.module(version).types]

    @property
    def fingerprint(self) -> str:
        """SHA-256 of the canonical rendering, as 'sha256:<hash>'."""
        if self._fingerprint is None:
            canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(',', ':'))
            hash_bytes = hashlib.sha256(canonical.encode('utf-8')).hexdigest()
            self._fingerprint = f"sha256:{hash_bytes}"
        return self._fingerprint

    def to_dict(self) -> dict[str, Any]:
        """Render every version with names resolved."""
        return {
            "versions": [render_module(m, self.declarations) for m in self.modules],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)


def _render_variant(variant: VariantDef, slot: Any) -> dict[str, Any]:
    result: dict[str, Any] = {"name": variant.name}
    if variant.kind == VariantKind.INT:
        result["discriminant"] = variant.discriminant.value
    elif variant.kind == VariantKind.TUPLE:
        result["values"] = [format_value(v) for v in variant.values]
    elif isinstance(slot, VariantSlot):
        result["fields"] = [
            {"name": variant.fields[i].name, "type": format_value(variant.fields[i].value)}
            for i in slot.field_indices
        ]
    return result


def render_module(module: Module, declarations: Sequence[Declaration]) -> dict[str, Any]:
    """Render one module as plain data, resolving indices to names."""
    types = []
    for type_slot in module.types:
        decl = declarations[type_slot.decl_index]
        entry: dict[str, Any] = {"name": decl.name, "kind": decl.kind.value}
        if isinstance(decl, RecordDef):
            entry["fields"] = [
                {"name": decl.fields[i].name, "type": format_value(decl.fields[i].value)}
                for i in type_slot.fields
            ]
        elif isinstance(decl, EnumDef):
            entry["variants"] = [
                _render_variant(
                    decl.variants[s.variant_index if isinstance(s, VariantSlot) else s], s
                )
                for s in type_slot.fields
            ]
        types.append(entry)
    return {"version": module.version, "types": types}


def compile_schema(
    declarations: Sequence[Declaration],
    settings: Optional[CompilerSettings] = None,
) -> CompiledSchema:
    """Compile a declaration list into validated version snapshots.

    Args:
        declarations: Types in source order
        settings: Compiler settings (defaults from the environment)

    Returns:
        CompiledSchema with one module per version

    Raises:
        CompileError: The first error, in source order
    """
    settings = settings or CompilerSettings()

    modules = TimelineBuilder(declarations, settings.max_version).build()

    validator = TypeGraphValidator(declarations)
    for module in modules:
        if module.is_empty:
            raise EmptyVersionError(module.version)
        validator.check_module(module)
    logger.debug(f"Validated {len(modules)} modules")

    compiled = CompiledSchema(declarations, modules)
    logger.info(
        f"Compiled schema: {len(declarations)} declarations, "
        f"{compiled.versions} versions, fingerprint={compiled.fingerprint}"
    )
    return compiled
