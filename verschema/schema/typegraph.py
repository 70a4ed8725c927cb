"""
Type graph checks, run once per module.

Within one version, every type name used by an active field must resolve to
a type active in that same version, and node types must be reached through
``ref<>`` while plain types must not be. Forward references are legal inside
a module; the name table is rebuilt from scratch for each module.

The walk visits active types and members in module order. Discriminant order
and reference kinds are checked as each member is visited; dangling references
are reported only once the whole module has been seen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..errors import DanglingReferenceError, ReferenceKindError
from ..source_location import SourceLocation
from .enums import DiscriminantCounter
from .timeline import Module, VariantSlot
from .types import (
    ArrayValue,
    CompositeValue,
    Declaration,
    EnumDef,
    OptionalValue,
    PrimitiveKind,
    PrimitiveValue,
    RecordDef,
    ReferenceValue,
    SliceValue,
    TupleValue,
    ValueExpr,
    VariantKind,
)

logger = logging.getLogger(__name__)


@dataclass
class _Found:
    is_node: bool


@dataclass
class _Used:
    # (location, expects_node) for every use seen before the definition
    uses: List[Tuple[Optional[SourceLocation], bool]] = field(default_factory=list)


_NameState = Union[_Found, _Used]


class TypeGraphValidator:
    """Checks name resolution and node/value rules for each module.

    Example:
        >>> validator = TypeGraphValidator(declarations)
        >>> for module in modules:
        ...     validator.check_module(module)
    """

    def __init__(self, declarations: Sequence[Declaration]) -> None:
        self._declarations = declarations
        self._names: Dict[str, _NameState] = {}

    def check_module(self, module: Module) -> None:
        """Validate one module.

        Raises:
            EnumDiscriminantError: If an enum's active discriminants are out of order
            ReferenceKindError: If node/value reference rules are violated
            DanglingReferenceError: If a used type is not active in the module
        """
        self._names = {}

        for type_slot in module.types:
            decl = self._declarations[type_slot.decl_index]
            if isinstance(decl, RecordDef):
                self._found(decl.name, decl.node)
                for field_index in type_slot.fields:
                    self._check_value(decl.fields[field_index].value, False)
            else:
                self._found(decl.name, False)
                self._check_enum(decl, type_slot.fields, module.version)

        for name, state in self._names.items():
            if isinstance(state, _Used):
                location, _ = state.uses[0]
                raise DanglingReferenceError(
                    f"type '{name}' does not exist in version {module.version}",
                    location,
                    details={"name": name, "version": module.version},
                )
        self._names = {}

    def _check_enum(self, enum_def: EnumDef, slots: list, version: int) -> None:
        discriminants = DiscriminantCounter(enum_def, version)
        for slot in slots:
            if isinstance(slot, VariantSlot):
                variant = enum_def.variants[slot.variant_index]
                for field_index in slot.field_indices:
                    self._check_value(variant.fields[field_index].value, False)
            else:
                variant = enum_def.variants[slot]
                if variant.kind == VariantKind.TUPLE:
                    for value in variant.values:
                        self._check_value(value, False)
                else:
                    discriminants.check(variant)

    def _found(self, name: str, is_node: bool) -> None:
        previous = self._names.get(name)
        self._names[name] = _Found(is_node)
        if isinstance(previous, _Used):
            for location, expects_node in previous.uses:
                self._check_kind(is_node, expects_node, location)

    def _use(self, name: str, location: Optional[SourceLocation], expects_node: bool) -> None:
        state = self._names.get(name)
        if isinstance(state, _Found):
            self._check_kind(state.is_node, expects_node, location)
        elif isinstance(state, _Used):
            state.uses.append((location, expects_node))
        else:
            self._names[name] = _Used([(location, expects_node)])

    @staticmethod
    def _check_kind(is_node: bool, expects_node: bool, location: Optional[SourceLocation]) -> None:
        if is_node and not expects_node:
            raise ReferenceKindError("node types must be enclosed by a ref type", location)
        if expects_node and not is_node:
            raise ReferenceKindError("only node types may be enclosed by a ref type", location)

    def _check_value(self, value: ValueExpr, expects_node: bool) -> None:
        if expects_node:
            # Direct child of ref<>: a type name or `any`, nothing else
            if isinstance(value, CompositeValue):
                self._use(value.name, value.location, True)
            elif not (isinstance(value, PrimitiveValue) and value.kind == PrimitiveKind.ANY):
                raise ReferenceKindError("expected node type", value.location)
            return

        if isinstance(value, CompositeValue):
            self._use(value.name, value.location, False)
        elif isinstance(value, ReferenceValue):
            self._check_value(value.inner, True)
        elif isinstance(value, (OptionalValue, ArrayValue, SliceValue)):
            self._check_value(value.inner, False)
        elif isinstance(value, TupleValue):
            for item in value.items:
                self._check_value(item, False)
        elif value.kind == PrimitiveKind.ANY:
            raise ReferenceKindError("any types must be enclosed by a ref type", value.location)

