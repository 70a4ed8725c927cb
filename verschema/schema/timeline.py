"""
Timeline construction: one Module snapshot per version number.

The builder walks the declarations once, in source order (types, then their
fields, then struct-variant fields), and places every item into each module
its effective range covers. Item-level checks run inside the same walk, so the
first error in source order is the one reported:

1. Enum variants only: shape consistency with the earlier variants
2. The item's range (malformed, escapes its container, above max_version)
3. The item's name against its earlier siblings; a type's name is checked
   after all of its members

Closed items (``removed`` known) are written directly into the modules
``[added, removed)``. Open items are written into every existing module from
``added`` onward and also registered on an open template, so modules allocated
later are seeded with them. Earlier modules are only revisited for that
bounded backfill.

Invariants:
    - modules[v - 1] is the snapshot for version v
    - Every version mentioned by any add/rem literal has a module
    - While an item is processed, its container's slot is the last slot
      of every module in the container's range
    - Module count never exceeds the configured max_version
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Callable, List, Optional, Sequence, Union

from ..errors import VersionLimitError
from .enums import VariantShapeCheck
from .overlap import NameScope, ScopedItem
from .types import Declaration, EnumDef, FieldDef, VariantKind, VersionAnnotation
from .versions import EffectiveRange, resolve

logger = logging.getLogger(__name__)

DEFAULT_MAX_VERSION = 1024


@dataclass
class VariantSlot:
    """A struct-shaped enum variant and its active fields."""

    variant_index: int
    field_indices: List[int] = dataclass_field(default_factory=list)

    def clone(self) -> VariantSlot:
        return VariantSlot(self.variant_index, list(self.field_indices))


FieldSlot = Union[int, VariantSlot]


@dataclass
class TypeSlot:
    """A declaration active in a module, with its active members.

    ``fields`` holds field indices for records, and variant indices for enums
    (a VariantSlot for struct-shaped variants).
    """

    decl_index: int
    fields: List[FieldSlot] = dataclass_field(default_factory=list)

    def clone(self) -> TypeSlot:
        return TypeSlot(
            self.decl_index,
            [f.clone() if isinstance(f, VariantSlot) else f for f in self.fields],
        )


@dataclass
class Module:
    """The schema as it exists at one version."""

    version: int
    types: List[TypeSlot] = dataclass_field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.types


class TimelineBuilder:
    """Single-pass builder of the module list.

    Example:
        >>> modules = TimelineBuilder(declarations).build()
        >>> [m.version for m in modules]
        [1, 2, 3]
    """

    def __init__(
        self,
        declarations: Sequence[Declaration],
        max_version: int = DEFAULT_MAX_VERSION,
    ) -> None:
        self._declarations = declarations
        self._max_version = max_version
        self._modules: list[Module] = []
        # Templates of open types, in declaration order; seeds for new modules
        self._open_types: list[TypeSlot] = []

    def build(self) -> list[Module]:
        """Run the pass and return the modules.

        Raises:
            MalformedVersionError: If an annotation is invalid
            ContainmentError: If a member escapes its container's range
            VersionLimitError: If a literal exceeds max_version
            EnumShapeError: If an enum mixes discriminant and payload variants
            NameOverlapError: If same-named siblings may coexist
        """
        type_names = NameScope()
        for decl_index, decl in enumerate(self._declarations):
            rng = self._resolve(decl.version, None)
            template = self._place(
                rng,
                lambda: TypeSlot(decl_index),
                self._open_types,
                lambda module: module.types,
            )
            if isinstance(decl, EnumDef):
                self._add_variants(decl, rng, template)
            else:
                self._add_fields(decl.fields, rng, template)
            type_names.add(ScopedItem(decl.name, decl.version, rng, decl.location))

        logger.debug(
            f"Built timeline: {len(self._declarations)} declarations, "
            f"{len(self._modules)} versions"
        )
        return self._modules

    def _add_fields(
        self,
        fields: Sequence[FieldDef],
        type_range: EffectiveRange,
        template: Optional[TypeSlot],
    ) -> None:
        names = NameScope()
        for field_index, field_def in enumerate(fields):
            rng = self._resolve(field_def.version, type_range)
            self._place(
                rng,
                lambda: field_index,
                template.fields if template is not None else None,
                lambda module: module.types[-1].fields,
            )
            names.add(ScopedItem(field_def.name, field_def.version, rng, field_def.location))

    def _add_variants(
        self,
        enum_def: EnumDef,
        enum_range: EffectiveRange,
        template: Optional[TypeSlot],
    ) -> None:
        shapes = VariantShapeCheck(enum_def)
        names = NameScope()
        for variant_index, variant in enumerate(enum_def.variants):
            shapes.check(variant)
            rng = self._resolve(variant.version, enum_range)
            is_struct = variant.kind == VariantKind.STRUCT
            variant_template = self._place(
                rng,
                (lambda: VariantSlot(variant_index)) if is_struct else (lambda: variant_index),
                template.fields if template is not None else None,
                lambda module: module.types[-1].fields,
            )
            names.add(ScopedItem(variant.name, variant.version, rng, variant.location))
            if is_struct:
                self._add_variant_fields(variant.fields, rng, variant_template)

    def _add_variant_fields(
        self,
        fields: Sequence[FieldDef],
        variant_range: EffectiveRange,
        template: Optional[VariantSlot],
    ) -> None:
        names = NameScope()
        for field_index, field_def in enumerate(fields):
            rng = self._resolve(field_def.version, variant_range)
            names.add(ScopedItem(field_def.name, field_def.version, rng, field_def.location))
            self._place(
                rng,
                lambda: field_index,
                template.field_indices if template is not None else None,
                lambda module: module.types[-1].fields[-1].field_indices,
            )

    def _place(
        self,
        rng: EffectiveRange,
        make_slot: Callable[[], object],
        open_scope: Optional[list],
        target: Callable[[Module], list],
    ):
        """Write an item's slot into every module of its range.

        Returns the open template for open items, None for closed ones.
        """
        if rng.closed:
            self._ensure_modules(rng.removed)
            for i in range(rng.added - 1, rng.removed - 1):
                target(self._modules[i]).append(make_slot())
            return None

        # Allocate before registering so versions below `added` are not seeded
        self._ensure_modules(rng.added)
        template = make_slot()
        # An open item always sits in an open container, so open_scope is set
        open_scope.append(template)
        for i in range(rng.added - 1, len(self._modules)):
            target(self._modules[i]).append(make_slot())
        return template

    def _ensure_modules(self, count: int) -> None:
        while len(self._modules) < count:
            self._modules.append(
                Module(
                    version=len(self._modules) + 1,
                    types=[t.clone() for t in self._open_types],
                )
            )

    def _resolve(
        self,
        annotation: Optional[VersionAnnotation],
        container: Optional[EffectiveRange],
    ) -> EffectiveRange:
        if annotation is not None:
            for literal in (annotation.added, annotation.removed):
                if literal is not None and literal.value > self._max_version:
                    raise VersionLimitError(
                        f"version {literal.value} exceeds the maximum of {self._max_version}",
                        literal.location,
                        details={"max_version": self._max_version},
                    )
        return resolve(annotation, container)


def build_timeline(
    declarations: Sequence[Declaration],
    max_version: int = DEFAULT_MAX_VERSION,
) -> list[Module]:
    """Build the module list for a declaration list."""
    return TimelineBuilder(declarations, max_version).build()
