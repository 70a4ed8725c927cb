"""
Name overlap checking.

Two siblings may share a name only if at most one of them is active in any
single version. Siblings are: top-level types, the fields of one record, the
variants of one enum, and the fields of one struct-shaped variant.

The timeline builder keeps one NameScope per sibling list and adds each item
right after resolving its range, so errors surface in source order.

Invariants:
    - An unannotated item never shares its name with a sibling
    - The outcome does not depend on which item is declared first
    - Errors point at the later-declared item's name
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..errors import NameOverlapError
from ..source_location import SourceLocation
from .types import VersionAnnotation
from .versions import EffectiveRange


@dataclass(frozen=True)
class ScopedItem:
    """A sibling item reduced to what the overlap check needs."""

    name: str
    annotation: Optional[VersionAnnotation]
    range: EffectiveRange
    location: Optional[SourceLocation] = None


def ranges_disjoint(left: ScopedItem, right: ScopedItem) -> bool:
    """Whether two items can never be active in the same version."""
    if left.annotation is None or right.annotation is None:
        return False
    if left.range.added == right.range.added:
        return False

    first, later = (left, right) if left.range.added < right.range.added else (right, left)
    if not first.range.closed:
        return False
    return first.range.removed <= later.range.added


class NameScope:
    """The siblings seen so far in one scope, in declaration order.

    Example:
        >>> fields = NameScope()
        >>> for f in record.fields:
        ...     fields.add(ScopedItem(f.name, f.version, resolve(f.version, rng), f.location))
    """

    def __init__(self) -> None:
        self._items: list[ScopedItem] = []

    def add(self, item: ScopedItem) -> None:
        """Check an item against its earlier siblings, then record it.

        Raises:
            NameOverlapError: If a same-named earlier sibling may coexist with it
        """
        for earlier in self._items:
            if earlier.name == item.name and not ranges_disjoint(earlier, item):
                raise NameOverlapError(
                    f"'{item.name}' overlaps with a previously defined item. "
                    "Items that share the same name must exist in different versions",
                    item.location,
                    details={"name": item.name},
                )
        self._items.append(item)
