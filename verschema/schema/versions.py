"""
Version range resolution.

Every type, field and variant exists over a half-open interval of versions
``[added, removed)``. An item without an annotation inherits its container's
interval; an annotated item must stay inside it.

Invariants:
    - added >= 1
    - removed, when set, is > added and >= 2
    - A contained item's range is a subset of its container's range
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..errors import ContainmentError, MalformedVersionError
from .types import VersionAnnotation


@dataclass(frozen=True)
class EffectiveRange:
    """Resolved ``[added, removed)`` interval; ``removed=None`` means forever."""

    added: int = 1
    removed: Optional[int] = None

    @property
    def closed(self) -> bool:
        return self.removed is not None

    def contains(self, version: int) -> bool:
        """Whether the item exists in ``version``."""
        if version < self.added:
            return False
        return self.removed is None or version < self.removed

    def __str__(self) -> str:
        end = "inf" if self.removed is None else str(self.removed)
        return f"[{self.added}, {end})"


UNBOUNDED = EffectiveRange(1, None)


def resolve(
    annotation: Optional[VersionAnnotation],
    container: Optional[EffectiveRange] = None,
) -> EffectiveRange:
    """Compute the effective range of an item.

    Args:
        annotation: The item's explicit version header, if any
        container: The enclosing item's resolved range; None for top-level types

    Returns:
        The item's EffectiveRange

    Raises:
        MalformedVersionError: If the annotation is invalid on its own
        ContainmentError: If the annotation escapes the container's range
    """
    if annotation is None:
        return container if container is not None else UNBOUNDED

    if container is None:
        return _resolve_top_level(annotation)
    return _resolve_contained(annotation, container)


def _resolve_top_level(annotation: VersionAnnotation) -> EffectiveRange:
    added = 1
    if annotation.added is not None:
        added = annotation.added.value
        if added < 1:
            raise MalformedVersionError("add value must be at least 1", annotation.added.location)

    removed = None
    if annotation.removed is not None:
        removed = annotation.removed.value
        if removed <= added:
            raise MalformedVersionError(
                "rem value is less than or equal to the add value",
                annotation.removed.location,
            )

    return EffectiveRange(added, removed)


def _resolve_contained(annotation: VersionAnnotation, container: EffectiveRange) -> EffectiveRange:
    added = container.added
    if annotation.added is not None:
        literal = annotation.added
        added = literal.value
        if added < 1:
            raise MalformedVersionError("add value must be at least 1", literal.location)
        if added < container.added:
            raise ContainmentError(
                "add value is less than the container type's add value",
                literal.location,
            )
        if container.removed is not None and added >= container.removed:
            raise ContainmentError(
                "add value is greater than or equal to the container type's rem value",
                literal.location,
            )

    removed = container.removed
    if annotation.removed is not None:
        literal = annotation.removed
        removed = literal.value
        if removed < 2:
            raise MalformedVersionError("rem value must be at least 2", literal.location)
        if removed <= added:
            raise MalformedVersionError(
                "rem value is less than or equal to the add value",
                literal.location,
            )
        if container.removed is not None and removed > container.removed:
            raise ContainmentError(
                "rem value is greater than the container type's rem value",
                literal.location,
            )

    return EffectiveRange(added, removed)
