"""Mapping plan data classes.

Frozen dataclasses representing resolved, validated mapping plans. Built by
the FieldResolutionPlanner and consumed once by the code synthesizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from map_forge.core.enums import ConversionKind
from map_forge.model.descriptors import FieldDescriptor, MappingDirective, TypeDescriptor
from map_forge.model.types import TypeRef


@dataclass(frozen=True)
class TargetSlot:
    """A constructor parameter or settable field on the target type."""

    name: str
    type_ref: TypeRef
    required: bool
    settable: bool
    constructor_index: int | None = None
    positional: bool = False
    keyword: str = ""
    aliases: tuple[str, ...] = ()

    @property
    def in_constructor(self) -> bool:
        return self.constructor_index is not None

    @property
    def names(self) -> tuple[str, ...]:
        """Every name a source field may match: attribute name, keyword, aliases."""
        seen = dict.fromkeys((self.name, self.keyword or self.name, *self.aliases))
        return tuple(seen)


@dataclass(frozen=True)
class Conversion:
    """How one source value becomes one target value."""

    kind: ConversionKind
    source_type: TypeRef | None
    target_type: TypeRef
    function_name: str | None = None  # delegate for NESTED / ENUM_MAPPING / POLYMORPHIC
    element: Conversion | None = None  # per-element conversion for COLLECTION

    @property
    def resolved(self) -> bool:
        return self.kind is not ConversionKind.UNRESOLVED

    @property
    def is_direct(self) -> bool:
        """Identity or coercion: usable in a projection expression."""
        return self.kind in (ConversionKind.IDENTITY, ConversionKind.COERCION)


@dataclass(frozen=True)
class FieldCorrespondence:
    """One target slot with the source path feeding it."""

    slot: TargetSlot
    path: tuple[FieldDescriptor, ...]  # source attribute chain, leaf last
    conversion: Conversion
    nested_plan: MappingPlan | None = None

    @property
    def source_field(self) -> FieldDescriptor | None:
        return self.path[-1] if self.path else None

    @property
    def is_flattened(self) -> bool:
        return len(self.path) > 1

    @property
    def source_path(self) -> str:
        return ".".join(f.name for f in self.path)


@dataclass(frozen=True)
class MappingPlan:
    """Resolved correspondences for one (source, target) direction."""

    source: TypeDescriptor
    target: TypeDescriptor
    directive: MappingDirective
    function_name: str
    reverse: bool = False
    correspondences: tuple[FieldCorrespondence, ...] = ()
    unresolved: tuple[TargetSlot, ...] = ()
    uses_constructor: bool = True
    slots: tuple[TargetSlot, ...] = field(default=(), repr=False)

    @property
    def constructor_correspondences(self) -> tuple[FieldCorrespondence, ...]:
        return tuple(c for c in self.correspondences if c.slot.in_constructor)

    @property
    def assignment_correspondences(self) -> tuple[FieldCorrespondence, ...]:
        """Resolved slots set after construction (all settable ones without a constructor)."""
        if not self.uses_constructor:
            return tuple(c for c in self.correspondences if c.slot.settable)
        return tuple(
            c for c in self.correspondences if not c.slot.in_constructor and c.slot.settable
        )

    def correspondence(self, slot_name: str) -> FieldCorrespondence | None:
        lowered = slot_name.lower()
        return next((c for c in self.correspondences if c.slot.name.lower() == lowered), None)
