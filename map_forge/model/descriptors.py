"""Immutable type model.

Frozen dataclasses describing participating types. Built once per type per
generation pass by the TypeModelExtractor and shared read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from map_forge.core.diagnostics import SourceLocation
from map_forge.core.enums import PropertyNameStrategy, TypeKind, Visibility
from map_forge.model.types import TypeRef


@dataclass(frozen=True)
class MappingDirective:
    """Declared intent to generate a conversion to ``target``."""

    target: type
    bidirectional: bool = False
    property_name_strategy: PropertyNameStrategy = PropertyNameStrategy.IDENTITY
    before_map: str | None = None
    after_map: str | None = None
    enable_flattening: bool = False
    update_target: bool = False
    generate_projection: bool = False
    include_private_members: bool = False
    factory: str | None = None
    instance: str | None = None


@dataclass(frozen=True)
class DerivedTypePair:
    """One (derived source, derived target) branch of a polymorphic mapping."""

    source: type
    target: type


@dataclass(frozen=True)
class FieldDescriptor:
    """One resolved field of a type after inheritance collapsing."""

    name: str
    type_ref: TypeRef
    declaring_type: str
    visibility: Visibility = Visibility.PUBLIC
    ignored: bool = False
    rename: str | None = None
    readable: bool = True
    settable: bool = True
    required: bool = False
    alias: str | None = None

    @property
    def nullable(self) -> bool:
        return self.type_ref.nullable

    @property
    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC


@dataclass(frozen=True)
class ConstructorParameter:
    """A constructor parameter; ``keyword`` is the name used when bound by keyword."""

    name: str
    type_ref: TypeRef
    required: bool
    positional: bool
    keyword: str


@dataclass(frozen=True)
class EnumMember:
    name: str
    value: Any


@dataclass(frozen=True)
class EnumDescriptor:
    """Ordered members of an enum, aliases excluded."""

    members: tuple[EnumMember, ...]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(m.name for m in self.members)


@dataclass(frozen=True)
class TypeDescriptor:
    """Normalized model of one type."""

    py_type: type
    name: str
    qualname: str
    module: str
    kind: TypeKind
    chain: tuple[str, ...]
    fields: tuple[FieldDescriptor, ...] = ()
    constructor: tuple[ConstructorParameter, ...] = ()
    directives: tuple[MappingDirective, ...] = ()
    derived_pairs: tuple[DerivedTypePair, ...] = ()
    enum: EnumDescriptor | None = None
    is_open: bool = True
    is_abstract: bool = False
    is_frozen: bool = False
    fingerprint: str = ""
    location: SourceLocation | None = field(default=None, compare=False)

    @property
    def is_enum(self) -> bool:
        return self.kind is TypeKind.ENUM

    def field(self, name: str) -> FieldDescriptor | None:
        """Case-insensitive field lookup by name or alias."""
        lowered = name.lower()
        for f in self.fields:
            if f.name.lower() == lowered or (f.alias and f.alias.lower() == lowered):
                return f
        return None

    def visible_fields(self, include_private: bool) -> tuple[FieldDescriptor, ...]:
        """Readable, non-ignored fields honoring the private-member switch."""
        return tuple(
            f
            for f in self.fields
            if f.readable and not f.ignored and (include_private or f.is_public)
        )

    def location_for(self, member: str | None = None) -> SourceLocation:
        base = self.location or SourceLocation(self.qualname, self.module)
        return base.with_member(member) if member else base
