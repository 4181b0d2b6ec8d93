"""Type model - immutable descriptors of participating types."""

from __future__ import annotations

from map_forge.model.descriptors import (
    ConstructorParameter,
    DerivedTypePair,
    EnumDescriptor,
    EnumMember,
    FieldDescriptor,
    MappingDirective,
    TypeDescriptor,
)
from map_forge.model.types import TypeRef, classify

__all__ = [
    "TypeDescriptor",
    "FieldDescriptor",
    "ConstructorParameter",
    "EnumDescriptor",
    "EnumMember",
    "MappingDirective",
    "DerivedTypePair",
    "TypeRef",
    "classify",
]
