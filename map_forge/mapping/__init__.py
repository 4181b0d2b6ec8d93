"""Mapping layer - resolve field correspondences and conversion strategies."""

from __future__ import annotations

from map_forge.mapping.enums import SYNONYM_GROUPS, EnumMappingPlan, EnumValueMapper, EnumValueMatch
from map_forge.mapping.plan import Conversion, FieldCorrespondence, MappingPlan, TargetSlot
from map_forge.mapping.planner import FieldResolutionPlanner, target_slots
from map_forge.mapping.strategy import ConversionSelector, Link, LinkIndex
from map_forge.mapping.validation import DirectiveValidator

__all__ = [
    "FieldResolutionPlanner",
    "ConversionSelector",
    "DirectiveValidator",
    "EnumValueMapper",
    "Link",
    "LinkIndex",
    "MappingPlan",
    "FieldCorrespondence",
    "TargetSlot",
    "Conversion",
    "EnumMappingPlan",
    "EnumValueMatch",
    "SYNONYM_GROUPS",
    "target_slots",
]
