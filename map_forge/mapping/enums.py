"""Enum Value Mapper.

Resolves a source enum -> target enum value table in two phases per source
member:

1. exact, case-insensitive name match; the first target member in
   declaration order wins;
2. synonym fallback through ``SYNONYM_GROUPS``: when the source name belongs
   to a group, the target member from the same group that comes first in the
   group's preference order is used.

Anything else is unmapped: one ENUM002 warning, and the value falls through
to the generated function's default branch at run time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from map_forge.core.diagnostics import UNMAPPED_ENUM_VALUE, DiagnosticReporter, SourceLocation
from map_forge.model.descriptors import TypeDescriptor

logger = logging.getLogger(__name__)

# Names treated as equivalent when no exact match exists, in preference order.
# Renames never take part in this lookup.
SYNONYM_GROUPS: tuple[tuple[str, ...], ...] = (("NONE", "UNKNOWN", "UNDEFINED", "DEFAULT"),)


@dataclass(frozen=True)
class EnumValueMatch:
    source_member: str
    target_member: str
    via_synonym: bool = False


@dataclass(frozen=True)
class EnumMappingPlan:
    """Dispatch table for one enum direction."""

    source: TypeDescriptor
    target: TypeDescriptor
    function_name: str
    reverse: bool = False
    matches: tuple[EnumValueMatch, ...] = ()
    unmapped: tuple[str, ...] = ()

    def target_for(self, source_member: str) -> str | None:
        return next((m.target_member for m in self.matches if m.source_member == source_member), None)


def synonym_group(name: str) -> tuple[str, ...] | None:
    upper = name.upper()
    return next((group for group in SYNONYM_GROUPS if upper in group), None)


class EnumValueMapper:
    """Builds EnumMappingPlans and reports unmapped values."""

    def __init__(self, reporter: DiagnosticReporter) -> None:
        self._reporter = reporter

    def plan(
        self,
        source: TypeDescriptor,
        target: TypeDescriptor,
        function_name: str,
        *,
        reverse: bool = False,
        location: SourceLocation | None = None,
    ) -> EnumMappingPlan:
        if source.enum is None or target.enum is None:
            raise ValueError(f"Enum plan requires two enums, got {source.qualname} -> {target.qualname}")

        target_names = target.enum.names
        matches: list[EnumValueMatch] = []
        unmapped: list[str] = []

        for member in source.enum.members:
            exact = self._exact_match(member.name, target_names)
            if exact is not None:
                matches.append(EnumValueMatch(member.name, exact))
                continue
            synonym = self._synonym_match(member.name, target_names)
            if synonym is not None:
                matches.append(EnumValueMatch(member.name, synonym, via_synonym=True))
                continue
            unmapped.append(member.name)
            where = (location or source.location_for()).with_member(member.name)
            self._reporter.report(
                UNMAPPED_ENUM_VALUE.create(where, source.name, member.name, target.name)
            )

        logger.debug(
            "Enum plan %s -> %s: %d matched, %d unmapped",
            source.qualname,
            target.qualname,
            len(matches),
            len(unmapped),
        )
        return EnumMappingPlan(
            source=source,
            target=target,
            function_name=function_name,
            reverse=reverse,
            matches=tuple(matches),
            unmapped=tuple(unmapped),
        )

    @staticmethod
    def _exact_match(name: str, target_names: tuple[str, ...]) -> str | None:
        lowered = name.lower()
        return next((t for t in target_names if t.lower() == lowered), None)

    @staticmethod
    def _synonym_match(name: str, target_names: tuple[str, ...]) -> str | None:
        group = synonym_group(name)
        if group is None:
            return None
        by_upper = {}
        for t in target_names:
            by_upper.setdefault(t.upper(), t)
        return next((by_upper[s] for s in group if s in by_upper), None)
