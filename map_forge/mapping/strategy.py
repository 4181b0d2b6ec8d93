"""Conversion Strategy Selector.

Picks exactly one ConversionKind per correspondence. Order of precedence:
identity, collection projection, enum dispatch (or value cast), text
coercion, polymorphic dispatch, nested delegation, unresolved.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from map_forge.core.enums import ConversionKind, ValueKind
from map_forge.mapping.plan import Conversion
from map_forge.model.descriptors import MappingDirective
from map_forge.model.types import COERCIBLE_KINDS, TypeRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Link:
    """A generated function converting ``source`` into ``target``."""

    source: type
    target: type
    function_name: str
    directive: MappingDirective
    declaring_type: type
    reverse: bool = False
    polymorphic: bool = False

    @property
    def is_enum(self) -> bool:
        return issubclass(self.source, Enum)


class LinkIndex:
    """Every (source, target) pair that will have a generated function.

    Only directives that passed validation are linked, so delegation to a
    type whose generation failed resolves as unlinked.
    """

    def __init__(self) -> None:
        self._links: dict[tuple[type, type], Link] = {}

    def add(self, link: Link) -> bool:
        """Register ``link``; the first registration of a pair wins."""
        key = (link.source, link.target)
        if key in self._links:
            return False
        self._links[key] = link
        return True

    def get(self, source: object, target: object) -> Link | None:
        return self._links.get((source, target))  # type: ignore[arg-type]

    def __contains__(self, pair: object) -> bool:
        return pair in self._links

    def __iter__(self) -> Iterator[Link]:
        return iter(self._links.values())

    def __len__(self) -> int:
        return len(self._links)


def is_coercible(source: TypeRef, target: TypeRef) -> bool:
    """Text to or from a primitive or temporal kind."""
    if source.kind is ValueKind.TEXT:
        return target.kind in COERCIBLE_KINDS
    if target.kind is ValueKind.TEXT:
        return source.kind in COERCIBLE_KINDS
    return False


class ConversionSelector:
    """Chooses a Conversion for a (source type, target type) pair."""

    def __init__(self, links: LinkIndex) -> None:
        self._links = links

    def select(self, source: TypeRef, target: TypeRef) -> Conversion:
        if source.kind is ValueKind.ANY or target.kind is ValueKind.ANY:
            return Conversion(ConversionKind.IDENTITY, source, target)

        if source.same_type(target):
            return Conversion(ConversionKind.IDENTITY, source, target)

        if source.is_collection and target.is_collection:
            assert source.element is not None and target.element is not None
            element = self.select(source.element, target.element)
            if not element.resolved:
                return self._unresolved(source, target)
            return Conversion(ConversionKind.COLLECTION, source, target, element=element)

        if source.is_enum and target.is_enum:
            link = self._links.get(source.py_type, target.py_type)
            if link is not None:
                return Conversion(
                    ConversionKind.ENUM_MAPPING, source, target, function_name=link.function_name
                )
            return Conversion(ConversionKind.ENUM_CAST, source, target)

        if is_coercible(source, target):
            return Conversion(ConversionKind.COERCION, source, target)

        if source.is_object and target.is_object:
            link = self._links.get(source.py_type, target.py_type)
            if link is not None:
                kind = ConversionKind.POLYMORPHIC if link.polymorphic else ConversionKind.NESTED
                return Conversion(kind, source, target, function_name=link.function_name)

        return self._unresolved(source, target)

    @staticmethod
    def _unresolved(source: TypeRef, target: TypeRef) -> Conversion:
        logger.debug("No conversion from %r to %r", source, target)
        return Conversion(ConversionKind.UNRESOLVED, source, target)
