"""Declarative mapping directives.

Usage::

    @map_to(UserDto, bidirectional=True)
    @dataclass
    class User:
        id: int
        name: str
        password: Annotated[str, MapIgnore()]
        email: Annotated[str, MapProperty("email_address")]

Directives are stored on the decorated class itself and are not inherited by
subclasses. Decorators are stackable; the top-most directive comes first.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from map_forge.core.enums import PropertyNameStrategy
from map_forge.model.descriptors import DerivedTypePair, MappingDirective

T = TypeVar("T", bound=type)

DIRECTIVES_ATTR = "__map_directives__"
DERIVED_TYPES_ATTR = "__map_derived_types__"


@dataclass(frozen=True)
class MapIgnore:
    """Field marker: drop the field from every mapping, in both directions."""


@dataclass(frozen=True)
class MapProperty:
    """Field marker: map this source field to ``target_name`` on the target type."""

    target_name: str


def _prepend(cls: type, attr: str, item: object) -> None:
    # Decorators run bottom-up; prepending keeps declaration order top-down.
    existing = cls.__dict__.get(attr, ())
    setattr(cls, attr, (item, *existing))


def map_to(
    target: type,
    *,
    bidirectional: bool = False,
    property_name_strategy: PropertyNameStrategy = PropertyNameStrategy.IDENTITY,
    before_map: str | None = None,
    after_map: str | None = None,
    enable_flattening: bool = False,
    update_target: bool = False,
    generate_projection: bool = False,
    include_private_members: bool = False,
    factory: str | None = None,
    instance: str | None = None,
) -> Callable[[T], T]:
    """Declare a generated conversion from the decorated class or enum to ``target``.

    Args:
        target: The type to map to.
        bidirectional: Also generate the reverse conversion.
        property_name_strategy: Casing applied to this type's field names
            before they are compared with the other side.
        before_map: Name of a static/class method ``(source) -> None`` called first.
        after_map: Name of a static/class method ``(source, target) -> None`` called last.
        enable_flattening: Map ``address.city`` onto a target slot ``address_city``.
        update_target: Also generate ``update_<target>_from_<source>(source, target)``.
        generate_projection: Also generate a single-expression projection function.
        include_private_members: Include ``_private`` fields in matching.
        factory: Name of a static/class method ``() -> Target`` creating the target.
        instance: Name of a class attribute holding a template target instance.
    """
    directive = MappingDirective(
        target=target,
        bidirectional=bidirectional,
        property_name_strategy=property_name_strategy,
        before_map=before_map,
        after_map=after_map,
        enable_flattening=enable_flattening,
        update_target=update_target,
        generate_projection=generate_projection,
        include_private_members=include_private_members,
        factory=factory,
        instance=instance,
    )

    def decorator(cls: T) -> T:
        _prepend(cls, DIRECTIVES_ATTR, directive)
        return cls

    return decorator


def map_derived_type(source: type, target: type) -> Callable[[T], T]:
    """Declare a polymorphic branch on a base type's mapping."""
    pair = DerivedTypePair(source=source, target=target)

    def decorator(cls: T) -> T:
        _prepend(cls, DERIVED_TYPES_ATTR, pair)
        return cls

    return decorator


def declared_directives(cls: type) -> tuple[MappingDirective, ...]:
    """Directives declared on ``cls`` itself."""
    return tuple(cls.__dict__.get(DIRECTIVES_ATTR, ()))


def declared_derived_types(cls: type) -> tuple[DerivedTypePair, ...]:
    return tuple(cls.__dict__.get(DERIVED_TYPES_ATTR, ()))
