"""Unit tests for ConversionSelector and LinkIndex."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

import pytest

from map_forge.core.enums import ConversionKind
from map_forge.mapping.strategy import ConversionSelector, Link, LinkIndex, is_coercible
from map_forge.model.descriptors import MappingDirective
from map_forge.model.types import classify


class Color(Enum):
    RED = 1


class ColorDto(Enum):
    RED = 1


class Shade(Enum):
    RED = 1


@dataclass
class AddressDto:
    city: str


@dataclass
class Address:
    city: str


@dataclass
class Animal:
    name: str


@dataclass
class AnimalDto:
    name: str


@pytest.fixture
def links() -> LinkIndex:
    index = LinkIndex()
    index.add(
        Link(Address, AddressDto, "map_address_to_address_dto", MappingDirective(AddressDto), Address)
    )
    index.add(Link(Color, ColorDto, "map_color_to_color_dto", MappingDirective(ColorDto), Color))
    index.add(
        Link(
            Animal,
            AnimalDto,
            "map_animal_to_animal_dto",
            MappingDirective(AnimalDto),
            Animal,
            polymorphic=True,
        )
    )
    return index


@pytest.fixture
def selector(links: LinkIndex) -> ConversionSelector:
    return ConversionSelector(links)


class TestConversionSelector:
    def test_same_type_is_identity(self, selector: ConversionSelector) -> None:
        assert selector.select(classify(int), classify(int)).kind is ConversionKind.IDENTITY

    def test_nullability_does_not_change_identity(self, selector: ConversionSelector) -> None:
        conversion = selector.select(classify(int | None), classify(int))
        assert conversion.kind is ConversionKind.IDENTITY

    def test_any_is_identity(self, selector: ConversionSelector) -> None:
        assert selector.select(classify(Any), classify(Address)).kind is ConversionKind.IDENTITY
        assert selector.select(classify(int), classify(object)).kind is ConversionKind.IDENTITY

    def test_text_coercion(self, selector: ConversionSelector) -> None:
        assert selector.select(classify(int), classify(str)).kind is ConversionKind.COERCION
        assert selector.select(classify(str), classify(date)).kind is ConversionKind.COERCION

    def test_numeric_widening_is_unresolved(self, selector: ConversionSelector) -> None:
        assert selector.select(classify(int), classify(float)).kind is ConversionKind.UNRESOLVED

    def test_linked_enum_uses_mapping_function(self, selector: ConversionSelector) -> None:
        conversion = selector.select(classify(Color), classify(ColorDto))
        assert conversion.kind is ConversionKind.ENUM_MAPPING
        assert conversion.function_name == "map_color_to_color_dto"

    def test_unlinked_enum_casts(self, selector: ConversionSelector) -> None:
        conversion = selector.select(classify(Color), classify(Shade))
        assert conversion.kind is ConversionKind.ENUM_CAST
        assert conversion.function_name is None

    def test_linked_object_is_nested(self, selector: ConversionSelector) -> None:
        conversion = selector.select(classify(Address), classify(AddressDto))
        assert conversion.kind is ConversionKind.NESTED
        assert conversion.function_name == "map_address_to_address_dto"

    def test_polymorphic_link(self, selector: ConversionSelector) -> None:
        conversion = selector.select(classify(Animal), classify(AnimalDto))
        assert conversion.kind is ConversionKind.POLYMORPHIC

    def test_unlinked_object_is_unresolved(self, selector: ConversionSelector) -> None:
        conversion = selector.select(classify(AddressDto), classify(Address))
        assert not conversion.resolved

    def test_collection_of_linked_objects(self, selector: ConversionSelector) -> None:
        conversion = selector.select(classify(list[Address]), classify(tuple[AddressDto, ...]))
        assert conversion.kind is ConversionKind.COLLECTION
        assert conversion.element is not None
        assert conversion.element.kind is ConversionKind.NESTED

    def test_collection_with_unresolved_element(self, selector: ConversionSelector) -> None:
        conversion = selector.select(classify(list[int]), classify(list[float]))
        assert conversion.kind is ConversionKind.UNRESOLVED

    def test_same_collection_type_is_identity(self, selector: ConversionSelector) -> None:
        conversion = selector.select(classify(list[str]), classify(list[str]))
        assert conversion.kind is ConversionKind.IDENTITY


class TestLinkIndex:
    def test_first_link_wins(self, links: LinkIndex) -> None:
        duplicate = Link(Address, AddressDto, "other", MappingDirective(AddressDto), AddressDto)
        assert not links.add(duplicate)
        assert links.get(Address, AddressDto).function_name == "map_address_to_address_dto"
        assert len(links) == 3

    def test_contains(self, links: LinkIndex) -> None:
        assert (Color, ColorDto) in links
        assert (ColorDto, Color) not in links

    def test_enum_link(self, links: LinkIndex) -> None:
        assert links.get(Color, ColorDto).is_enum
        assert not links.get(Address, AddressDto).is_enum


class TestIsCoercible:
    def test_text_and_primitive(self) -> None:
        assert is_coercible(classify(str), classify(bool))
        assert is_coercible(classify(date), classify(str))

    def test_non_text_pair(self) -> None:
        assert not is_coercible(classify(int), classify(bool))
