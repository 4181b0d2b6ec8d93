"""Unit tests for DirectiveValidator and derived pair resolution."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, final

import pytest

from map_forge.annotations import MapProperty, map_derived_type, map_to
from map_forge.core.diagnostics import DiagnosticReporter
from map_forge.mapping.strategy import Link, LinkIndex
from map_forge.mapping.validation import DirectiveValidator, resolve_derived_pairs
from map_forge.model.descriptors import MappingDirective
from map_forge.model.extractor import TypeModelExtractor


@dataclass
class OrderDto:
    id: int
    total: float = 0.0


@dataclass(frozen=True)
class FrozenDto:
    id: int


class Shape(ABC):
    @abstractmethod
    def area(self) -> float: ...


class Color(Enum):
    RED = 1


@map_to(OrderDto, before_map="prepare", after_map="finish", factory="create")
@dataclass
class HookedOrder:
    id: int

    @staticmethod
    def prepare(source: HookedOrder) -> None:
        pass

    @classmethod
    def finish(cls, source: HookedOrder, target: OrderDto) -> None:
        pass

    @staticmethod
    def create() -> OrderDto:
        return OrderDto(0)


@dataclass
class BadHooks:
    id: int

    def prepare(self, source: BadHooks) -> None:
        pass

    @staticmethod
    def finish(source: BadHooks) -> None:
        pass

    @staticmethod
    def create() -> Color:
        return Color.RED

    @staticmethod
    def returns_value(source: BadHooks) -> int:
        return 1

    TEMPLATE = "not an order"


@dataclass
class WithTemplate:
    id: int

    TEMPLATE = OrderDto(id=0)


@dataclass
class Renamed:
    id: int
    amount: Annotated[float, MapProperty("grand_total")]


@final
@dataclass
class Sealed:
    id: int


@dataclass
class Animal:
    name: str


@dataclass
class Dog(Animal):
    pass


@dataclass
class AnimalDto:
    name: str


@dataclass
class DogDto(AnimalDto):
    pass


@map_derived_type(Dog, DogDto)
@dataclass
class Zoo:
    name: str


@pytest.fixture
def validator(extractor: TypeModelExtractor, reporter: DiagnosticReporter) -> DirectiveValidator:
    return DirectiveValidator(extractor, reporter)


def _codes(reporter: DiagnosticReporter) -> list[str]:
    return [d.code for d in reporter.diagnostics]


class TestTargetShape:
    def test_valid_declaration(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        assert validator.validate_type(extractor.extract(HookedOrder))
        assert _codes(reporter) == []

    @pytest.mark.parametrize("target", [int, Color, Shape])
    def test_incompatible_targets(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
        target: type,
    ) -> None:
        validator.validate(extractor.extract(Renamed), MappingDirective(target))
        assert _codes(reporter) == ["MAP002"]

    def test_update_of_frozen_target(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        validator.validate(extractor.extract(Sealed), MappingDirective(FrozenDto, update_target=True))
        assert _codes(reporter) == ["MAP002"]
        assert "frozen" in reporter.errors[0].message

    def test_enum_requires_enum_target(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        validator.validate(extractor.extract(Color), MappingDirective(OrderDto))
        assert _codes(reporter) == ["ENUM001"]

    def test_closed_type_fails(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        assert not validator.validate_type(extractor.extract(Sealed))
        assert _codes(reporter) == ["MAP001"]


class TestMembers:
    def test_missing_members(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        directive = MappingDirective(OrderDto, before_map="nope", instance="MISSING")
        validator.validate(extractor.extract(Renamed), directive)
        assert _codes(reporter) == ["MAP005", "MAP005", "MAP003"]

    def test_instance_method_hook(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        validator.validate(extractor.extract(BadHooks), MappingDirective(OrderDto, before_map="prepare"))
        assert _codes(reporter) == ["MAP006"]
        assert "staticmethod" in reporter.errors[0].message

    def test_wrong_arity(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        validator.validate(extractor.extract(BadHooks), MappingDirective(OrderDto, after_map="finish"))
        assert _codes(reporter) == ["MAP006"]

    def test_hook_must_return_none(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        directive = MappingDirective(OrderDto, before_map="returns_value")
        validator.validate(extractor.extract(BadHooks), directive)
        assert _codes(reporter) == ["MAP006"]
        assert "return None" in reporter.errors[0].message

    def test_factory_return_type(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        validator.validate(extractor.extract(BadHooks), MappingDirective(OrderDto, factory="create"))
        assert _codes(reporter) == ["MAP006"]

    def test_factory_and_instance_are_exclusive(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        directive = MappingDirective(OrderDto, factory="create", instance="TEMPLATE")
        validator.validate(extractor.extract(HookedOrder), directive)
        assert _codes(reporter)[0] == "MAP007"

    def test_instance_of_wrong_type(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        validator.validate(extractor.extract(BadHooks), MappingDirective(OrderDto, instance="TEMPLATE"))
        assert _codes(reporter) == ["MAP008"]

    def test_valid_instance(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        directive = MappingDirective(OrderDto, instance="TEMPLATE")
        validator.validate(extractor.extract(WithTemplate), directive)
        assert _codes(reporter) == []


class TestRenames:
    def test_unknown_rename_target(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        validator.validate(extractor.extract(Renamed), MappingDirective(OrderDto))
        assert _codes(reporter) == ["MAP003"]
        assert reporter.errors[0].location.member == "amount"

    def test_known_rename_target(
        self,
        validator: DirectiveValidator,
        extractor: TypeModelExtractor,
        reporter: DiagnosticReporter,
    ) -> None:
        @dataclass
        class TotalDto:
            grand_total: float

        validator.validate(extractor.extract(Renamed), MappingDirective(TotalDto))
        assert _codes(reporter) == []


class TestDerivedPairs:
    def test_unlinked_pair_warns(self, extractor: TypeModelExtractor, reporter: DiagnosticReporter) -> None:
        branches = resolve_derived_pairs(extractor.extract(Zoo), LinkIndex(), reporter)
        assert branches == ()
        assert [d.code for d in reporter.warnings] == ["MAP009"]

    def test_linked_pair(self, extractor: TypeModelExtractor, reporter: DiagnosticReporter) -> None:
        links = LinkIndex()
        link = Link(Dog, DogDto, "map_dog_to_dog_dto", MappingDirective(DogDto), Dog)
        links.add(link)
        branches = resolve_derived_pairs(extractor.extract(Zoo), links, reporter)
        assert [b[1] for b in branches] == [link]
        assert len(reporter) == 0
