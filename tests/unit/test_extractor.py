"""Unit tests for TypeModelExtractor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, ClassVar, NamedTuple, final

import pytest
from pydantic import BaseModel, ConfigDict, Field

from map_forge.annotations import MapIgnore, MapProperty, map_to
from map_forge.core.diagnostics import DiagnosticReporter
from map_forge.core.enums import TypeKind, ValueKind, Visibility
from map_forge.core.exceptions import ExtractionError
from map_forge.model.extractor import TypeModelExtractor, is_open_to_augmentation


@dataclass
class Base:
    id: int
    created_by: str = "system"


@dataclass
class Derived(Base):
    name: str = ""
    id: int = 0
    counter: ClassVar[int] = 0


@dataclass(frozen=True)
class Point:
    x: int
    y: int = field(default=0, kw_only=True)


@dataclass
class Marked:
    password: Annotated[str, MapIgnore()]
    email: Annotated[str, MapProperty("email_address")]
    _secret: str = ""


class Person(BaseModel):
    model_config = ConfigDict(frozen=True)

    full_name: str = Field(alias="fullName")
    age: int | None = None


class Pair(NamedTuple):
    left: int
    right: int = 0


class Account:
    balance: float

    def __init__(self, id: int, owner: str, balance: float = 0.0) -> None:
        self.id = id
        self.owner = owner
        self.balance = balance

    @property
    def label(self) -> str:
        return f"{self.owner}#{self.id}"


class Status(Enum):
    ACTIVE = 1
    INACTIVE = 2
    ENABLED = 1


@final
class Sealed:
    value: int


@dataclass
class Versioned:
    value: int


class TestRecords:
    def test_dataclass_fields_and_constructor(self, extractor: TypeModelExtractor) -> None:
        descriptor = extractor.extract(Base)
        assert descriptor.kind is TypeKind.RECORD
        assert [f.name for f in descriptor.fields] == ["id", "created_by"]
        assert descriptor.field("id").required
        assert not descriptor.field("created_by").required
        assert [p.name for p in descriptor.constructor] == ["id", "created_by"]

    def test_most_derived_declaration_wins(self, extractor: TypeModelExtractor) -> None:
        descriptor = extractor.extract(Derived)
        names = [f.name for f in descriptor.fields]
        assert names == ["id", "created_by", "name"]
        id_field = descriptor.field("id")
        assert id_field.declaring_type == "Derived"
        assert not id_field.required

    def test_class_vars_are_not_fields(self, extractor: TypeModelExtractor) -> None:
        assert extractor.extract(Derived).field("counter") is None

    def test_chain_excludes_framework_bases(self, extractor: TypeModelExtractor) -> None:
        assert extractor.extract(Derived).chain == ("Base", "Derived")

    def test_frozen_dataclass(self, extractor: TypeModelExtractor) -> None:
        descriptor = extractor.extract(Point)
        assert descriptor.is_frozen
        assert not descriptor.field("x").settable
        y = next(p for p in descriptor.constructor if p.name == "y")
        assert not y.positional

    def test_markers(self, extractor: TypeModelExtractor) -> None:
        descriptor = extractor.extract(Marked)
        assert descriptor.field("password").ignored
        assert descriptor.field("email").rename == "email_address"
        assert descriptor.field("_secret").visibility is Visibility.PRIVATE
        visible = [f.name for f in descriptor.visible_fields(include_private=False)]
        assert visible == ["email"]

    def test_pydantic_model(self, extractor: TypeModelExtractor) -> None:
        descriptor = extractor.extract(Person)
        assert descriptor.kind is TypeKind.RECORD
        assert descriptor.is_frozen
        full_name = descriptor.field("full_name")
        assert full_name.alias == "fullName"
        assert full_name.required
        assert descriptor.field("fullName") is full_name
        age = descriptor.field("age")
        assert age.nullable
        assert age.type_ref.kind is ValueKind.INTEGER
        keywords = [p.keyword for p in descriptor.constructor]
        assert keywords == ["fullName", "age"]

    def test_named_tuple(self, extractor: TypeModelExtractor) -> None:
        descriptor = extractor.extract(Pair)
        assert descriptor.is_frozen
        assert all(p.positional for p in descriptor.constructor)
        assert descriptor.field("left").required
        assert not descriptor.field("right").required


class TestPlainClasses:
    def test_init_parameters_become_fields(self, extractor: TypeModelExtractor) -> None:
        descriptor = extractor.extract(Account)
        assert descriptor.kind is TypeKind.CLASS
        assert {f.name for f in descriptor.fields} == {"balance", "label", "id", "owner"}
        assert descriptor.field("id").required
        assert not descriptor.field("balance").required

    def test_read_only_property(self, extractor: TypeModelExtractor) -> None:
        label = extractor.extract(Account).field("label")
        assert label.readable
        assert not label.settable
        assert label.type_ref.kind is ValueKind.TEXT

    def test_constructor_signature(self, extractor: TypeModelExtractor) -> None:
        constructor = extractor.extract(Account).constructor
        assert [(p.name, p.required) for p in constructor] == [
            ("id", True),
            ("owner", True),
            ("balance", False),
        ]


class TestEnums:
    def test_members_exclude_aliases(self, extractor: TypeModelExtractor) -> None:
        descriptor = extractor.extract(Status)
        assert descriptor.is_enum
        assert descriptor.enum is not None
        assert descriptor.enum.names == ("ACTIVE", "INACTIVE")


class TestOpenness:
    def test_user_class_is_open(self) -> None:
        assert is_open_to_augmentation(Base)

    def test_builtin_is_closed(self) -> None:
        assert not is_open_to_augmentation(int)

    def test_final_class_is_closed(self, extractor: TypeModelExtractor) -> None:
        descriptor = extractor.extract(Sealed)
        assert not descriptor.is_open
        reporter = DiagnosticReporter()
        assert not extractor.check_open(descriptor, reporter)
        assert reporter.errors[0].code == "MAP001"


class TestMemoization:
    def test_second_extraction_is_a_cache_hit(self, extractor: TypeModelExtractor) -> None:
        first = extractor.extract(Base)
        second = extractor.extract(Base)
        assert first is second
        assert extractor.hits == 1
        assert extractor.misses == 1

    def test_changed_declaration_is_rebuilt(self, extractor: TypeModelExtractor) -> None:
        first = extractor.extract(Versioned)
        map_to(Base)(Versioned)
        try:
            second = extractor.extract(Versioned)
        finally:
            del Versioned.__map_directives__
        assert second is not first
        assert len(second.directives) == 1
        assert extractor.misses == 2

    def test_clear(self, extractor: TypeModelExtractor) -> None:
        extractor.extract(Base)
        extractor.clear()
        assert len(extractor) == 0
        assert extractor.hits == 0

    def test_non_class_raises(self, extractor: TypeModelExtractor) -> None:
        with pytest.raises(ExtractionError):
            extractor.extract(42)  # type: ignore[arg-type]
