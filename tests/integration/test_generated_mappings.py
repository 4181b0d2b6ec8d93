"""End-to-end tests: declare, generate, materialize and run mappings."""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, ClassVar

import pytest
from pydantic import BaseModel, Field

from map_forge import MapIgnore, map_derived_type, map_to
from map_forge.core.engine import MappingEngine
from map_forge.core.exceptions import UnknownDerivedTypeError, UnmappedEnumValueError

# --- identity ---


@dataclass
class PetDto:
    id: int
    name: str


@map_to(PetDto, bidirectional=True)
@dataclass
class Pet:
    id: int
    name: str


# --- enums ---


class PetStatusDto(Enum):
    UNKNOWN = 0
    AVAILABLE = 1
    PENDING = 2
    ADOPTED = 3


@map_to(PetStatusDto, bidirectional=True)
class PetStatus(Enum):
    NONE = 0
    PENDING = 1
    AVAILABLE = 2
    ADOPTED = 3


class Priority(Enum):
    LOW = 1
    HIGH = 2


@map_to(Priority)
class Urgency(Enum):
    LOW = 1
    HIGH = 2
    CRITICAL = 3


# --- collections ---


@dataclass
class AddressDto:
    street: str
    city: str


@map_to(AddressDto, bidirectional=True)
@dataclass
class Address:
    street: str
    city: str


@dataclass
class ContactDto:
    addresses: list[AddressDto] = field(default_factory=list)


@map_to(ContactDto)
@dataclass
class Contact:
    addresses: list[Address] = field(default_factory=list)


# --- constructor plus assignment ---


class AccountDto:
    email: str = ""

    def __init__(self, id: int, name: str) -> None:
        self.id = id
        self.name = name


@map_to(AccountDto)
@dataclass
class Account:
    id: int
    name: str
    email: str


# --- hooks ---


@dataclass
class AdoptionDto:
    pet_id: int
    note: str = ""

    def __post_init__(self) -> None:
        Adoption.calls.append("construct")


@map_to(AdoptionDto, before_map="validate", after_map="enrich")
@dataclass
class Adoption:
    pet_id: int

    calls: ClassVar[list[str]] = []

    @staticmethod
    def validate(source: Adoption) -> None:
        Adoption.calls.append("validate")

    @staticmethod
    def enrich(source: Adoption, target: AdoptionDto) -> None:
        Adoption.calls.append("enrich")
        target.note = f"adopted #{source.pet_id}"


# --- ignore ---


@dataclass
class UserDto:
    id: int
    password: str = "unset"


@map_to(UserDto, bidirectional=True)
@dataclass
class User:
    id: int
    password: Annotated[str, MapIgnore()] = ""


# --- flattening ---


@dataclass
class Location:
    city: str


@dataclass
class ShelterDto:
    name: str
    location_city: str | None = None


@map_to(ShelterDto, enable_flattening=True)
@dataclass
class Shelter:
    name: str
    location: Location | None = None


# --- polymorphism ---


@dataclass
class AnimalDto:
    name: str


@dataclass
class DogDto(AnimalDto):
    breed: str = ""


@dataclass
class CatDto(AnimalDto):
    indoor: bool = False


@map_to(AnimalDto)
@dataclass
class Animal:
    name: str


@map_to(DogDto)
@dataclass
class Dog(Animal):
    breed: str = ""


@map_to(CatDto)
@dataclass
class Cat(Animal):
    indoor: bool = False


@dataclass
class Bird(Animal):
    pass


map_derived_type(Cat, CatDto)(Animal)
map_derived_type(Dog, DogDto)(Animal)


@dataclass
class ZooDto:
    animals: list[AnimalDto]


@map_to(ZooDto)
@dataclass
class Zoo:
    animals: list[Animal]


# --- coercion ---


@dataclass
class ReadingDto:
    value: float
    taken_on: date
    valid: bool
    amount: str


@map_to(ReadingDto)
@dataclass
class Reading:
    value: str
    taken_on: str
    valid: str
    amount: Decimal


# --- pydantic, factory and instance ---


class PersonModel(BaseModel):
    full_name: str = Field(alias="fullName")
    age: int = 0


@map_to(PersonModel, bidirectional=True)
@dataclass
class Person:
    full_name: str
    age: int


@dataclass
class BadgeDto:
    label: str = ""
    issuer: str = ""


@map_to(BadgeDto, instance="TEMPLATE")
@dataclass
class Badge:
    label: str

    TEMPLATE: ClassVar[BadgeDto] = BadgeDto(issuer="front desk")


ALL_TYPES = [
    Pet,
    PetStatus,
    Urgency,
    Address,
    Contact,
    Account,
    Adoption,
    User,
    Shelter,
    Animal,
    Dog,
    Cat,
    Zoo,
    Reading,
    Person,
    Badge,
]


@pytest.fixture
def generated(engine: MappingEngine):
    result = engine.generate(ALL_TYPES)
    return result, engine.materialize(result)


class TestScenarios:
    def test_identity_mapping(self, generated) -> None:
        result, functions = generated
        assert "return PetDto(source.id, source.name)" in result.function("map_pet_to_pet_dto").text
        assert functions["map_pet_to_pet_dto"](Pet(1, "Rex")) == PetDto(1, "Rex")

    def test_enum_exact_and_synonym(self, generated) -> None:
        _, functions = generated
        forward = functions["map_pet_status_to_pet_status_dto"]
        assert forward(PetStatus.NONE) is PetStatusDto.UNKNOWN
        assert forward(PetStatus.PENDING) is PetStatusDto.PENDING
        assert forward(PetStatus.AVAILABLE) is PetStatusDto.AVAILABLE
        assert forward(PetStatus.ADOPTED) is PetStatusDto.ADOPTED
        assert functions["map_pet_status_dto_to_pet_status"](PetStatusDto.UNKNOWN) is PetStatus.NONE

    def test_collection_of_nested_objects(self, generated) -> None:
        result, functions = generated
        text = result.function("map_contact_to_contact_dto").text
        assert "[map_address_to_address_dto(item) for item in source.addresses]" in text
        contact = Contact([Address("1 Main", "Oslo"), Address("2 High", "Bergen")])
        dto = functions["map_contact_to_contact_dto"](contact)
        assert dto.addresses == [AddressDto("1 Main", "Oslo"), AddressDto("2 High", "Bergen")]

    def test_constructor_then_assignment(self, generated) -> None:
        result, functions = generated
        lines = result.function("map_account_to_account_dto").text.splitlines()
        assert lines[2:] == [
            "    target = AccountDto(source.id, source.name)",
            "    target.email = source.email",
            "    return target",
        ]
        dto = functions["map_account_to_account_dto"](Account(5, "Eve", "eve@example.com"))
        assert (dto.id, dto.name, dto.email) == (5, "Eve", "eve@example.com")

    def test_hook_order(self, generated) -> None:
        _, functions = generated
        Adoption.calls.clear()
        dto = functions["map_adoption_to_adoption_dto"](Adoption(9))
        assert Adoption.calls == ["validate", "construct", "enrich"]
        assert dto.note == "adopted #9"


class TestProperties:
    def test_round_trip(self, generated) -> None:
        _, functions = generated
        address = Address("1 Main", "Oslo")
        back = functions["map_address_dto_to_address"](functions["map_address_to_address_dto"](address))
        assert back == address

    def test_regeneration_is_identical(self, engine: MappingEngine, generated) -> None:
        result, _ = generated
        assert engine.generate(ALL_TYPES).source == result.source

    def test_ignored_field_never_assigned(self, generated) -> None:
        result, functions = generated
        for name in ("map_user_to_user_dto", "map_user_dto_to_user"):
            assert "password" not in result.function(name).text
        assert functions["map_user_to_user_dto"](User(1, "secret")).password == "unset"
        assert functions["map_user_dto_to_user"](UserDto(1, "hunter2")).password == ""

    def test_unmapped_enum_value(self, generated) -> None:
        result, functions = generated
        warnings = [d for d in result.warnings if d.code == "ENUM002"]
        assert len(warnings) == 1
        assert "CRITICAL" in warnings[0].message
        assert "Urgency.CRITICAL" not in result.function("map_urgency_to_priority").text
        with pytest.raises(UnmappedEnumValueError):
            functions["map_urgency_to_priority"](Urgency.CRITICAL)

    def test_flattening_with_null_guard(self, generated) -> None:
        result, functions = generated
        text = result.function("map_shelter_to_shelter_dto").text
        assert "None if source.location is None else source.location.city" in text
        mapper = functions["map_shelter_to_shelter_dto"]
        assert mapper(Shelter("North", Location("Oslo"))).location_city == "Oslo"
        assert mapper(Shelter("South")).location_city is None

    def test_no_errors_for_valid_declarations(self, generated) -> None:
        result, _ = generated
        assert result.errors == ()
        assert [d.code for d in result.warnings] == ["ENUM002"]


class TestPolymorphism:
    def test_dispatch_by_runtime_type(self, generated) -> None:
        _, functions = generated
        mapper = functions["map_animal_to_animal_dto"]
        assert mapper(Dog("Rex", "collie")) == DogDto("Rex", "collie")
        assert mapper(Cat("Tom", True)) == CatDto("Tom", True)

    def test_branches_follow_declaration_order(self, generated) -> None:
        result, _ = generated
        text = result.function("map_animal_to_animal_dto").text
        assert text.index("case Dog():") < text.index("case Cat():")

    def test_unknown_derived_type(self, generated) -> None:
        _, functions = generated
        with pytest.raises(UnknownDerivedTypeError):
            functions["map_animal_to_animal_dto"](Bird("Tweety"))

    def test_collection_of_base_type(self, generated) -> None:
        _, functions = generated
        dto = functions["map_zoo_to_zoo_dto"](Zoo([Dog("Rex", "collie"), Cat("Tom")]))
        assert dto.animals == [DogDto("Rex", "collie"), CatDto("Tom", False)]


class TestConversions:
    def test_text_coercion(self, generated) -> None:
        _, functions = generated
        dto = functions["map_reading_to_reading_dto"](Reading("3.5", "2024-01-02", "yes", Decimal("1.50")))
        assert dto == ReadingDto(3.5, date(2024, 1, 2), True, "1.50")

    def test_pydantic_alias_round_trip(self, generated) -> None:
        result, functions = generated
        assert "PersonModel(fullName=source.full_name, age=source.age)" in (
            result.function("map_person_to_person_model").text
        )
        model = functions["map_person_to_person_model"](Person("Ada Lovelace", 36))
        assert model.full_name == "Ada Lovelace"
        assert functions["map_person_model_to_person"](model) == Person("Ada Lovelace", 36)

    def test_instance_template_is_copied(self, generated) -> None:
        _, functions = generated
        dto = functions["map_badge_to_badge_dto"](Badge("visitor"))
        assert dto == BadgeDto("visitor", "front desk")
        assert Badge.TEMPLATE.label == ""


class TestGeneratedModule:
    def test_written_module_imports_and_runs(self, engine: MappingEngine, write_module) -> None:
        result = engine.generate([Contact, Address, PetStatus])
        write_module("genout.mappings", result.source)
        module = importlib.import_module("genout.mappings")
        dto = module.map_contact_to_contact_dto(Contact([Address("1 Main", "Oslo")]))
        assert dto == ContactDto([AddressDto("1 Main", "Oslo")])
        assert module.map_pet_status_to_pet_status_dto(PetStatus.NONE) is PetStatusDto.UNKNOWN

    def test_local_classes_are_bound(self, engine: MappingEngine) -> None:
        @dataclass
        class PointDto:
            x: int

        @map_to(PointDto)
        @dataclass
        class Point:
            x: int

        result = engine.generate([Point])
        assert "import Point" not in result.source
        functions = engine.materialize(result)
        assert functions["map_point_to_point_dto"](Point(3)) == PointDto(3)
