"""
Example 02: Enum Mapping

This example maps enum values by name, with the NONE/UNKNOWN synonym
fallback and the runtime error raised for a value with no match.
"""

from enum import Enum

from map_forge import MappingEngine, UnmappedEnumValueError, map_to


class PetStatusDto(Enum):
    UNKNOWN = 0
    AVAILABLE = 1
    PENDING = 2


@map_to(PetStatusDto)
class PetStatus(Enum):
    NONE = 0
    PENDING = 1
    AVAILABLE = 2
    ADOPTED = 3


def main():
    engine = MappingEngine()
    result = engine.generate([PetStatus])

    print("=== Enum Mapping ===\n")

    print("1. Dispatch function:")
    print(result.function("map_pet_status_to_pet_status_dto").text)

    print("2. Diagnostics:")
    for diagnostic in result.diagnostics:
        print(f"   {diagnostic}")
    print()

    print("3. Conversions:")
    functions = engine.materialize(result)
    convert = functions["map_pet_status_to_pet_status_dto"]
    for status in (PetStatus.NONE, PetStatus.PENDING, PetStatus.AVAILABLE):
        print(f"   {status.name} -> {convert(status).name}")
    try:
        convert(PetStatus.ADOPTED)
    except UnmappedEnumValueError as e:
        print(f"   ADOPTED -> error: {e}")


if __name__ == "__main__":
    main()
