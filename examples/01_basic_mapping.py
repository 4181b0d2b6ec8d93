"""
Example 01: Basic Mapping

This example declares a mapping between two dataclasses, generates the
conversion functions and calls them.
"""

from dataclasses import dataclass

from map_forge import MappingEngine, PropertyNameStrategy, map_to


@dataclass
class UserDto:
    """Transport shape with snake_case names"""
    id: int
    display_name: str
    email: str


@map_to(UserDto, bidirectional=True, property_name_strategy=PropertyNameStrategy.SNAKE)
@dataclass
class User:
    """Domain model with camelCase names"""
    id: int
    displayName: str
    email: str


def main():
    engine = MappingEngine()

    print("=== Basic Mapping ===\n")

    # Generate source text
    result = engine.generate([User])
    print("1. Generated module:")
    print(result.source)

    # Run the generated functions
    print("2. Materialized functions:")
    functions = engine.materialize(result)
    dto = functions["map_user_to_user_dto"](User(1, "Alice", "alice@example.com"))
    print(f"   Forward: {dto}")
    user = functions["map_user_dto_to_user"](dto)
    print(f"   Reverse: {user}\n")

    # Attached methods
    print("3. Attached method:")
    print(f"   {User(2, 'Bob', 'bob@example.com').map_to_user_dto()}")


if __name__ == "__main__":
    main()
