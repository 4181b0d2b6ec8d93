"""
Example 04: Hooks, Factories and In-Place Updates

This example runs before/after hooks around a mapping, creates the target
through a factory and updates an existing target in place.
"""

from dataclasses import dataclass
from datetime import datetime

from map_forge import MappingEngine, map_to


@dataclass
class OrderDto:
    id: str = ""
    placed_at: str = ""
    source: str = ""


@map_to(OrderDto, before_map="check", after_map="stamp", update_target=True)
@dataclass
class Order:
    id: int
    placed_at: datetime

    @staticmethod
    def check(source: "Order") -> None:
        if source.id <= 0:
            raise ValueError("Order id must be positive")

    @staticmethod
    def stamp(source: "Order", target: OrderDto) -> None:
        target.source = "web"


@dataclass
class ReceiptDto:
    order_id: int = 0
    currency: str = "EUR"


@map_to(ReceiptDto, factory="new_receipt")
@dataclass
class Receipt:
    order_id: int

    @staticmethod
    def new_receipt() -> ReceiptDto:
        return ReceiptDto(currency="NOK")


def main():
    engine = MappingEngine()
    result = engine.generate([Order, Receipt])
    functions = engine.materialize(result)

    print("=== Hooks and Updates ===\n")

    print("1. Hooks:")
    order = Order(7, datetime(2024, 5, 1, 12, 30))
    print(f"   {functions['map_order_to_order_dto'](order)}")
    try:
        functions["map_order_to_order_dto"](Order(0, datetime.now()))
    except ValueError as e:
        print(f"   before hook rejected: {e}\n")

    print("2. In-place update:")
    existing = OrderDto()
    functions["update_order_dto_from_order"](order, existing)
    print(f"   {existing}\n")

    print("3. Factory:")
    print(f"   {Receipt(7).map_to_receipt_dto()}")


if __name__ == "__main__":
    main()
