"""
Example 03: Nested, Flattened and Polymorphic Mappings

This example shows collections of nested objects, flattening of a nested
field onto a prefixed target field, and dispatch over derived types.
"""

from dataclasses import dataclass, field
from typing import Optional

from map_forge import MappingEngine, map_derived_type, map_to


@dataclass
class AddressDto:
    street: str
    city: str


@map_to(AddressDto)
@dataclass
class Address:
    street: str
    city: str


@dataclass
class CustomerDto:
    name: str
    addresses: list[AddressDto] = field(default_factory=list)
    billing_city: Optional[str] = None


@map_to(CustomerDto, enable_flattening=True)
@dataclass
class Customer:
    name: str
    addresses: list[Address] = field(default_factory=list)
    billing: Optional[Address] = None


@dataclass
class PaymentDto:
    amount: str


@dataclass
class CardPaymentDto(PaymentDto):
    last4: str = ""


@dataclass
class TransferPaymentDto(PaymentDto):
    iban: str = ""


@map_to(PaymentDto)
@dataclass
class Payment:
    amount: str


@map_to(CardPaymentDto)
@dataclass
class CardPayment(Payment):
    last4: str = ""


@map_to(TransferPaymentDto)
@dataclass
class TransferPayment(Payment):
    iban: str = ""


map_derived_type(TransferPayment, TransferPaymentDto)(Payment)
map_derived_type(CardPayment, CardPaymentDto)(Payment)


def main():
    engine = MappingEngine()
    result = engine.generate([Address, Customer, Payment, CardPayment, TransferPayment])
    functions = engine.materialize(result)

    print("=== Nested and Polymorphic Mappings ===\n")

    print("1. Collections and flattening:")
    customer = Customer(
        "Alice",
        [Address("1 Main St", "Oslo"), Address("2 High St", "Bergen")],
        billing=Address("3 Low St", "Trondheim"),
    )
    print(f"   {customer.map_to_customer_dto()}\n")

    print("2. Polymorphic dispatch:")
    print(result.function("map_payment_to_payment_dto").text)
    for payment in (CardPayment("10.00", "4242"), TransferPayment("99.50", "NO93 8601 1117 947")):
        print(f"   {functions['map_payment_to_payment_dto'](payment)}")


if __name__ == "__main__":
    main()
