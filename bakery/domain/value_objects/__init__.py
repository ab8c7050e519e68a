"""Immutable value objects of the domain."""

from bakery.domain.value_objects.money import Money
from bakery.domain.value_objects.order_number import OrderNumber

__all__ = [
    "Money",
    "OrderNumber",
]
