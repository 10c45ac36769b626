# pharmacy_pos/domain/pricing/aggregate.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol

from .valuation import ZERO, Number, split_line


class PricedLine(Protocol):
    cart_price: Number
    cart_quantity: Number
    discount_percent: Number
    tax_percent: Number


@dataclass(frozen=True)
class CartAggregate:
    """Totals of a cart. ``subtotal`` is before any line discount or tax."""

    subtotal: Decimal = ZERO
    total_discount: Decimal = ZERO
    total_tax: Decimal = ZERO

    @property
    def net_subtotal(self) -> Decimal:
        return self.subtotal - self.total_discount

    @property
    def total(self) -> Decimal:
        return self.subtotal - self.total_discount + self.total_tax


EMPTY_AGGREGATE = CartAggregate()


def aggregate(lines: Iterable[PricedLine]) -> CartAggregate:
    """Fold the lines into a ``CartAggregate``.

    Rounding happens per line (see ``split_line``), so the result is the same
    whatever the order of the lines or whether it was built incrementally.
    """
    subtotal = total_discount = total_tax = ZERO

    for line in lines:
        amounts = split_line(
            line.cart_price,
            line.cart_quantity,
            line.discount_percent,
            line.tax_percent,
        )
        subtotal += amounts.base
        total_discount += amounts.discount
        total_tax += amounts.tax

    return CartAggregate(subtotal=subtotal, total_discount=total_discount, total_tax=total_tax)
