# pharmacy_pos/domain/cart/cart.py
"""The sale being built at the counter.

Lines are immutable values; every edit replaces the line at its index with a
copy whose ``line_total`` has been recomputed, so no other line is touched and
a line can never carry a stale total.
"""
import dataclasses
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterator, List, Optional, Tuple

from pharmacy_pos.core.errors import ValidationFailure
from pharmacy_pos.domain.inventory.schemas import ProductOut
from pharmacy_pos.domain.pricing.aggregate import CartAggregate, aggregate
from pharmacy_pos.domain.pricing.valuation import ZERO, Number, clamp_quantity, compute_line_total, to_decimal


@dataclass(frozen=True)
class CartLine:
    product_id: Optional[str]
    name: str
    reference_price: Decimal
    cart_price: Decimal
    cart_quantity: int = 1
    discount_percent: Decimal = ZERO
    tax_percent: Decimal = ZERO
    generic_name: Optional[str] = None
    sku: Optional[str] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    stock_available: Optional[int] = None
    line_total: Decimal = field(init=False, default=ZERO)

    def __post_init__(self):
        object.__setattr__(self, "reference_price", to_decimal(self.reference_price, "reference_price"))
        object.__setattr__(self, "cart_price", to_decimal(self.cart_price, "cart_price"))
        object.__setattr__(self, "cart_quantity", clamp_quantity(self.cart_quantity))
        object.__setattr__(self, "discount_percent", to_decimal(self.discount_percent, "discount_percent"))
        object.__setattr__(self, "tax_percent", to_decimal(self.tax_percent, "tax_percent"))
        object.__setattr__(
            self,
            "line_total",
            compute_line_total(self.cart_price, self.cart_quantity, self.discount_percent, self.tax_percent),
        )

    @classmethod
    def from_product(cls, product: ProductOut) -> "CartLine":
        """Quantity starts at one and the unit price at the catalog selling price."""
        return cls(
            product_id=str(product.id),
            name=product.name,
            generic_name=product.generic_name,
            sku=product.sku,
            reference_price=product.selling_price,
            cart_price=product.selling_price,
            tax_percent=product.tax_percent,
            batch_number=product.batch_number,
            expiry_date=product.expiry_date,
            stock_available=product.quantity,
        )


class Cart:
    def __init__(self, lines: Optional[List[CartLine]] = None):
        self._lines: List[CartLine] = list(lines or [])

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self._lines)

    def __getitem__(self, index: int) -> CartLine:
        return self._lines[index]

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def totals(self) -> CartAggregate:
        return aggregate(self._lines)

    def add_product(self, product: ProductOut) -> int:
        """Add one unit of ``product`` and return the index of its line.

        Adding a product that is already in the cart increments that line,
        up to the stock that was available when it was first added.
        """
        product_id = str(product.id)
        for index, line in enumerate(self._lines):
            if line.product_id == product_id:
                if line.stock_available is not None and line.cart_quantity >= line.stock_available:
                    raise ValidationFailure(f"Max stock reached for {line.name}")
                self._replace(index, cart_quantity=line.cart_quantity + 1)
                return index

        if product.quantity <= 0:
            raise ValidationFailure(f"{product.name} is out of stock")
        self._lines.append(CartLine.from_product(product))
        return len(self._lines) - 1

    def add_line(self, line: CartLine) -> int:
        self._lines.append(line)
        return len(self._lines) - 1

    def _replace(self, index: int, **changes) -> CartLine:
        if not 0 <= index < len(self._lines):
            raise IndexError(f"No cart line at index {index}")
        line = dataclasses.replace(self._lines[index], **changes)
        self._lines[index] = line
        return line

    def set_price(self, index: int, price: Number) -> CartLine:
        price = to_decimal(price, "cart_price")
        if price < ZERO:
            raise ValidationFailure("cart_price cannot be negative")
        return self._replace(index, cart_price=price)

    def set_quantity(self, index: int, quantity: Number) -> CartLine:
        return self._replace(index, cart_quantity=clamp_quantity(quantity))

    def set_discount_percent(self, index: int, percent: Number) -> CartLine:
        return self._replace(index, discount_percent=to_decimal(percent, "discount_percent"))

    def set_tax_percent(self, index: int, percent: Number) -> CartLine:
        return self._replace(index, tax_percent=to_decimal(percent, "tax_percent"))

    def remove(self, index: int) -> CartLine:
        if not 0 <= index < len(self._lines):
            raise IndexError(f"No cart line at index {index}")
        return self._lines.pop(index)

    def clear(self) -> None:
        self._lines = []
