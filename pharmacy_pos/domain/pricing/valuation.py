# pharmacy_pos/domain/pricing/valuation.py
"""Money arithmetic for a single cart line.

All amounts are ``Decimal``. Inputs may arrive as int, float, str or Decimal
(form fields, JSON payloads, ORM ``Numeric`` columns); they are converted via
``str`` so that ``0.1`` stays ``0.1`` instead of its binary approximation.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import NamedTuple, Union

from pharmacy_pos.core.errors import ValidationFailure

Number = Union[int, float, str, Decimal]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Number, field: str = "value") -> Decimal:
    if isinstance(value, bool):
        raise ValidationFailure(f"{field} must be numeric")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationFailure(f"{field} must be numeric, got {value!r}")
    if not result.is_finite():
        raise ValidationFailure(f"{field} must be a finite number")
    return result


def round2(amount: Decimal) -> Decimal:
    """Round to cents, half away from zero (0.005 -> 0.01)."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def clamp_quantity(quantity: Number) -> int:
    """Quantities below one are raised to one; fractional quantities are truncated."""
    qty = to_decimal(quantity, "quantity")
    return max(1, int(qty))


class LineAmounts(NamedTuple):
    base: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal


def _checked_inputs(cart_price, discount_percent, tax_percent):
    price = to_decimal(cart_price, "cart_price")
    discount = to_decimal(discount_percent, "discount_percent")
    tax = to_decimal(tax_percent, "tax_percent")

    if price < ZERO:
        raise ValidationFailure("cart_price cannot be negative")
    if not ZERO <= discount <= HUNDRED:
        raise ValidationFailure("discount_percent must be between 0 and 100")
    if tax < ZERO:
        raise ValidationFailure("tax_percent cannot be negative")
    return price, discount, tax


def compute_line_total(
    cart_price: Number,
    quantity: Number,
    discount_percent: Number = 0,
    tax_percent: Number = 0,
) -> Decimal:
    """Return ``round2(price * qty * (1 - discount/100) * (1 + tax/100))``.

    Discount is applied before tax. The result is never negative.
    """
    price, discount, tax = _checked_inputs(cart_price, discount_percent, tax_percent)
    qty = clamp_quantity(quantity)

    gross = price * qty * (1 - discount / HUNDRED) * (1 + tax / HUNDRED)
    return max(ZERO, round2(gross))


def split_line(
    cart_price: Number,
    quantity: Number,
    discount_percent: Number = 0,
    tax_percent: Number = 0,
) -> LineAmounts:
    """Break a line into its cent-rounded base, discount, tax and total.

    Each component is rounded on its own so that aggregates built from these
    parts never drift from the per-line figures.
    """
    price, discount, tax = _checked_inputs(cart_price, discount_percent, tax_percent)
    qty = clamp_quantity(quantity)

    base = price * qty
    discount_amt = base * discount / HUNDRED
    tax_amt = (base - discount_amt) * tax / HUNDRED

    return LineAmounts(
        base=round2(base),
        discount=round2(discount_amt),
        tax=round2(tax_amt),
        total=compute_line_total(price, qty, discount, tax),
    )
