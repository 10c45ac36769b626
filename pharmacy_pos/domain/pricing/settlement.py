# pharmacy_pos/domain/pricing/settlement.py
import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from pharmacy_pos.core.errors import ValidationFailure

from .aggregate import CartAggregate
from .valuation import ZERO, Number, round2, to_decimal


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    UPI = "UPI"
    CARD = "CARD"


def _non_negative(value: Number, name: str) -> Decimal:
    amount = to_decimal(value, name)
    if amount < ZERO:
        raise ValidationFailure(f"{name} cannot be negative")
    return amount


@dataclass(frozen=True)
class Adjustments:
    """Manual, bill-level inputs entered at the counter."""

    global_discount: Decimal = ZERO
    doctor_fees: Decimal = ZERO
    other_charges: Decimal = ZERO
    payment_method: PaymentMethod = PaymentMethod.CASH
    amount_paid: Decimal = ZERO
    doctor_name: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        for name in ("global_discount", "doctor_fees", "other_charges", "amount_paid"):
            object.__setattr__(self, name, _non_negative(getattr(self, name), name))
        object.__setattr__(self, "payment_method", PaymentMethod(self.payment_method))


@dataclass(frozen=True)
class BillSettlement:
    adjustments: Adjustments = field(default_factory=Adjustments)
    grand_total: Decimal = ZERO
    change: Decimal = ZERO
    balance: Decimal = ZERO

    @property
    def can_checkout(self) -> bool:
        return self.grand_total > ZERO

    @property
    def is_fully_paid(self) -> bool:
        return self.balance == ZERO


def settle(cart: CartAggregate, adjustments: Adjustments) -> BillSettlement:
    """Combine cart totals with fees, bill discount and the amount tendered.

    The bill is charged on the discounted base (``net_subtotal``); fees are
    added and the flat bill discount removed, floored at zero.
    """
    grand_total = round2(
        cart.net_subtotal
        + cart.total_tax
        + adjustments.doctor_fees
        + adjustments.other_charges
        - adjustments.global_discount
    )
    grand_total = max(ZERO, grand_total)

    paid = adjustments.amount_paid
    return BillSettlement(
        adjustments=adjustments,
        grand_total=grand_total,
        change=max(ZERO, paid - grand_total),
        balance=max(ZERO, grand_total - paid),
    )
