"""Tests for bill settlement."""

from decimal import Decimal

import pytest

from pharmacy_pos.core.errors import ValidationFailure
from pharmacy_pos.domain.pricing.aggregate import CartAggregate
from pharmacy_pos.domain.pricing.settlement import Adjustments, PaymentMethod, settle

CART = CartAggregate(subtotal=Decimal("500"), total_tax=Decimal("25"))


class TestSettle:
    def test_grand_total_with_fees_and_discount(self):
        result = settle(CART, Adjustments(doctor_fees=50, other_charges=0, global_discount=20))
        assert result.grand_total == Decimal("555.00")

    def test_overpayment_gives_change(self):
        result = settle(CART, Adjustments(doctor_fees=50, global_discount=20, amount_paid=600))
        assert result.change == Decimal("45.00")
        assert result.balance == Decimal("0")

    def test_underpayment_leaves_balance(self):
        result = settle(CART, Adjustments(doctor_fees=50, global_discount=20, amount_paid=500))
        assert result.change == Decimal("0")
        assert result.balance == Decimal("55.00")
        assert not result.is_fully_paid

    def test_exact_payment_leaves_neither(self):
        result = settle(CART, Adjustments(amount_paid="525"))
        assert result.change == result.balance == Decimal("0")
        assert result.is_fully_paid

    def test_line_discounts_reduce_the_bill(self):
        cart = CartAggregate(subtotal=Decimal("200"), total_discount=Decimal("20"), total_tax=Decimal("9"))
        assert settle(cart, Adjustments()).grand_total == Decimal("189.00")

    def test_discount_larger_than_bill_floors_at_zero(self):
        result = settle(CART, Adjustments(global_discount=10_000, amount_paid=5))
        assert result.grand_total == Decimal("0")
        assert result.change == Decimal("5")
        assert result.balance == Decimal("0")
        assert not result.can_checkout

    def test_empty_cart_cannot_checkout(self):
        assert not settle(CartAggregate(), Adjustments()).can_checkout

    @pytest.mark.parametrize("paid", ["0", "100", "524.99", "525", "525.01", "1000"])
    @pytest.mark.parametrize("discount", ["0", "25", "600"])
    def test_change_and_balance_are_mutually_exclusive(self, paid, discount):
        result = settle(CART, Adjustments(amount_paid=paid, global_discount=discount))
        assert result.grand_total >= 0
        assert result.change == 0 or result.balance == 0
        if Decimal(paid) == result.grand_total:
            assert result.change == result.balance == 0
        else:
            assert (result.change > 0) != (result.balance > 0)


class TestAdjustments:
    @pytest.mark.parametrize("field", ["global_discount", "doctor_fees", "other_charges", "amount_paid"])
    def test_negative_amounts_are_rejected(self, field):
        with pytest.raises(ValidationFailure):
            Adjustments(**{field: -1})

    def test_payment_method_accepts_plain_string(self):
        assert Adjustments(payment_method="UPI").payment_method is PaymentMethod.UPI

    def test_unknown_payment_method(self):
        with pytest.raises(ValueError):
            Adjustments(payment_method="CHEQUE")
