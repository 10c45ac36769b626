"""Tests for the counter cart and its typed line edits."""

import uuid
from decimal import Decimal

import pytest

from pharmacy_pos.core.errors import ValidationFailure
from pharmacy_pos.domain.cart.cart import Cart, CartLine
from pharmacy_pos.domain.inventory.schemas import ProductOut


def product(name="dolo 650", price="30.00", tax="12", stock=3, **extra) -> ProductOut:
    values = dict(
        id=uuid.uuid4(),
        name=name,
        sku=f"SKU-{name[:3].upper()}",
        category="MEDICINE",
        cost_price=Decimal("20"),
        selling_price=Decimal(price),
        mrp=Decimal(price),
        tax_percent=Decimal(tax),
        quantity=stock,
        min_stock_level=5,
        reorder_level=10,
        unit="strip",
        batch_number="B1",
    )
    values.update(extra)
    return ProductOut(**values)


class TestCartLine:
    def test_line_total_is_derived(self):
        line = CartLine(product_id=None, name="x", reference_price=100, cart_price=100, cart_quantity=2,
                        discount_percent=10, tax_percent=5)
        assert line.line_total == Decimal("189.00")

    def test_line_total_cannot_be_passed_in(self):
        with pytest.raises(TypeError):
            CartLine(product_id=None, name="x", reference_price=1, cart_price=1, line_total=5)

    def test_from_product_defaults(self):
        p = product(price="42.50", tax="5")
        line = CartLine.from_product(p)
        assert line.cart_quantity == 1
        assert line.cart_price == line.reference_price == Decimal("42.50")
        assert line.tax_percent == Decimal("5")
        assert line.stock_available == 3


class TestCart:
    @pytest.fixture
    def cart(self) -> Cart:
        return Cart()

    def test_adding_same_product_increments(self, cart):
        p = product()
        assert cart.add_product(p) == 0
        assert cart.add_product(p) == 0
        assert len(cart) == 1
        assert cart[0].cart_quantity == 2

    def test_increment_stops_at_available_stock(self, cart):
        p = product(stock=2)
        cart.add_product(p)
        cart.add_product(p)
        with pytest.raises(ValidationFailure, match="Max stock reached"):
            cart.add_product(p)
        assert cart[0].cart_quantity == 2

    def test_out_of_stock_product_is_refused(self, cart):
        with pytest.raises(ValidationFailure):
            cart.add_product(product(stock=0))
        assert cart.is_empty

    def test_editing_one_line_leaves_others_alone(self, cart):
        cart.add_product(product("dolo 650"))
        cart.add_product(product("azithral", price="120"))
        other = cart[1]

        updated = cart.set_quantity(0, 3)

        assert updated.line_total == Decimal("100.80")  # 30 x 3 x 1.12
        assert cart[1] is other

    def test_price_override_keeps_reference_price(self, cart):
        cart.add_product(product(price="30"))
        cart.set_price(0, "25")
        assert cart[0].cart_price == Decimal("25")
        assert cart[0].reference_price == Decimal("30")
        assert cart[0].line_total == Decimal("28.00")

    def test_discount_and_tax_edits_recompute(self, cart):
        cart.add_product(product(price="100", tax="0"))
        cart.set_quantity(0, 2)
        cart.set_discount_percent(0, 10)
        cart.set_tax_percent(0, 5)
        assert cart[0].line_total == Decimal("189.00")

    def test_quantity_below_one_is_clamped(self, cart):
        cart.add_product(product())
        cart.set_quantity(0, 0)
        assert cart[0].cart_quantity == 1

    def test_invalid_discount_leaves_line_unchanged(self, cart):
        cart.add_product(product())
        before = cart[0]
        with pytest.raises(ValidationFailure):
            cart.set_discount_percent(0, 150)
        assert cart[0] == before

    def test_negative_price_is_rejected(self, cart):
        cart.add_product(product())
        with pytest.raises(ValidationFailure):
            cart.set_price(0, -1)

    def test_remove_and_clear(self, cart):
        cart.add_product(product("a"))
        cart.add_product(product("b"))
        removed = cart.remove(0)
        assert removed.name == "a"
        assert [l.name for l in cart] == ["b"]
        cart.clear()
        assert cart.is_empty

    def test_edit_out_of_range(self, cart):
        with pytest.raises(IndexError):
            cart.set_quantity(0, 2)

    def test_totals_follow_edits(self, cart):
        cart.add_product(product(price="100", tax="5"))
        cart.set_quantity(0, 2)
        cart.set_discount_percent(0, 10)
        totals = cart.totals()
        assert totals.subtotal == Decimal("200.00")
        assert totals.total_discount == Decimal("20.00")
        assert totals.total_tax == Decimal("9.00")
