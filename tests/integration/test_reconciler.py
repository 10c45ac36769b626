"""Tests for applying a confirmed bill import to inventory."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from pharmacy_pos.core.errors import ValidationFailure
from pharmacy_pos.db.models.outbox import OutboxEvent
from pharmacy_pos.db.models.products import Product
from pharmacy_pos.domain.bill_import.schemas import ImportedLine
from pharmacy_pos.domain.inventory.reconciler import confirm_import, parse_expiry

STORE_ID = "store-test"


async def all_products(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(Product).order_by(Product.name, Product.batch_number))
        return list(result.scalars().all())


class TestParseExpiry:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("2027-01-31", date(2027, 1, 31)),
            ("15/03/2027", date(2027, 3, 15)),
            ("05/27", date(2027, 5, 31)),
            ("2/2028", date(2028, 2, 29)),
            ("11-26", date(2026, 11, 30)),
        ],
    )
    def test_readable_forms(self, text, expected):
        assert parse_expiry(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "soon", "13/27"])
    def test_unreadable_forms(self, text):
        assert parse_expiry(text) is None


class TestConfirmImport:
    async def test_new_medicine_creates_a_batch(self, db_session, session_factory):
        summary = await confirm_import(
            db_session,
            STORE_ID,
            [ImportedLine(medicine_name="dolo 650", batch_number="D1", expiry_date="05/27", quantity=10, mrp=30, rate=22)],
        )

        assert (summary.created, summary.updated) == (1, 0)
        [product] = await all_products(session_factory)
        assert product.quantity == 10
        assert product.cost_price == Decimal("22")
        assert product.selling_price == product.mrp == Decimal("30")
        assert product.expiry_date == date(2027, 5, 31)
        assert product.category == "MEDICINE"
        assert product.sku.startswith("DOL-D1-")

    async def test_known_batch_only_gains_stock(self, db_session, session_factory, make_product):
        await make_product(name="Paracetamol 500mg", batch_number="B1", quantity=50)

        summary = await confirm_import(
            db_session,
            STORE_ID,
            [ImportedLine(medicine_name="paracetamol 500mg", batch_number="B1", quantity=20, mrp=99, rate=1)],
        )

        assert (summary.created, summary.updated) == (0, 1)
        [product] = await all_products(session_factory)
        assert product.quantity == 70
        assert product.mrp == Decimal("25.00")
        assert product.cost_price == Decimal("12.00")

    async def test_new_batch_inherits_from_existing_product(self, db_session, session_factory, make_product):
        await make_product(name="paracetamol 500mg", batch_number="B1")

        await confirm_import(
            db_session,
            STORE_ID,
            [ImportedLine(medicine_name="paracetamol 500mg", batch_number="B2", quantity=30, mrp=26, rate=13)],
        )

        old, new = await all_products(session_factory)
        assert new.batch_number == "B2"
        assert new.quantity == 30
        assert new.unit == old.unit == "strip"
        assert new.reorder_level == old.reorder_level == 15
        assert new.tax_percent == old.tax_percent

    async def test_duplicate_rows_in_one_bill_accumulate(self, db_session, session_factory):
        row = ImportedLine(medicine_name="benadryl", batch_number="BN3", quantity=8, mrp=115, rate=80)
        summary = await confirm_import(db_session, STORE_ID, [row, row.model_copy()])

        assert (summary.created, summary.updated) == (1, 1)
        [product] = await all_products(session_factory)
        assert product.quantity == 16

    async def test_bad_row_rolls_back_the_whole_list(self, db_session, session_factory, make_product):
        await make_product(name="paracetamol 500mg", batch_number="B1", quantity=50)

        with pytest.raises(ValidationFailure, match="Row 3"):
            await confirm_import(
                db_session,
                STORE_ID,
                [
                    ImportedLine(medicine_name="paracetamol 500mg", batch_number="B1", quantity=5, mrp=25, rate=12),
                    ImportedLine(medicine_name="dolo 650", batch_number="D1", quantity=10, mrp=30, rate=22),
                    ImportedLine(medicine_name="azithral", batch_number="A7", quantity="2.5", mrp=120, rate=90),
                ],
            )

        products = await all_products(session_factory)
        assert [(p.name, p.quantity) for p in products] == [("paracetamol 500mg", 50)]

        async with session_factory() as session:
            assert await session.scalar(select(func.count()).select_from(OutboxEvent)) == 0

    async def test_empty_list_is_rejected(self, db_session):
        with pytest.raises(ValidationFailure):
            await confirm_import(db_session, STORE_ID, [])

    async def test_writes_an_outbox_event(self, db_session, session_factory, imported_lines):
        await confirm_import(db_session, STORE_ID, imported_lines)

        async with session_factory() as session:
            event = await session.scalar(select(OutboxEvent))
        assert event.event_type == "InventoryImported"
        assert event.payload["created"] == 3
        assert "original_name" not in event.payload["items"][0]
