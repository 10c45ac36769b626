# pharmacy_pos/domain/inventory/reconciler.py
"""Applies a confirmed supplier bill to inventory.

Each confirmed row is matched against the store's existing batches of the
same medicine (name compared case-insensitively):

* same batch number: the batch's stock is incremented, prices untouched;
* otherwise: a new batch row is created with its own SKU, priced from the
  bill (``rate`` as cost, ``mrp`` as MRP and default selling price) and with
  category, unit and reorder level inherited from an existing batch.

The whole list is one database transaction. Any failing row rolls back every
row before it, so callers observe all-or-nothing.
"""
import calendar
import logging
import random
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from pharmacy_pos.core.config import settings
from pharmacy_pos.core.errors import ValidationFailure
from pharmacy_pos.db.models.outbox import OutboxEvent
from pharmacy_pos.db.models.products import Product
from pharmacy_pos.db.repositories.products import find_products_by_name, get_product_by_sku
from pharmacy_pos.domain.bill_import.schemas import ImportedLine, ImportSummary

logger = logging.getLogger(__name__)

_DAY_FIRST_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y")
_MONTH_ONLY = re.compile(r"^\s*(\d{1,2})\s*[/\-.]\s*(\d{2}|\d{4})\s*$")


def parse_expiry(text: str) -> Optional[date]:
    """Best-effort reading of the expiry printed on a bill.

    Month-only forms (``05/26``, ``5-2026``) mean the end of that month.
    Unreadable text yields ``None``; the expiry is advisory.
    """
    if not text or not text.strip():
        return None

    for fmt in _DAY_FIRST_FORMATS:
        try:
            return datetime.strptime(text.strip(), fmt).date()
        except ValueError:
            continue

    match = _MONTH_ONLY.match(text)
    if match:
        month, year = int(match.group(1)), int(match.group(2))
        if year < 100:
            year += 2000
        if 1 <= month <= 12:
            return date(year, month, calendar.monthrange(year, month)[1])
    return None


def _stock_quantity(item: ImportedLine, row: int) -> int:
    quantity = item.quantity
    if quantity <= 0 or quantity != quantity.to_integral_value():
        raise ValidationFailure(f"Row {row}: quantity must be a whole number greater than zero")
    return int(quantity)


async def _generate_sku(db: AsyncSession, store_id: str, name: str, batch: str) -> str:
    prefix = re.sub(r"[^A-Za-z0-9]", "", name)[:3].upper() or "MED"
    clean_batch = re.sub(r"[^A-Za-z0-9]", "", batch) or datetime.now().strftime("%y%m%d")
    while True:
        sku = f"{prefix}-{clean_batch}-{random.randint(0, 998)}"
        if await get_product_by_sku(db, store_id, sku) is None:
            return sku


async def confirm_import(
    db: AsyncSession,
    store_id: str,
    items: Sequence[ImportedLine],
) -> ImportSummary:
    if not items:
        raise ValidationFailure("No items to import")

    summary = ImportSummary()
    try:
        for row, item in enumerate(items, start=1):
            name = item.medicine_name.strip()
            if not name:
                raise ValidationFailure(f"Row {row}: medicine name is required")
            quantity = _stock_quantity(item, row)
            batch = item.batch_number.strip()

            batches = await find_products_by_name(db, store_id, name)
            match = next((p for p in batches if (p.batch_number or "") == batch), None)

            if match is not None:
                match.quantity += quantity
                summary.updated += 1
            else:
                blueprint = batches[0] if batches else None
                db.add(
                    Product(
                        store_id=store_id,
                        name=name,
                        sku=await _generate_sku(db, store_id, name, batch),
                        quantity=quantity,
                        batch_number=batch or None,
                        expiry_date=parse_expiry(item.expiry_date),
                        mrp=item.mrp,
                        cost_price=item.rate,
                        selling_price=item.mrp,
                        tax_percent=blueprint.tax_percent if blueprint else Decimal("0"),
                        category=blueprint.category if blueprint else "MEDICINE",
                        unit=blueprint.unit if blueprint else "pcs",
                        reorder_level=blueprint.reorder_level if blueprint else settings.DEFAULT_REORDER_LEVEL,
                        min_stock_level=blueprint.min_stock_level if blueprint else settings.DEFAULT_MIN_STOCK_LEVEL,
                        description="Imported from Bill",
                    )
                )
                summary.created += 1
            await db.flush()

        db.add(
            OutboxEvent(
                event_type="InventoryImported",
                aggregate_type="Inventory",
                aggregate_id=store_id,
                store_id=store_id,
                payload={
                    "items": [item.to_commit_payload() for item in items],
                    "created": summary.created,
                    "updated": summary.updated,
                },
            )
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Import confirmed for store {store_id}: {summary.created} new batches, {summary.updated} stock updates")
    return summary
