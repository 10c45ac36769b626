# pharmacy_pos/domain/checkout/service.py
import logging
import math
import random
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from pharmacy_pos.core.errors import BusinessError, NotFoundError, ValidationFailure
from pharmacy_pos.db.models.transactions import Bill
from pharmacy_pos.db.models.line_items import BillItem
from pharmacy_pos.db.models.outbox import OutboxEvent
from pharmacy_pos.db.models.payments import Payment, PaymentStatus
from pharmacy_pos.db.repositories.products import get_product_by_id, search_sellable_products
from pharmacy_pos.db.repositories.transactions import (
    bill_number_exists,
    get_bill_by_id,
    get_items_for_bill,
    get_items_for_bills,
    list_bills,
)
from pharmacy_pos.domain.inventory.schemas import Pagination, ProductOut
from pharmacy_pos.domain.pricing.aggregate import aggregate
from pharmacy_pos.domain.pricing.settlement import Adjustments, settle
from pharmacy_pos.domain.pricing.valuation import split_line
from .schemas import BillCreate, BillItemOut, BillOut, BillPage

logger = logging.getLogger(__name__)

async def _next_bill_number(db: AsyncSession, store_id: str) -> str:
    # INV-YYMMDD-NNNN
    prefix = f"INV-{datetime.now():%y%m%d}"
    while True:
        number = f"{prefix}-{random.randint(1000, 9999)}"
        if not await bill_number_exists(db, store_id, number):
            return number

async def create_bill(
    db: AsyncSession,
    store_id: str,
    data: BillCreate
) -> Bill:
    """Record a finalized sale.

    Line and bill totals are recomputed here from unit price, quantity,
    discount and tax; totals sent by the counter are never trusted. Stock is
    decremented for every line that references a product. Bill, items,
    payment and the SaleRecorded outbox event are written in one transaction.
    """
    bill_id = uuid.uuid4()
    lines = []

    try:
        for number, item in enumerate(data.items, start=1):
            cost_price = Decimal("0")
            batch_number = None
            expiry_date = None

            if item.product_id is not None:
                product = await get_product_by_id(db, store_id, item.product_id)
                if product is None:
                    raise NotFoundError(f"Product not found: {item.product_name}")
                if product.quantity < item.quantity:
                    raise BusinessError(f"Insufficient stock for {product.name}. Available: {product.quantity}")

                product.quantity -= item.quantity
                cost_price = product.cost_price
                batch_number = product.batch_number
                expiry_date = product.expiry_date

            amounts = split_line(item.unit_price, item.quantity, item.discount_percent, item.tax_percent)
            lines.append(
                BillItem(
                    bill_id=bill_id,
                    line_number=number,
                    product_id=item.product_id,
                    product_name=item.product_name,
                    product_sku=item.product_sku,
                    batch_number=batch_number,
                    expiry_date=expiry_date,
                    unit_price=item.unit_price,
                    cost_price=cost_price,
                    quantity=item.quantity,
                    discount_percent=item.discount_percent,
                    discount_amount=amounts.discount,
                    tax_percent=item.tax_percent,
                    tax_amount=amounts.tax,
                    line_total=amounts.total,
                )
            )

        cart = aggregate(data.items)
        settlement = settle(
            cart,
            Adjustments(
                global_discount=data.discount_amount,
                doctor_fees=data.doctor_fees,
                other_charges=data.other_charges,
                payment_method=data.payment_method,
                amount_paid=data.amount_paid,
            ),
        )
        if not settlement.can_checkout:
            raise ValidationFailure("Bill total must be greater than zero")

        bill = Bill(
            id=bill_id,
            store_id=store_id,
            customer_id=data.customer_id,
            bill_number=await _next_bill_number(db, store_id),
            status="COMPLETED",
            subtotal=cart.subtotal,
            discount_amount=cart.total_discount,
            tax_amount=cart.total_tax,
            global_discount=data.discount_amount,
            doctor_fees=data.doctor_fees,
            other_charges=data.other_charges,
            total=settlement.grand_total,
            paid_amount=data.amount_paid,
            change_amount=settlement.change,
            balance_amount=settlement.balance,
            payment_method=data.payment_method,
            doctor_name=data.doctor_name,
            note=data.notes,
        )
        db.add(bill)
        await db.flush()
        db.add_all(lines)
        db.add(
            Payment(
                bill_id=bill_id,
                method=data.payment_method,
                amount=data.amount_paid,
                status=PaymentStatus.CAPTURED if settlement.is_fully_paid else PaymentStatus.PENDING,
                captured_at=datetime.now(timezone.utc) if settlement.is_fully_paid else None,
            )
        )
        db.add(
            OutboxEvent(
                event_type="SaleRecorded",
                aggregate_type="Bill",
                aggregate_id=str(bill_id),
                store_id=store_id,
                payload={
                    "bill_number": bill.bill_number,
                    "customer_id": data.customer_id,
                    "subtotal": str(cart.subtotal),
                    "total_discount": str(cart.total_discount),
                    "total_tax": str(cart.total_tax),
                    "grand_total": str(settlement.grand_total),
                    "amount_paid": str(data.amount_paid),
                    "payment_method": data.payment_method.value,
                    "lines": len(lines),
                },
            )
        )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(bill)
    logger.info(f"Recorded bill {bill.bill_number}: total {settlement.grand_total}, {len(lines)} lines")
    return bill

async def get_bill(
    db: AsyncSession,
    store_id: str,
    bill_id: UUID
) -> BillOut:
    bill = await get_bill_by_id(db, bill_id)

    if bill is None or bill.store_id != store_id:
        raise NotFoundError("Bill not found")

    items = await get_items_for_bill(db, bill_id)
    out = BillOut.model_validate(bill)
    out.items = [BillItemOut.model_validate(item) for item in items]
    return out

async def get_bill_page(
    db: AsyncSession,
    store_id: str,
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
) -> BillPage:
    """Bill history, newest first, each bill with its items."""
    bills, total = await list_bills(
        db,
        store_id,
        page=page,
        limit=limit,
        status=status,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )

    items_by_bill = {}
    for item in await get_items_for_bills(db, [bill.id for bill in bills]):
        items_by_bill.setdefault(item.bill_id, []).append(BillItemOut.model_validate(item))

    data = []
    for bill in bills:
        out = BillOut.model_validate(bill)
        out.items = items_by_bill.get(bill.id, [])
        data.append(out)

    return BillPage(
        data=data,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
        ),
    )

async def search_products_for_billing(
    db: AsyncSession,
    store_id: str,
    query: Optional[str],
) -> List[ProductOut]:
    # the counter starts searching from the second character
    if not query or len(query.strip()) < 2:
        return []
    products = await search_sellable_products(db, store_id, query)
    return [ProductOut.model_validate(p) for p in products]
