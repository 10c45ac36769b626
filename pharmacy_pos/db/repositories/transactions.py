from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence, Tuple
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from pharmacy_pos.db.models.transactions import Bill
from pharmacy_pos.db.models.line_items import BillItem

async def get_bill_by_id(
    db: AsyncSession,
    bill_id: UUID
) -> Optional[Bill]:
    result = await db.execute(
        select(Bill).where(Bill.id == bill_id)
    )
    bill = result.scalar_one_or_none()
    return bill

async def get_items_for_bill(
    db: AsyncSession,
    bill_id: UUID
) -> List[BillItem]:
    result = await db.execute(
        select(BillItem).where(BillItem.bill_id == bill_id).order_by(BillItem.line_number)
    )
    items = result.scalars().all()
    return list(items)

async def bill_number_exists(
    db: AsyncSession,
    store_id: str,
    bill_number: str
) -> bool:
    result = await db.execute(
        select(Bill.id).where(Bill.store_id == store_id, Bill.bill_number == bill_number)
    )
    return result.first() is not None

async def get_items_for_bills(
    db: AsyncSession,
    bill_ids: Sequence[UUID]
) -> List[BillItem]:
    if not bill_ids:
        return []
    result = await db.execute(
        select(BillItem)
        .where(BillItem.bill_id.in_(bill_ids))
        .order_by(BillItem.bill_id, BillItem.line_number)
    )
    return list(result.scalars().all())

async def list_bills(
    db: AsyncSession,
    store_id: str,
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
) -> Tuple[List[Bill], int]:
    conditions = [Bill.store_id == store_id]

    if status:
        conditions.append(Bill.status == status)
    # both bounds are whole days
    if start_date is not None:
        conditions.append(Bill.billed_at >= datetime.combine(start_date, time.min))
    if end_date is not None:
        conditions.append(Bill.billed_at < datetime.combine(end_date + timedelta(days=1), time.min))
    if search:
        conditions.append(func.lower(Bill.bill_number).like(f"%{search.strip().lower()}%"))

    total = await db.scalar(select(func.count()).select_from(Bill).where(*conditions))

    result = await db.execute(
        select(Bill)
        .where(*conditions)
        .order_by(Bill.billed_at.desc(), Bill.bill_number.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), int(total or 0)
