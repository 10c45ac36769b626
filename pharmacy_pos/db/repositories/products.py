# pharmacy_pos/db/repositories/products.py
from datetime import date, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from pharmacy_pos.db.models.products import Product


async def get_product_by_id(
    db: AsyncSession,
    store_id: str,
    product_id: UUID,
) -> Optional[Product]:
    result = await db.execute(
        select(Product).where(Product.id == product_id, Product.store_id == store_id)
    )
    return result.scalar_one_or_none()


async def get_product_by_sku(
    db: AsyncSession,
    store_id: str,
    sku: str,
) -> Optional[Product]:
    result = await db.execute(
        select(Product).where(Product.store_id == store_id, Product.sku == sku)
    )
    return result.scalar_one_or_none()


async def find_products_by_name(
    db: AsyncSession,
    store_id: str,
    name: str,
) -> List[Product]:
    """All batches of a product, matched case-insensitively on name, oldest first."""
    result = await db.execute(
        select(Product)
        .where(
            Product.store_id == store_id,
            func.lower(Product.name) == name.strip().lower(),
        )
        .order_by(Product.created_at, Product.id)
    )
    return list(result.scalars().all())


async def list_products(
    db: AsyncSession,
    store_id: str,
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    low_stock: bool = False,
    expiring_within_days: Optional[int] = None,
) -> Tuple[List[Product], int]:
    conditions = [Product.store_id == store_id, Product.is_active.is_(True)]

    if search:
        pattern = f"%{search.strip().lower()}%"
        conditions.append(
            or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.generic_name).like(pattern),
                func.lower(Product.sku).like(pattern),
                func.lower(Product.barcode).like(pattern),
            )
        )

    if low_stock:
        conditions.append(Product.quantity <= Product.reorder_level)

    if expiring_within_days is not None:
        today = date.today()
        conditions.append(Product.expiry_date >= today)
        conditions.append(Product.expiry_date <= today + timedelta(days=expiring_within_days))

    total = await db.scalar(select(func.count()).select_from(Product).where(*conditions))

    result = await db.execute(
        select(Product)
        .where(*conditions)
        .order_by(Product.created_at.desc(), Product.name)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), int(total or 0)


async def search_sellable_products(
    db: AsyncSession,
    store_id: str,
    query: str,
    limit: int = 10,
) -> List[Product]:
    """Active batches with stock on hand, matched on name, SKU or barcode."""
    pattern = f"%{query.strip().lower()}%"
    result = await db.execute(
        select(Product)
        .where(
            Product.store_id == store_id,
            Product.is_active.is_(True),
            Product.quantity > 0,
            or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.sku).like(pattern),
                func.lower(Product.barcode).like(pattern),
            ),
        )
        .order_by(Product.name, Product.expiry_date)
        .limit(limit)
    )
    return list(result.scalars().all())
