# pharmacy_pos/domain/inventory/service.py
import logging
import math
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pharmacy_pos.core.config import settings
from pharmacy_pos.core.errors import BusinessError, NotFoundError
from pharmacy_pos.db.models.products import Product
from pharmacy_pos.db.repositories.products import get_product_by_id, get_product_by_sku, list_products
from .schemas import Pagination, ProductCreate, ProductOut, ProductPage, ProductUpdate

logger = logging.getLogger(__name__)

async def create_product(
    db: AsyncSession,
    store_id: str,
    data: ProductCreate,
) -> Product:
    if await get_product_by_sku(db, store_id, data.sku) is not None:
        raise BusinessError(f"Product with SKU '{data.sku}' already exists.")

    values = data.model_dump()
    if values["min_stock_level"] is None:
        values["min_stock_level"] = settings.DEFAULT_MIN_STOCK_LEVEL
    if values["reorder_level"] is None:
        values["reorder_level"] = settings.DEFAULT_REORDER_LEVEL

    product = Product(store_id=store_id, **values)
    db.add(product)
    await db.commit()
    await db.refresh(product)
    logger.info(f"Created product {product.sku} ({product.name})")
    return product

async def update_product(
    db: AsyncSession,
    store_id: str,
    product_id: UUID,
    data: ProductUpdate,
) -> Product:
    product = await get_product_by_id(db, store_id, product_id)
    if product is None:
        raise NotFoundError("Product not found")

    changes = data.model_dump(exclude_unset=True)
    new_sku = changes.get("sku")
    if new_sku and new_sku != product.sku:
        if await get_product_by_sku(db, store_id, new_sku) is not None:
            raise BusinessError(f"Product with SKU '{new_sku}' already exists.")

    for field, value in changes.items():
        if value is None and field in ("name", "sku", "selling_price", "mrp", "quantity"):
            continue
        setattr(product, field, value)

    await db.commit()
    await db.refresh(product)
    return product

async def delete_product(
    db: AsyncSession,
    store_id: str,
    product_id: UUID,
) -> None:
    # Sold batches stay referenced by bill items, so products are only deactivated
    product = await get_product_by_id(db, store_id, product_id)
    if product is None:
        raise NotFoundError("Product not found")

    product.is_active = False
    await db.commit()
    logger.info(f"Deactivated product {product.sku}")

async def get_product_page(
    db: AsyncSession,
    store_id: str,
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    low_stock: bool = False,
    expiring: bool = False,
) -> ProductPage:
    products, total = await list_products(
        db,
        store_id,
        page=page,
        limit=limit,
        search=search,
        low_stock=low_stock,
        expiring_within_days=settings.EXPIRING_WINDOW_DAYS if expiring else None,
    )
    return ProductPage(
        data=[ProductOut.model_validate(p) for p in products],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
        ),
    )
