# pharmacy_pos/api/v1/routes_products.py
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pharmacy_pos.api.v1.deps import get_store_id
from pharmacy_pos.db.base import get_db
from pharmacy_pos.domain.inventory.schemas import ProductCreate, ProductOut, ProductPage, ProductResponse, ProductUpdate
from pharmacy_pos.domain.inventory.service import create_product, delete_product, get_product_page, update_product


router = APIRouter(prefix="/api/v1/products", tags=["products"])


@router.get("", response_model=ProductPage)
async def list_products_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    low_stock: bool = False,
    expiring: bool = False,
    db: AsyncSession = Depends(get_db),
    store_id: str = Depends(get_store_id),
):
    return await get_product_page(
        db, store_id, page=page, limit=limit, search=search, low_stock=low_stock, expiring=expiring
    )

@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product_endpoint(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_db),
    store_id: str = Depends(get_store_id),
):
    product = await create_product(db, store_id, payload)
    return ProductResponse(data=ProductOut.model_validate(product))

@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product_endpoint(
    product_id: UUID,
    payload: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    store_id: str = Depends(get_store_id),
):
    product = await update_product(db, store_id, product_id, payload)
    return ProductResponse(data=ProductOut.model_validate(product))

@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product_endpoint(
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
    store_id: str = Depends(get_store_id),
):
    await delete_product(db, store_id, product_id)
