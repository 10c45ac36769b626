# pharmacy_pos/api/v1/routes_checkout.py
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession


from pharmacy_pos.api.v1.deps import get_store_id
from pharmacy_pos.db.base import get_db
from pharmacy_pos.domain.checkout.schemas import BillCreate, BillPage, BillResponse, ProductSearchResponse
from pharmacy_pos.domain.checkout.service import create_bill, get_bill, get_bill_page, search_products_for_billing


router = APIRouter(prefix="/api/v1/billing", tags=["billing"])


@router.get("/bills", response_model=BillPage)
async def list_bills_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    bill_status: Optional[str] = Query(None, alias="status"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    store_id: str = Depends(get_store_id),
):
    return await get_bill_page(
        db,
        store_id,
        page=page,
        limit=limit,
        status=bill_status,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )

@router.post("/bills", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def create_bill_endpoint(
    payload: BillCreate,
    db: AsyncSession = Depends(get_db),
    store_id: str = Depends(get_store_id),
):
    bill = await create_bill(db, store_id, payload)
    return BillResponse(data=await get_bill(db, store_id, bill.id))

@router.get("/bills/{bill_id}", response_model=BillResponse)
async def get_bill_endpoint(
    bill_id: UUID,
    db: AsyncSession = Depends(get_db),
    store_id: str = Depends(get_store_id),
):
    return BillResponse(data=await get_bill(db, store_id, bill_id))

@router.get("/products/search", response_model=ProductSearchResponse)
async def search_products_endpoint(
    q: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    store_id: str = Depends(get_store_id),
):
    return ProductSearchResponse(data=await search_products_for_billing(db, store_id, q))
