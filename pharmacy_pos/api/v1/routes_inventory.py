# pharmacy_pos/api/v1/routes_inventory.py
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from pharmacy_pos.api.v1.deps import get_store_id
from pharmacy_pos.db.base import get_db
from pharmacy_pos.domain.bill_import.extraction import ExtractionService, get_extraction_service
from pharmacy_pos.domain.bill_import.schemas import ConfirmImportRequest, ConfirmImportResponse, ImportBillResponse
from pharmacy_pos.domain.inventory.reconciler import confirm_import


router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])


@router.post("/import-bill", response_model=ImportBillResponse)
async def import_bill_endpoint(
    bill: UploadFile = File(...),
    extractor: ExtractionService = Depends(get_extraction_service),
):
    content = await bill.read()
    items = await extractor.extract(bill.filename or "bill", content, bill.content_type)
    return ImportBillResponse(success=True, data=items)

@router.post("/confirm-import", response_model=ConfirmImportResponse)
async def confirm_import_endpoint(
    payload: ConfirmImportRequest,
    db: AsyncSession = Depends(get_db),
    store_id: str = Depends(get_store_id),
):
    summary = await confirm_import(db, store_id, payload.items)
    return ConfirmImportResponse(
        success=True,
        message=f"Import confirmed. {summary.created} new batches, {summary.updated} stock updates.",
        data=summary,
    )
