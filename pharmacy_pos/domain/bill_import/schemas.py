# pharmacy_pos/domain/bill_import/schemas.py
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from pydantic import BaseModel, field_validator


class ImportedLine(BaseModel):
    """One candidate inventory row read off a supplier bill.

    Rows have no identity of their own before they are committed; inside a
    staging session a row is addressed by its position.
    """

    medicine_name: str = ""
    batch_number: str = ""
    expiry_date: str = ""
    quantity: Decimal = Decimal("0")
    mrp: Decimal = Decimal("0")
    rate: Decimal = Decimal("0")
    original_name: Optional[str] = None

    @field_validator("medicine_name", "batch_number", "expiry_date", mode="before")
    @classmethod
    def _blank_text(cls, value):
        return "" if value is None else str(value)

    @field_validator("quantity", "mrp", "rate", mode="before")
    @classmethod
    def _blank_number(cls, value):
        # unreadable cells become 0 and are fixed during review
        if value is None or isinstance(value, bool):
            return Decimal("0")
        try:
            number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except InvalidOperation:
            return Decimal("0")
        return number if number.is_finite() else Decimal("0")

    def to_commit_payload(self) -> dict:
        return self.model_dump(mode="json", exclude={"original_name"})


class ImportBillResponse(BaseModel):
    success: bool
    data: List[ImportedLine] = []


class ConfirmImportRequest(BaseModel):
    items: List[ImportedLine]


class ImportSummary(BaseModel):
    created: int = 0
    updated: int = 0


class ConfirmImportResponse(BaseModel):
    success: bool
    message: str
    data: ImportSummary
