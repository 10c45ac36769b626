# pharmacy_pos/domain/checkout/schemas.py
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from uuid import UUID
from typing import List, Optional

from pharmacy_pos.domain.inventory.schemas import Pagination, ProductOut
from pharmacy_pos.domain.pricing.settlement import PaymentMethod

class BillItemIn(BaseModel):
    product_id: Optional[UUID] = None
    product_name: str
    product_sku: Optional[str] = None
    quantity: int = 1
    unit_price: Decimal = Field(ge=0)
    discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    tax_percent: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("quantity", mode="after")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        return max(1, value)

    # the pricing core reads cart-line attribute names
    @property
    def cart_price(self) -> Decimal:
        return self.unit_price

    @property
    def cart_quantity(self) -> int:
        return self.quantity

class BillCreate(BaseModel):
    customer_id: Optional[str] = None
    items: List[BillItemIn] = Field(min_length=1)

    payment_method: PaymentMethod = PaymentMethod.CASH
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0)

    discount_amount: Decimal = Field(default=Decimal("0"), ge=0)
    doctor_fees: Decimal = Field(default=Decimal("0"), ge=0)
    other_charges: Decimal = Field(default=Decimal("0"), ge=0)

    doctor_name: Optional[str] = None
    notes: Optional[str] = None

class BillItemOut(BaseModel):
    id: UUID
    line_number: int
    product_id: Optional[UUID] = None
    product_name: str
    product_sku: Optional[str] = None
    batch_number: Optional[str] = None
    quantity: int
    unit_price: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    tax_percent: Decimal
    tax_amount: Decimal
    line_total: Decimal

    class Config:
        from_attributes = True

class BillOut(BaseModel):
    id: UUID
    bill_number: str
    status: str
    customer_id: Optional[str] = None

    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    global_discount: Decimal
    doctor_fees: Decimal
    other_charges: Decimal

    total: Decimal
    paid_amount: Decimal
    change_amount: Decimal
    balance_amount: Decimal
    payment_method: PaymentMethod

    doctor_name: Optional[str] = None
    billed_at: Optional[datetime] = None

    items: List[BillItemOut] = []

    class Config:
        from_attributes = True

class BillResponse(BaseModel):
    success: bool = True
    data: BillOut

class BillPage(BaseModel):
    success: bool = True
    data: List[BillOut]
    pagination: Pagination

class ProductSearchResponse(BaseModel):
    success: bool = True
    data: List[ProductOut]
