# pharmacy_pos/domain/inventory/schemas.py
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field
from uuid import UUID
from typing import List, Optional

class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    sku: str = Field(min_length=1)
    category: str = "MEDICINE"
    generic_name: Optional[str] = None
    barcode: Optional[str] = None
    manufacturer: Optional[str] = None
    description: Optional[str] = None

    cost_price: Decimal = Field(default=Decimal("0"), ge=0)
    selling_price: Decimal = Field(ge=0)
    mrp: Decimal = Field(ge=0)
    tax_percent: Decimal = Field(default=Decimal("0"), ge=0)

    quantity: int = Field(default=0, ge=0)
    min_stock_level: Optional[int] = Field(default=None, ge=0)
    reorder_level: Optional[int] = Field(default=None, ge=0)
    unit: str = "pcs"

    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    sku: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    generic_name: Optional[str] = None
    barcode: Optional[str] = None
    manufacturer: Optional[str] = None
    description: Optional[str] = None

    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    selling_price: Optional[Decimal] = Field(default=None, ge=0)
    mrp: Optional[Decimal] = Field(default=None, ge=0)
    tax_percent: Optional[Decimal] = Field(default=None, ge=0)

    quantity: Optional[int] = Field(default=None, ge=0)
    min_stock_level: Optional[int] = Field(default=None, ge=0)
    reorder_level: Optional[int] = Field(default=None, ge=0)
    unit: Optional[str] = None

    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None

class ProductOut(BaseModel):
    id: UUID
    name: str
    sku: str
    category: str
    generic_name: Optional[str] = None
    barcode: Optional[str] = None

    cost_price: Decimal
    selling_price: Decimal
    mrp: Decimal
    tax_percent: Decimal

    quantity: int
    min_stock_level: int
    reorder_level: int
    unit: str

    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    is_active: bool = True

    class Config:
        from_attributes = True

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

class ProductPage(BaseModel):
    data: List[ProductOut]
    pagination: Pagination

class ProductResponse(BaseModel):
    success: bool = True
    data: ProductOut
