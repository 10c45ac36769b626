# pharmacy_pos/db/models/products.py
from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, Numeric, String, Text, UniqueConstraint, Uuid
from sqlalchemy.sql import func
import uuid

from pharmacy_pos.db.base import Base


class Product(Base):
    __tablename__ = "products"

    """Represents one stocked batch of a sellable product in a store.

    A pharmacy keeps every supplier batch of the same medicine as its own row:
    same name, different batch number, expiry and purchase rate. The row holds
    pricing (cost, selling price, MRP and tax), the on-hand quantity and the
    reorder thresholds used by the low-stock listing.
    """

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    store_id = Column(String, nullable=False, index=True)

    sku = Column(String, nullable=False)
    barcode = Column(String, nullable=True, index=True)
    name = Column(String, nullable=False)
    generic_name = Column(String, nullable=True)
    category = Column(String, nullable=False, default="MEDICINE")
    manufacturer = Column(String, nullable=True)
    description = Column(Text, nullable=True)

    cost_price = Column(Numeric(18, 2), nullable=False, default=0)
    selling_price = Column(Numeric(18, 2), nullable=False)
    mrp = Column(Numeric(18, 2), nullable=False)
    tax_percent = Column(Numeric(5, 2), nullable=False, default=0)

    quantity = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=10)
    reorder_level = Column(Integer, nullable=False, default=10)
    unit = Column(String, nullable=False, default="pcs")

    batch_number = Column(String, nullable=True)
    expiry_date = Column(Date, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("store_id", "sku", name="uq_products_store_sku"),
        Index("ix_products_store_name", "store_id", "name"),
    )
