from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.sql import func
import uuid

from pharmacy_pos.db.base import Base


class BillItem(Base):
    __tablename__ = "bill_items"

    """Represents a single product line within a bill.

    A bill item captures the product, SKU and batch, the unit price charged,
    quantity, line discount and tax, and the cost price at the time of sale so
    that reporting and auditing do not depend on the mutable catalog state.
    """

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    bill_id = Column(Uuid, ForeignKey("bills.id"), nullable=False)
    line_number = Column(Integer, nullable=False)

    product_id = Column(Uuid, ForeignKey("products.id"), nullable=True, index=True)
    product_name = Column(String, nullable=False)
    product_sku = Column(String, nullable=True)
    batch_number = Column(String, nullable=True)
    expiry_date = Column(Date, nullable=True)

    unit_price = Column(Numeric(18, 2), nullable=False)
    cost_price = Column(Numeric(18, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(18, 2), nullable=False, default=0)
    tax_percent = Column(Numeric(5, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(18, 2), nullable=False, default=0)
    line_total = Column(Numeric(18, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_bill_items_bill_line", "bill_id", "line_number", unique=True),
    )
