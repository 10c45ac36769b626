from sqlalchemy import Column, DateTime, Enum, Index, Numeric, String, Text, UniqueConstraint, Uuid
from sqlalchemy.sql import func
import uuid

from pharmacy_pos.db.base import Base
from pharmacy_pos.domain.pricing.settlement import PaymentMethod


class Bill(Base):
    __tablename__ = "bills"

    """Represents a finalized counter sale (receipt header) for a store.

    A bill aggregates one or more bill items and its payment. It stores the
    cart totals (pre-discount subtotal, line discounts, tax), the bill-level
    adjustments (flat discount, doctor fees, other charges) and the settlement
    (grand total, amount paid, change and outstanding balance).
    """

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    store_id = Column(String, nullable=False)
    customer_id = Column(String, nullable=True, index=True)

    bill_number = Column(String, nullable=False)
    status = Column(String, nullable=False, default="COMPLETED")

    subtotal = Column(Numeric(18, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(18, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(18, 2), nullable=False, default=0)

    global_discount = Column(Numeric(18, 2), nullable=False, default=0)
    doctor_fees = Column(Numeric(18, 2), nullable=False, default=0)
    other_charges = Column(Numeric(18, 2), nullable=False, default=0)

    total = Column(Numeric(18, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(18, 2), nullable=False, default=0)
    change_amount = Column(Numeric(18, 2), nullable=False, default=0)
    balance_amount = Column(Numeric(18, 2), nullable=False, default=0)
    payment_method = Column(Enum(PaymentMethod, name="payment_method_enum"), nullable=False, default=PaymentMethod.CASH)

    doctor_name = Column(String, nullable=True)
    note = Column(Text, nullable=True)

    billed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("store_id", "bill_number", name="uq_bills_store_number"),
        Index("ix_bills_store_billed", "store_id", "billed_at"),
    )
