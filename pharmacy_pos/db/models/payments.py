
import enum
from sqlalchemy import Column, DateTime, Enum, ForeignKey, Numeric, String, Uuid
from sqlalchemy.sql import func
import uuid

from pharmacy_pos.db.base import Base
from pharmacy_pos.domain.pricing.settlement import PaymentMethod


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CAPTURED = "CAPTURED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class Payment(Base):
    __tablename__ = "payments"

    """Represents the payment tendered against a bill.

    Stores the method used at the counter (cash, UPI or card), the amount
    tendered and whether the bill was fully covered (CAPTURED) or left with an
    outstanding balance (PENDING).
    """

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    bill_id = Column(Uuid, ForeignKey("bills.id"), unique=True)
    method = Column(Enum(PaymentMethod, name="payment_method_enum"), nullable=False, default=PaymentMethod.CASH)

    amount = Column(Numeric(18, 2), nullable=False)
    status = Column(Enum(PaymentStatus, name="payment_status_enum"), nullable=False, default=PaymentStatus.PENDING)

    tendered_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    captured_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
