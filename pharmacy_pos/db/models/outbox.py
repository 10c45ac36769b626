# pharmacy_pos/db/models/outbox.py
from sqlalchemy import JSON, BigInteger, Column, DateTime, Index, Integer, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
import uuid

from pharmacy_pos.db.base import Base


class OutboxEvent(Base):
    __tablename__ = "outbox"

    """Outbox record representing a domain event for downstream consumers.

    Each row carries a durable, ordered event with an idempotent event_id,
    typed metadata and a JSON payload, ordered by id within a store. Bill
    creation writes a "SaleRecorded" row in the same database transaction as
    the bill itself, and bill import confirmation writes an "InventoryImported"
    row. Consumers read the table by id; delivery tracking is theirs to keep.
    """

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    event_id = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4, index=True)
    event_type = Column(String, nullable=False) # "SaleRecorded"
    aggregate_type = Column(String, nullable=False) # "Bill"
    aggregate_id = Column(String, nullable=False)

    store_id = Column(String, nullable=False)

    payload = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)

    occurred_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_outbox_store_id", "store_id", "id"),
    )
