"""
Outbox model for transactional event publishing.

Events are written in the same transaction as the business change and
published to Redis by a background processor after commit, so a Redis
outage never fails or half-applies an order, bill or stock change.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SQLEnum, Index, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDPrimaryKeyMixin, utcnow


class OutboxStatus(str, Enum):
    """Status of an outbox event."""
    PENDING = "PENDING"        # Ready to be processed
    PROCESSING = "PROCESSING"  # Claimed by a processor
    PUBLISHED = "PUBLISHED"    # Successfully published
    FAILED = "FAILED"          # Failed after max retries


class OutboxEvent(UUIDPrimaryKeyMixin, Base):
    """
    Outbox event for guaranteed delivery.

    Written by:
    - Orders: ORDER_CREATED, ORDER_UPDATED, ORDER_STATUS_CHANGED
    - Billing: BILL_GENERATED
    - Tables: TABLE_STATUS_CHANGED
    - Inventory: INVENTORY_UPDATED, LOW_STOCK
    """

    __tablename__ = "outbox_event"

    outlet_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    aggregate_type: Mapped[str] = mapped_column(String(50), nullable=False)  # "order", "table", "inventory"
    aggregate_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    # JSON serialized payload
    payload: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[OutboxStatus] = mapped_column(
        SQLEnum(OutboxStatus, name="outbox_status"),
        default=OutboxStatus.PENDING,
        nullable=False,
        index=True,
    )

    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_outbox_event_status_created", "status", "created_at"),
        Index("ix_outbox_event_outlet_status", "outlet_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<OutboxEvent(id={self.id}, type={self.event_type}, status={self.status.value})>"
