"""
Inventory Models: InventoryRecord, InventoryLogEntry.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, Quantity, TimestampMixin, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from .catalog import Item


class InventoryRecord(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Materialized stock level of an item in an outlet.
    Only the inventory ledger writes stock; every change appends a log entry.
    """

    __tablename__ = "inventory"

    outlet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("outlet.id"), nullable=False, index=True
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("item.id"), nullable=False, index=True
    )
    stock: Mapped[Decimal] = mapped_column(Quantity, default=Decimal("0"), nullable=False)
    low_stock_threshold: Mapped[Decimal] = mapped_column(
        Quantity, default=Decimal("10"), nullable=False
    )

    item: Mapped["Item"] = relationship()

    __table_args__ = (
        UniqueConstraint("outlet_id", "item_id", name="uq_inventory_outlet_item"),
    )

    @property
    def low_stock(self) -> bool:
        return self.stock <= self.low_stock_threshold

    @property
    def item_name(self) -> Optional[str]:
        return self.item.name if self.item is not None else None

    def __repr__(self) -> str:
        return f"<InventoryRecord(item_id={self.item_id}, stock={self.stock})>"


class InventoryLogEntry(UUIDPrimaryKeyMixin, Base):
    """
    Append-only ledger entry: signed stock delta with a reason.
    Never updated or deleted.
    """

    __tablename__ = "inventory_log"

    outlet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("outlet.id"), nullable=False, index=True
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("item.id"), nullable=False, index=True
    )
    change: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("app_user.id"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    item: Mapped["Item"] = relationship()

    __table_args__ = (
        Index("ix_inventory_log_outlet_created", "outlet_id", "created_at"),
    )

    @property
    def item_name(self) -> Optional[str]:
        return self.item.name if self.item is not None else None

    def __repr__(self) -> str:
        return f"<InventoryLogEntry(item_id={self.item_id}, change={self.change}, reason='{self.reason}')>"
