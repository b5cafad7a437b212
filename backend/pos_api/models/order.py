"""
Order Models: Order, OrderLine.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pos_shared.config.constants import OrderStatus

from .base import Base, Money, TimestampMixin, UnitPrice, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from .catalog import Item
    from .table import Table
    from .user import User

_ACTIVE_TABLE_ORDER = text(
    "table_id IS NOT NULL AND status NOT IN ('COMPLETED', 'CANCELLED')"
)


class Order(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A dine-in or takeaway order.

    subtotal/tax/total are persisted and recomputed on every line mutation
    and again at billing. tax_rate is the percentage used by the last
    computation.
    """

    __tablename__ = "orders"

    outlet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("outlet.id"), nullable=False, index=True
    )
    table_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("restaurant_table.id"), index=True
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("app_user.id"))
    status: Mapped[str] = mapped_column(
        String(20), default=OrderStatus.NEW.value, nullable=False, index=True
    )
    order_type: Mapped[str] = mapped_column(String(20), nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(10))

    subtotal: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    tax: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    total: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)

    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text)
    # Idempotency-Key of the billing request that completed this order
    bill_idempotency_key: Mapped[Optional[str]] = mapped_column(String(255))
    billed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    items: Mapped[list["OrderLine"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.created_at",
    )
    table: Mapped[Optional["Table"]] = relationship()
    user: Mapped[Optional["User"]] = relationship()

    __table_args__ = (
        Index("ix_orders_outlet_created", "outlet_id", "created_at"),
        # At most one non-terminal order per table
        Index(
            "uq_orders_active_table",
            "table_id",
            unique=True,
            postgresql_where=_ACTIVE_TABLE_ORDER,
            sqlite_where=_ACTIVE_TABLE_ORDER,
        ),
        CheckConstraint("subtotal >= 0", name="chk_orders_subtotal_non_negative"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in (OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value)

    @property
    def table_name(self) -> Optional[str]:
        return self.table.name if self.table is not None else None

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, status='{self.status}', total={self.total})>"


class OrderLine(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A line of an order.
    price is the effective unit price frozen when the line was created.
    """

    __tablename__ = "order_item"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id"), nullable=False, index=True
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("item.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_type: Mapped[Optional[str]] = mapped_column(String(20))
    price: Mapped[Decimal] = mapped_column(UnitPrice, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_item_quantity_positive"),
        CheckConstraint("price >= 0", name="chk_order_item_price_non_negative"),
    )

    order: Mapped["Order"] = relationship(back_populates="items")
    item: Mapped["Item"] = relationship()

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @property
    def item_name(self) -> Optional[str]:
        return self.item.name if self.item is not None else None

    def __repr__(self) -> str:
        return f"<OrderLine(id={self.id}, item_id={self.item_id}, qty={self.quantity}, price={self.price})>"
