"""
Catalog Model: Item (menu entry).
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, Money, TimestampMixin, UUIDPrimaryKeyMixin


class Item(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Menu item of one outlet.

    pricing_mode decides which price column is used:
    - FIXED: price
    - QUANTITY_AUTO: base_price scaled by the portion multiplier
    - QUANTITY_MANUAL: quarter/half/three_quarter/full_price per portion
    """

    __tablename__ = "item"

    outlet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("outlet.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    pricing_mode: Mapped[str] = mapped_column(String(20), default="FIXED", nullable=False)
    price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    base_price: Mapped[Optional[Decimal]] = mapped_column(Money)
    quarter_price: Mapped[Optional[Decimal]] = mapped_column(Money)
    half_price: Mapped[Optional[Decimal]] = mapped_column(Money)
    three_quarter_price: Mapped[Optional[Decimal]] = mapped_column(Money)
    full_price: Mapped[Optional[Decimal]] = mapped_column(Money)

    requires_quantity: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # List of QuantityType values; empty or NULL means every portion is allowed
    available_quantity_types: Mapped[Optional[list[str]]] = mapped_column(JSON)

    __table_args__ = (
        CheckConstraint("price >= 0", name="chk_item_price_non_negative"),
        Index("ix_item_outlet_category", "outlet_id", "category"),
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, name='{self.name}', pricing_mode='{self.pricing_mode}')>"
