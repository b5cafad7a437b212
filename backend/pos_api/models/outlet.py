"""
Outlet Models: Outlet, OutletSettings.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from .table import Table


class Outlet(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    One physical restaurant location, the tenancy boundary for all data.
    """

    __tablename__ = "outlet"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    settings: Mapped[Optional["OutletSettings"]] = relationship(
        back_populates="outlet", uselist=False
    )
    tables: Mapped[list["Table"]] = relationship(back_populates="outlet")


class OutletSettings(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Per-outlet tax and receipt configuration.

    gst_percentage is nullable: NULL means "not configured" and resolves to
    the default rate, while an explicit 0 means a zero rate.
    """

    __tablename__ = "outlet_settings"

    outlet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("outlet.id"), nullable=False, unique=True, index=True
    )

    # Tax
    gst_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    gst_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    cgst_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("9"), nullable=False)
    sgst_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("9"), nullable=False)

    # Business details printed on receipts
    business_name: Mapped[Optional[str]] = mapped_column(String(200))
    gstin: Mapped[Optional[str]] = mapped_column(String(15))
    address_line1: Mapped[Optional[str]] = mapped_column(String(255))
    address_line2: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    state: Mapped[Optional[str]] = mapped_column(String(100))
    pincode: Mapped[Optional[str]] = mapped_column(String(10))
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    email: Mapped[Optional[str]] = mapped_column(String(255))

    # Receipt
    receipt_header: Mapped[Optional[str]] = mapped_column(Text)
    receipt_footer: Mapped[Optional[str]] = mapped_column(Text)
    show_gstin_on_bill: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_address_on_bill: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Ordering
    default_order_type: Mapped[str] = mapped_column(String(20), default="DINE_IN", nullable=False)
    allow_takeaway: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allow_dine_in: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Currency
    currency_symbol: Mapped[str] = mapped_column(String(5), default="₹", nullable=False)
    currency_code: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)

    outlet: Mapped["Outlet"] = relationship(back_populates="settings")

    def __repr__(self) -> str:
        return (
            f"<OutletSettings(outlet_id={self.outlet_id}, gst_enabled={self.gst_enabled}, "
            f"gst_percentage={self.gst_percentage})>"
        )
