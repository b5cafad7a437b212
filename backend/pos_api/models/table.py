"""
Table Model.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pos_shared.config.constants import TableStatus

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from .outlet import Outlet


class Table(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A physical table in an outlet.
    Status: EMPTY -> OCCUPIED (dine-in order placed) -> EMPTY (billed or cancelled).
    BILLED is kept as a stored status for manual overrides and older rows.
    """

    __tablename__ = "restaurant_table"

    outlet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("outlet.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=TableStatus.EMPTY.value, nullable=False)
    capacity: Mapped[Optional[int]] = mapped_column(Integer, default=4)

    outlet: Mapped["Outlet"] = relationship(back_populates="tables")

    __table_args__ = (
        Index("ix_table_outlet_status", "outlet_id", "status"),
    )

    @property
    def display_status(self) -> str:
        """BILLED reads as EMPTY on the floor view."""
        if self.status == TableStatus.BILLED.value:
            return TableStatus.EMPTY.value
        return self.status

    def __repr__(self) -> str:
        return f"<Table(id={self.id}, name='{self.name}', status='{self.status}')>"
