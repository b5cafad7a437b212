"""
User Model.
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Staff account.

    role is one of admin, cashier, staff. outlet_id is the home outlet;
    current_outlet_id, when set, is the outlet the user switched to and
    becomes the effective outlet for every request.
    """

    __tablename__ = "app_user"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="staff")
    outlet_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("outlet.id"), index=True)
    current_outlet_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("outlet.id"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def effective_outlet_id(self) -> Optional[uuid.UUID]:
        return self.current_outlet_id or self.outlet_id

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
