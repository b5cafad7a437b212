"""
SQLAlchemy ORM Models Package.

- base: Base class, id and timestamp mixins, money column types
- outlet: Outlet, OutletSettings
- user: User
- catalog: Item
- table: Table
- order: Order, OrderLine
- inventory: InventoryRecord, InventoryLogEntry
- outbox: OutboxEvent
"""

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from .outlet import Outlet, OutletSettings
from .user import User
from .catalog import Item
from .table import Table
from .order import Order, OrderLine
from .inventory import InventoryRecord, InventoryLogEntry
from .outbox import OutboxEvent, OutboxStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Outlet",
    "OutletSettings",
    "User",
    "Item",
    "Table",
    "Order",
    "OrderLine",
    "InventoryRecord",
    "InventoryLogEntry",
    "OutboxEvent",
    "OutboxStatus",
]
