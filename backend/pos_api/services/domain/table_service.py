"""
Table State Machine Domain Service.

EMPTY -> OCCUPIED when a dine-in order is placed, OCCUPIED -> EMPTY when that
order is billed, completed or cancelled. BILLED is a stored status kept for
manual overrides; it counts as available for a new order.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from pos_api.models import Order, Table
from pos_api.services.events.outbox_service import write_table_outbox_event
from pos_shared.config.constants import (
    AVAILABLE_TABLE_STATUSES,
    OrderType,
    TERMINAL_ORDER_STATUSES,
    TableStatus,
)
from pos_shared.config.logging import get_logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.infrastructure.events import TABLE_STATUS_CHANGED
from pos_shared.utils.exceptions import TableNotFoundError
from pos_shared.utils.schemas import TableCreateRequest, TableUpdateRequest

logger = get_logger(__name__)


class TableService:
    """Service for table status transitions and table CRUD."""

    def __init__(self, db: Session):
        self._db = db

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, table_id: uuid.UUID, outlet_id: uuid.UUID | None = None, lock: bool = False) -> Table:
        """
        Raises:
            TableNotFoundError: unknown table, or not in the given outlet.
        """
        stmt = select(Table).where(Table.id == table_id)
        if lock:
            stmt = stmt.with_for_update()
        table = self._db.scalar(stmt)
        if table is None or (outlet_id is not None and table.outlet_id != outlet_id):
            raise TableNotFoundError(table_id, outlet_id=str(outlet_id) if outlet_id else None)
        return table

    def list_tables(self, outlet_id: uuid.UUID, status: str | None = None) -> list[Table]:
        stmt = select(Table).where(Table.outlet_id == outlet_id).order_by(Table.name)
        if status:
            stmt = stmt.where(Table.status == status)
        return list(self._db.scalars(stmt).all())

    def active_order(self, table_id: uuid.UUID, exclude_order_id: uuid.UUID | None = None) -> Order | None:
        """The non-terminal order currently holding the table, if any."""
        stmt = select(Order).where(
            Order.table_id == table_id,
            Order.status.not_in([s.value for s in TERMINAL_ORDER_STATUSES]),
        )
        if exclude_order_id is not None:
            stmt = stmt.where(Order.id != exclude_order_id)
        return self._db.scalar(stmt.limit(1))

    @staticmethod
    def is_available(table: Table) -> bool:
        return TableStatus(table.status) in AVAILABLE_TABLE_STATUSES

    # -------------------------------------------------------------------------
    # Transitions driven by orders (caller commits)
    # -------------------------------------------------------------------------

    def _set_status(
        self,
        table: Table,
        status: TableStatus,
        order_id: uuid.UUID | None,
        actor_user_id: uuid.UUID | str | None,
        actor_role: str | None,
    ) -> None:
        previous = table.status
        if previous == status.value:
            return
        table.status = status.value
        write_table_outbox_event(
            self._db, TABLE_STATUS_CHANGED, table,
            order_id=order_id, actor_user_id=actor_user_id, actor_role=actor_role,
        )
        logger.info(
            "Table status changed",
            table_id=str(table.id),
            from_status=previous,
            to_status=status.value,
            order_id=str(order_id) if order_id else None,
        )

    def occupy(
        self,
        table: Table,
        order_id: uuid.UUID | None = None,
        actor_user_id: uuid.UUID | str | None = None,
        actor_role: str | None = None,
    ) -> None:
        self._set_status(table, TableStatus.OCCUPIED, order_id, actor_user_id, actor_role)

    def release_for_order(
        self,
        order: Order,
        actor_user_id: uuid.UUID | str | None = None,
        actor_role: str | None = None,
        status: TableStatus = TableStatus.EMPTY,
    ) -> Table | None:
        """
        Move the table of a dine-in order out of OCCUPIED: EMPTY, or BILLED
        when the order was closed through /complete. No-op for takeaway.
        """
        if order.order_type != OrderType.DINE_IN.value or order.table_id is None:
            return None
        table = self._db.get(Table, order.table_id)
        if table is None:
            logger.warning("Order references a missing table", order_id=str(order.id), table_id=str(order.table_id))
            return None
        self._set_status(table, status, order.id, actor_user_id, actor_role)
        return table

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def create(self, outlet_id: uuid.UUID, data: TableCreateRequest) -> Table:
        table = Table(
            outlet_id=outlet_id,
            name=data.name.strip(),
            capacity=data.capacity if data.capacity is not None else 4,
            status=TableStatus(data.status).value,
        )
        self._db.add(table)
        safe_commit(self._db)
        self._db.refresh(table)
        logger.info("Table created", table_id=str(table.id), outlet_id=str(outlet_id), name=table.name)
        return table

    def update(
        self,
        table_id: uuid.UUID,
        data: TableUpdateRequest,
        outlet_id: uuid.UUID | None = None,
        actor_user_id: uuid.UUID | str | None = None,
        actor_role: str | None = None,
    ) -> Table:
        """Edit name/capacity or override the status by hand."""
        table = self.get(table_id, outlet_id, lock=True)

        if data.name is not None:
            table.name = data.name.strip()
        if data.capacity is not None:
            table.capacity = data.capacity
        if data.status is not None:
            self._set_status(table, TableStatus(data.status), None, actor_user_id, actor_role)

        safe_commit(self._db)
        self._db.refresh(table)
        return table
