"""
Inventory Ledger Domain Service.

Every stock change goes through apply_change(): the materialized stock on
InventoryRecord is updated and exactly one InventoryLogEntry is appended in
the same transaction, so the ledger and the running total never drift.
"""

import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from pos_api.models import InventoryLogEntry, InventoryRecord, Item, Order
from pos_api.services.events.outbox_service import write_inventory_outbox_event
from pos_shared.config.constants import (
    REASON_INITIAL_STOCK,
    REASON_MANUAL_ADJUSTMENT,
    order_completed_reason,
)
from pos_shared.config.logging import inventory_logger as logger
from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import safe_commit
from pos_shared.infrastructure.events import INVENTORY_UPDATED, LOW_STOCK
from pos_shared.utils.exceptions import ItemNotFoundError

ZERO = Decimal("0")


class InventoryService:
    """
    Domain service for stock levels and the inventory ledger.
    """

    def __init__(self, db: Session):
        self._db = db

    def get_record(self, outlet_id: uuid.UUID, item_id: uuid.UUID, lock: bool = False) -> InventoryRecord | None:
        stmt = select(InventoryRecord).where(
            InventoryRecord.outlet_id == outlet_id,
            InventoryRecord.item_id == item_id,
        )
        if lock:
            stmt = stmt.with_for_update()
        return self._db.scalar(stmt)

    def apply_change(
        self,
        outlet_id: uuid.UUID,
        item_id: uuid.UUID,
        change: Decimal | int,
        reason: str,
        user_id: uuid.UUID | None = None,
        floor_at_zero: bool = True,
        actor_role: str | None = None,
    ) -> InventoryRecord | None:
        """
        Apply a signed stock delta and append its ledger entry.

        The log keeps the requested delta even when the stock is clamped at
        zero. Does not commit; the caller owns the transaction.

        Returns:
            The updated record, or None when the item has no inventory record.
        """
        record = self.get_record(outlet_id, item_id, lock=True)
        if record is None:
            logger.debug("No inventory record, skipping stock change", outlet_id=str(outlet_id), item_id=str(item_id))
            return None

        change = Decimal(change)
        new_stock = Decimal(record.stock) + change
        if floor_at_zero and new_stock < ZERO:
            logger.warning(
                "Stock would go negative, clamping to zero",
                item_id=str(item_id),
                stock=str(record.stock),
                change=str(change),
            )
            new_stock = ZERO
        record.stock = new_stock

        self._db.add(
            InventoryLogEntry(
                outlet_id=outlet_id,
                item_id=item_id,
                change=change,
                reason=reason,
                created_by=user_id,
            )
        )

        write_inventory_outbox_event(
            self._db, INVENTORY_UPDATED, record, change, reason,
            actor_user_id=user_id, actor_role=actor_role,
        )
        if record.low_stock:
            write_inventory_outbox_event(
                self._db, LOW_STOCK, record, change, reason,
                actor_user_id=user_id, actor_role=actor_role,
            )

        logger.info(
            "Stock changed",
            outlet_id=str(outlet_id),
            item_id=str(item_id),
            change=str(change),
            stock=str(new_stock),
            reason=reason,
        )
        return record

    def deduct_for_order(
        self,
        order: Order,
        user_id: uuid.UUID | None = None,
        actor_role: str | None = None,
    ) -> list[InventoryRecord]:
        """
        Deduct each line's quantity for a completed order.
        Lines whose item has no inventory record are skipped.
        """
        reason = order_completed_reason(order.id)
        updated = []
        for line in order.items:
            record = self.apply_change(
                order.outlet_id,
                line.item_id,
                -line.quantity,
                reason,
                user_id=user_id,
                floor_at_zero=True,
                actor_role=actor_role,
            )
            if record is not None:
                updated.append(record)
        return updated

    def set_stock(
        self,
        outlet_id: uuid.UUID,
        item_id: uuid.UUID,
        stock: Decimal,
        low_stock_threshold: Decimal | None = None,
        user_id: uuid.UUID | None = None,
        actor_role: str | None = None,
    ) -> InventoryRecord:
        """
        Manual stock adjustment, recorded in the ledger.

        Existing record: logs new - old as "Manual adjustment".
        New record: created with the default threshold, logs the full
        stock as "Initial stock".

        Raises:
            ItemNotFoundError: item unknown in this outlet.
        """
        item = self._db.get(Item, item_id)
        if item is None or item.outlet_id != outlet_id:
            raise ItemNotFoundError(item_id, outlet_id=str(outlet_id))

        stock = Decimal(stock)
        record = self.get_record(outlet_id, item_id, lock=True)

        if record is None:
            record = InventoryRecord(
                outlet_id=outlet_id,
                item_id=item_id,
                stock=ZERO,
                low_stock_threshold=(
                    low_stock_threshold
                    if low_stock_threshold is not None
                    else Decimal(str(settings.default_low_stock_threshold))
                ),
            )
            self._db.add(record)
            self._db.flush()
            change, reason = stock, REASON_INITIAL_STOCK
        else:
            if low_stock_threshold is not None:
                record.low_stock_threshold = low_stock_threshold
            change, reason = stock - Decimal(record.stock), REASON_MANUAL_ADJUSTMENT

        if change != ZERO or reason == REASON_INITIAL_STOCK:
            self.apply_change(
                outlet_id, item_id, change, reason,
                user_id=user_id, floor_at_zero=False, actor_role=actor_role,
            )

        safe_commit(self._db)
        self._db.refresh(record)
        return record

    def list_records(self, outlet_id: uuid.UUID) -> list[InventoryRecord]:
        return list(
            self._db.scalars(
                select(InventoryRecord)
                .join(Item, InventoryRecord.item_id == Item.id)
                .where(InventoryRecord.outlet_id == outlet_id)
                .options(selectinload(InventoryRecord.item))
                .order_by(Item.name)
            ).all()
        )

    def low_stock_alerts(self, outlet_id: uuid.UUID) -> list[InventoryRecord]:
        """Records at or below their threshold, lowest stock first."""
        return list(
            self._db.scalars(
                select(InventoryRecord)
                .where(
                    InventoryRecord.outlet_id == outlet_id,
                    InventoryRecord.stock <= InventoryRecord.low_stock_threshold,
                )
                .options(selectinload(InventoryRecord.item))
                .order_by(InventoryRecord.stock.asc())
            ).all()
        )

    def logs(
        self,
        outlet_id: uuid.UUID,
        item_id: uuid.UUID | None = None,
        limit: int = 100,
    ) -> list[InventoryLogEntry]:
        stmt = (
            select(InventoryLogEntry)
            .where(InventoryLogEntry.outlet_id == outlet_id)
            .options(selectinload(InventoryLogEntry.item))
            .order_by(InventoryLogEntry.created_at.desc())
            .limit(limit)
        )
        if item_id is not None:
            stmt = stmt.where(InventoryLogEntry.item_id == item_id)
        return list(self._db.scalars(stmt).all())
