"""
Outbox service for transactional event publishing.

Usage in domain services:
    1. Perform business logic (create order, generate bill, ...)
    2. Call write_outbox_event() with the same db session
    3. Commit the transaction (business data and event are atomic)

Example:
    order = Order(...)
    db.add(order)
    db.flush()
    write_order_outbox_event(db, ORDER_CREATED, order, actor_user_id=user_id)
    safe_commit(db)
"""

import json
import uuid
from typing import Any

from sqlalchemy.orm import Session

from pos_api.models import InventoryRecord, Order, OutboxEvent, OutboxStatus, Table
from pos_shared.config.logging import get_logger

logger = get_logger(__name__)


def write_outbox_event(
    db: Session,
    outlet_id: uuid.UUID,
    event_type: str,
    aggregate_type: str,
    aggregate_id: uuid.UUID,
    payload: dict[str, Any],
) -> OutboxEvent:
    """
    Write an event to the outbox table.

    MUST be called within the same transaction as the business operation.
    The caller controls flush/commit.

    Args:
        db: SQLAlchemy session (same session as business operation)
        outlet_id: Outlet the event belongs to
        event_type: Event type constant (e.g. ORDER_CREATED, BILL_GENERATED)
        aggregate_type: "order", "table" or "inventory"
        aggregate_id: ID of the aggregate
        payload: Event payload as dict (JSON serialized, UUIDs/Decimals as strings)
    """
    outbox_event = OutboxEvent(
        outlet_id=outlet_id,
        event_type=event_type,
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
        payload=json.dumps(payload, default=str),
        status=OutboxStatus.PENDING,
        retry_count=0,
    )
    db.add(outbox_event)
    logger.debug(
        "Outbox event queued",
        event_type=event_type,
        aggregate_type=aggregate_type,
        aggregate_id=str(aggregate_id),
    )
    return outbox_event


def _actor(actor_user_id: uuid.UUID | str | None, actor_role: str | None) -> dict[str, Any]:
    return {
        "user_id": str(actor_user_id) if actor_user_id else None,
        "role": actor_role or "SYSTEM",
    }


def write_order_outbox_event(
    db: Session,
    event_type: str,
    order: Order,
    actor_user_id: uuid.UUID | str | None = None,
    actor_role: str | None = None,
    extra_data: dict[str, Any] | None = None,
) -> OutboxEvent:
    """
    Write an order or bill event (ORDER_CREATED, ORDER_UPDATED,
    ORDER_STATUS_CHANGED, BILL_GENERATED).
    """
    entity = {
        "order_id": str(order.id),
        "status": order.status,
        "order_type": order.order_type,
        "subtotal": str(order.subtotal),
        "tax": str(order.tax),
        "total": str(order.total),
    }
    if extra_data:
        entity.update(extra_data)

    return write_outbox_event(
        db=db,
        outlet_id=order.outlet_id,
        event_type=event_type,
        aggregate_type="order",
        aggregate_id=order.id,
        payload={
            "order_id": str(order.id),
            "table_id": str(order.table_id) if order.table_id else None,
            "entity": entity,
            "actor": _actor(actor_user_id, actor_role),
        },
    )


def write_table_outbox_event(
    db: Session,
    event_type: str,
    table: Table,
    order_id: uuid.UUID | None = None,
    actor_user_id: uuid.UUID | str | None = None,
    actor_role: str | None = None,
) -> OutboxEvent:
    """Write a TABLE_STATUS_CHANGED event."""
    return write_outbox_event(
        db=db,
        outlet_id=table.outlet_id,
        event_type=event_type,
        aggregate_type="table",
        aggregate_id=table.id,
        payload={
            "table_id": str(table.id),
            "order_id": str(order_id) if order_id else None,
            "entity": {
                "table_id": str(table.id),
                "name": table.name,
                "status": table.status,
            },
            "actor": _actor(actor_user_id, actor_role),
        },
    )


def write_inventory_outbox_event(
    db: Session,
    event_type: str,
    record: InventoryRecord,
    change: Any,
    reason: str,
    actor_user_id: uuid.UUID | str | None = None,
    actor_role: str | None = None,
) -> OutboxEvent:
    """Write an INVENTORY_UPDATED or LOW_STOCK event."""
    return write_outbox_event(
        db=db,
        outlet_id=record.outlet_id,
        event_type=event_type,
        aggregate_type="inventory",
        aggregate_id=record.item_id,
        payload={
            "entity": {
                "item_id": str(record.item_id),
                "stock": str(record.stock),
                "low_stock_threshold": str(record.low_stock_threshold),
                "change": str(change),
                "reason": reason,
            },
            "actor": _actor(actor_user_id, actor_role),
        },
    )
