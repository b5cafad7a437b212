"""
Order Aggregate Domain Service.

Owns order creation, line edits and status changes. Totals are always
recomputed from the full current line set:

    subtotal = sum(line.price * line.quantity)
    tax      = subtotal * rate / 100  (half-up, 0.01)
    total    = subtotal + tax

Line prices are frozen when a line is created and never recomputed.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from pos_api.models import Item, Order, OrderLine, Outlet
from pos_api.services.domain.pricing import lines_subtotal, unit_price, validate_line
from pos_api.services.domain.table_service import TableService
from pos_api.services.domain.tax_service import TaxService
from pos_api.services.events.outbox_service import write_order_outbox_event
from pos_shared.config.constants import OrderStatus, OrderType, TableStatus
from pos_shared.config.logging import orders_logger as logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.infrastructure.events import (
    ORDER_CREATED,
    ORDER_STATUS_CHANGED,
    ORDER_UPDATED,
)
from pos_shared.utils.exceptions import (
    ConflictError,
    InvalidStateError,
    ItemNotFoundError,
    NotFoundError,
    OrderNotFoundError,
    ValidationError,
)
from pos_shared.utils.schemas import (
    CreateOrderRequest,
    OrderLineInput,
    UpdateOrderItemsRequest,
)

CANCELLATION_REASON_REQUIRED = "Cancellation reason is required when cancelling an order"
TERMINAL_ORDER_EDIT = "Cannot edit completed or cancelled orders"


class OrderService:
    """
    Domain service for the order aggregate.
    """

    def __init__(self, db: Session, tax_service: TaxService | None = None):
        self._db = db
        self._tax = tax_service or TaxService(db)
        self._tables = TableService(db)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, order_id: uuid.UUID, outlet_id: uuid.UUID | None = None) -> Order:
        """
        Raises:
            OrderNotFoundError: unknown order, or outside the given outlet.
        """
        order = self._db.scalar(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items).selectinload(OrderLine.item), selectinload(Order.table))
        )
        if order is None or (outlet_id is not None and order.outlet_id != outlet_id):
            raise OrderNotFoundError(order_id)
        return order

    def list_orders(
        self,
        outlet_id: uuid.UUID | None = None,
        statuses: list[str] | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Order]:
        """Orders newest first, optionally filtered by outlet, status and creation date."""
        stmt = (
            select(Order)
            .options(selectinload(Order.items).selectinload(OrderLine.item), selectinload(Order.table))
            .order_by(Order.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        if outlet_id is not None:
            stmt = stmt.where(Order.outlet_id == outlet_id)
        if statuses:
            stmt = stmt.where(Order.status.in_(statuses))
        if start_date is not None:
            stmt = stmt.where(Order.created_at >= start_date)
        if end_date is not None:
            stmt = stmt.where(Order.created_at <= end_date)
        return list(self._db.scalars(stmt).all())

    def _lock(self, order_id: uuid.UUID, outlet_id: uuid.UUID | None) -> Order:
        order = self._db.scalar(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if order is None or (outlet_id is not None and order.outlet_id != outlet_id):
            raise OrderNotFoundError(order_id)
        return order

    # -------------------------------------------------------------------------
    # Line building
    # -------------------------------------------------------------------------

    def _load_items(self, outlet_id: uuid.UUID, lines: list[OrderLineInput]) -> dict[uuid.UUID, Item]:
        """
        Load the catalog items referenced by lines.

        Raises:
            ItemNotFoundError: an item is unknown or belongs to another outlet.
        """
        wanted = {line.item_id for line in lines}
        if not wanted:
            return {}
        items = {
            item.id: item
            for item in self._db.scalars(
                select(Item).where(Item.id.in_(wanted), Item.outlet_id == outlet_id)
            ).all()
        }
        for item_id in wanted:
            if item_id not in items:
                raise ItemNotFoundError(item_id, outlet_id=str(outlet_id))
        return items

    def _build_lines(self, outlet_id: uuid.UUID, lines: list[OrderLineInput]) -> list[OrderLine]:
        items = self._load_items(outlet_id, lines)
        built = []
        for line in lines:
            item = items[line.item_id]
            priced_as = validate_line(item, line.quantity_type)
            built.append(
                OrderLine(
                    item_id=item.id,
                    item=item,
                    quantity=line.quantity,
                    quantity_type=line.quantity_type,
                    price=unit_price(item, priced_as),
                    notes=line.notes,
                )
            )
        return built

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create(
        self,
        outlet_id: uuid.UUID,
        data: CreateOrderRequest,
        user_id: uuid.UUID | None = None,
        actor_role: str | None = None,
    ) -> Order:
        """
        Create an order in status NEW with computed totals.
        A dine-in order occupies its table.

        Raises:
            ValidationError: dine-in without table, order type disabled, bad portion.
            NotFoundError: unknown outlet, table or item.
            ConflictError: the table already has an active order.
        """
        if self._db.get(Outlet, outlet_id) is None:
            raise NotFoundError("Outlet", outlet_id)

        order_type = OrderType(data.order_type)
        outlet_settings = self._tax.get_settings(outlet_id)
        if outlet_settings is not None:
            if order_type == OrderType.DINE_IN and not outlet_settings.allow_dine_in:
                raise ValidationError("Dine-in orders are disabled for this outlet", outlet_id=str(outlet_id))
            if order_type == OrderType.TAKEAWAY and not outlet_settings.allow_takeaway:
                raise ValidationError("Takeaway orders are disabled for this outlet", outlet_id=str(outlet_id))

        table = None
        if order_type == OrderType.DINE_IN:
            if data.table_id is None:
                raise ValidationError("Table ID is required for dine-in orders")
            table = self._tables.get(data.table_id, outlet_id, lock=True)
            active = self._tables.active_order(table.id)
            if active is not None:
                raise ConflictError(
                    f"Table {table.name} already has an active order",
                    table_id=str(table.id),
                    active_order_id=str(active.id),
                )
            if not self._tables.is_available(table):
                logger.warning(
                    "Table marked occupied without an active order, taking it over",
                    table_id=str(table.id),
                    status=table.status,
                )

        lines = self._build_lines(outlet_id, data.items)
        rate = self._tax.resolve_tax_rate(outlet_id)

        order = Order(
            outlet_id=outlet_id,
            table_id=table.id if table is not None else None,
            user_id=user_id,
            status=OrderStatus.NEW.value,
            order_type=order_type.value,
            items=lines,
        )
        self._tax.apply_totals(order, lines_subtotal(lines), rate)
        self._db.add(order)

        try:
            # flush issues the INSERT checked by uq_orders_active_table
            self._db.flush()
            if table is not None:
                self._tables.occupy(table, order.id, user_id, actor_role)
            write_order_outbox_event(self._db, ORDER_CREATED, order, user_id, actor_role)
            safe_commit(self._db)
        except IntegrityError:
            self._db.rollback()
            # Another request took the table between our check and the insert
            raise ConflictError("Table already has an active order", table_id=str(data.table_id))

        logger.info(
            "Order created",
            order_id=str(order.id),
            outlet_id=str(outlet_id),
            order_type=order.order_type,
            table_id=str(order.table_id) if order.table_id else None,
            lines=len(lines),
            subtotal=str(order.subtotal),
            tax=str(order.tax),
            total=str(order.total),
        )
        return self.get(order.id)

    def update_lines(
        self,
        order_id: uuid.UUID,
        data: UpdateOrderItemsRequest,
        user_id: uuid.UUID | None = None,
        actor_role: str | None = None,
        outlet_id: uuid.UUID | None = None,
    ) -> Order:
        """
        Apply removals, then field updates (quantity/notes), then additions,
        and recompute totals from the full line set.

        Line ids that do not belong to the order are ignored.

        Raises:
            InvalidStateError: the order is COMPLETED or CANCELLED.
        """
        order = self._lock(order_id, outlet_id)
        if order.is_terminal:
            raise InvalidStateError("Order", order.status, detail=TERMINAL_ORDER_EDIT, order_id=str(order.id))

        to_remove = set(data.items_to_remove)
        for line in list(order.items):
            if line.id in to_remove:
                order.items.remove(line)

        by_id = {line.id: line for line in order.items}
        for change in data.items_to_update:
            line = by_id.get(change.order_item_id)
            if line is None:
                continue
            if change.quantity is not None:
                line.quantity = change.quantity
            if "notes" in change.model_fields_set:
                line.notes = change.notes

        if data.items_to_add:
            order.items.extend(self._build_lines(order.outlet_id, data.items_to_add))

        rate = self._tax.rate_for_order(order)
        self._tax.apply_totals(order, lines_subtotal(order.items), rate)

        write_order_outbox_event(self._db, ORDER_UPDATED, order, user_id, actor_role)
        safe_commit(self._db)

        logger.info(
            "Order lines updated",
            order_id=str(order.id),
            added=len(data.items_to_add),
            updated=len(data.items_to_update),
            removed=len(to_remove),
            subtotal=str(order.subtotal),
            total=str(order.total),
            tax_rate=str(rate),
        )
        return self.get(order.id)

    def update_status(
        self,
        order_id: uuid.UUID,
        status: str,
        cancellation_reason: str | None = None,
        user_id: uuid.UUID | None = None,
        actor_role: str | None = None,
        outlet_id: uuid.UUID | None = None,
    ) -> Order:
        """
        Move an order to a new status.

        COMPLETED runs the billing completion cascade (the table goes EMPTY,
        stock is deducted). CANCELLED needs a reason and frees the table.

        Raises:
            ValidationError: CANCELLED without a reason.
            InvalidStateError: the order is already terminal.
        """
        new_status = OrderStatus(status)
        if new_status == OrderStatus.CANCELLED and not (cancellation_reason and cancellation_reason.strip()):
            raise ValidationError(CANCELLATION_REASON_REQUIRED, order_id=str(order_id))

        if new_status == OrderStatus.COMPLETED:
            # Imported here: billing builds on the order aggregate's models and tax rules
            from pos_api.services.domain.billing_service import BillingService

            BillingService(self._db, tax_service=self._tax).complete_order(
                order_id, user_id=user_id, actor_role=actor_role, outlet_id=outlet_id,
                table_status=TableStatus.EMPTY,
            )
            return self.get(order_id)

        order = self._lock(order_id, outlet_id)
        if order.is_terminal:
            raise InvalidStateError(
                "Order", order.status,
                detail=f"Cannot change status of a {order.status.lower()} order",
                order_id=str(order.id),
            )

        previous = order.status
        order.status = new_status.value
        if new_status == OrderStatus.CANCELLED:
            order.cancellation_reason = cancellation_reason.strip()
            self._tables.release_for_order(order, user_id, actor_role)

        write_order_outbox_event(
            self._db, ORDER_STATUS_CHANGED, order, user_id, actor_role,
            extra_data={"previous_status": previous},
        )
        safe_commit(self._db)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            from_status=previous,
            to_status=order.status,
            cancellation_reason=order.cancellation_reason,
        )
        return self.get(order.id)
