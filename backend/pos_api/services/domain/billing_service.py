"""
Billing Transaction Domain Service.

Finalizes an order in one database transaction:

1. lock the order row and guard against double billing
2. recompute subtotal/tax/total, set payment method, COMPLETED and billed_at
   (conditional UPDATE ... WHERE status <> 'COMPLETED')
3. release the table of a dine-in order (EMPTY, or BILLED for /complete)
4. deduct every line from the inventory ledger (floored at 0)
5. queue outbox events

Any failure rolls the whole transaction back.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from pos_api.models import Order, OrderLine
from pos_api.models.base import utcnow
from pos_api.services.domain.inventory_service import InventoryService
from pos_api.services.domain.pricing import lines_subtotal
from pos_api.services.domain.table_service import TableService
from pos_api.services.domain.tax_service import TaxService, compute_totals, split_tax
from pos_api.services.events.outbox_service import write_order_outbox_event
from pos_shared.config.constants import QUANTITY_LABELS, OrderStatus, PaymentMethod, QuantityType, TableStatus
from pos_shared.config.logging import billing_logger as logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.infrastructure.events import BILL_GENERATED, ORDER_STATUS_CHANGED
from pos_shared.utils.exceptions import InvalidStateError, OrderNotFoundError
from pos_shared.utils.schemas import BillHeaderOutput, BillLineOutput, BillOutput

ORDER_ALREADY_COMPLETED = "Order is already completed"


class BillingService:
    """
    Billing and order completion.
    """

    def __init__(self, db: Session, tax_service: TaxService | None = None):
        self._db = db
        self._tax = tax_service or TaxService(db)
        self._tables = TableService(db)
        self._inventory = InventoryService(db)

    def _load(self, order_id: uuid.UUID, outlet_id: uuid.UUID | None = None) -> Order:
        order = self._db.scalar(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items).selectinload(OrderLine.item), selectinload(Order.table))
        )
        if order is None or (outlet_id is not None and order.outlet_id != outlet_id):
            raise OrderNotFoundError(order_id)
        return order

    def _finalize(
        self,
        order_id: uuid.UUID,
        payment_method: str | None,
        user_id: uuid.UUID | None,
        actor_role: str | None,
        idempotency_key: str | None,
        outlet_id: uuid.UUID | None,
        event_type: str,
        table_status: TableStatus = TableStatus.EMPTY,
    ) -> tuple[Order, bool]:
        """
        Run the completion cascade.

        Returns:
            (order, replayed) where replayed is True when an earlier bill with
            the same idempotency key is returned unchanged.
        """
        order = self._db.scalar(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if order is None or (outlet_id is not None and order.outlet_id != outlet_id):
            raise OrderNotFoundError(order_id)

        if order.status == OrderStatus.COMPLETED.value:
            if idempotency_key and order.bill_idempotency_key == idempotency_key:
                logger.info(
                    "Bill request replayed, returning existing bill",
                    order_id=str(order.id),
                    idempotency_key=idempotency_key,
                )
                return order, True
            raise InvalidStateError("Order", order.status, detail=ORDER_ALREADY_COMPLETED, order_id=str(order.id))

        if order.status == OrderStatus.CANCELLED.value:
            raise InvalidStateError(
                "Order", order.status,
                detail="Cannot bill a cancelled order",
                order_id=str(order.id),
            )

        previous_status = order.status
        rate = self._tax.rate_for_order(order)
        subtotal = lines_subtotal(order.items)
        tax, total = compute_totals(subtotal, rate)
        billed_at = utcnow()

        values = {
            "status": OrderStatus.COMPLETED.value,
            "subtotal": subtotal,
            "tax": tax,
            "total": total,
            "tax_rate": rate,
            "billed_at": billed_at,
            "bill_idempotency_key": idempotency_key,
        }
        if payment_method is not None:
            values["payment_method"] = PaymentMethod(payment_method).value

        # Single writer: a concurrent biller that got past the lock sees zero rows
        result = self._db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status != OrderStatus.COMPLETED.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self._db.rollback()
            raise InvalidStateError("Order", OrderStatus.COMPLETED.value, detail=ORDER_ALREADY_COMPLETED, order_id=str(order_id))

        self._db.refresh(order)

        self._tables.release_for_order(order, user_id, actor_role, status=table_status)
        deducted = self._inventory.deduct_for_order(order, user_id, actor_role)

        extra = {"payment_method": order.payment_method, "tax_rate": str(rate)}
        if event_type == ORDER_STATUS_CHANGED:
            extra["previous_status"] = previous_status
        write_order_outbox_event(self._db, event_type, order, user_id, actor_role, extra_data=extra)

        safe_commit(self._db)

        logger.info(
            "Order completed",
            order_id=str(order.id),
            outlet_id=str(order.outlet_id),
            payment_method=order.payment_method,
            subtotal=str(order.subtotal),
            tax=str(order.tax),
            total=str(order.total),
            tax_rate=str(rate),
            inventory_records=len(deducted),
        )
        return order, False

    def generate_bill(
        self,
        order_id: uuid.UUID,
        payment_method: str,
        user_id: uuid.UUID | None = None,
        actor_role: str | None = None,
        idempotency_key: str | None = None,
        outlet_id: uuid.UUID | None = None,
    ) -> BillOutput:
        """
        Bill and complete an order.

        Raises:
            OrderNotFoundError: unknown order.
            InvalidStateError: order already COMPLETED (different or no
                idempotency key) or CANCELLED.
        """
        order, _ = self._finalize(
            order_id, payment_method, user_id, actor_role, idempotency_key, outlet_id, BILL_GENERATED,
        )
        return self.build_bill(self._load(order.id))

    def complete_order(
        self,
        order_id: uuid.UUID,
        user_id: uuid.UUID | None = None,
        actor_role: str | None = None,
        outlet_id: uuid.UUID | None = None,
        table_status: TableStatus = TableStatus.BILLED,
    ) -> Order:
        """
        Completion cascade without a payment method. POST /complete leaves
        the table BILLED; a plain status change to COMPLETED frees it.
        """
        order, _ = self._finalize(
            order_id, None, user_id, actor_role, None, outlet_id, ORDER_STATUS_CHANGED,
            table_status=table_status,
        )
        return self._load(order.id)

    def get_bill(self, order_id: uuid.UUID, outlet_id: uuid.UUID | None = None) -> BillOutput:
        return self.build_bill(self._load(order_id, outlet_id))

    def reprint_bill(self, order_id: uuid.UUID, outlet_id: uuid.UUID | None = None) -> BillOutput:
        order = self._load(order_id, outlet_id)
        if order.status != OrderStatus.COMPLETED.value:
            raise InvalidStateError(
                "Order", order.status,
                detail="Only completed orders can be reprinted",
                order_id=str(order.id),
            )
        logger.info("Bill reprinted", order_id=str(order.id))
        return self.build_bill(order)

    def build_bill(self, order: Order) -> BillOutput:
        """Bill view of an order with the receipt header from outlet settings."""
        outlet_settings = self._tax.get_settings(order.outlet_id)

        if outlet_settings is not None:
            cgst, sgst = split_tax(order.tax, outlet_settings.cgst_percentage, outlet_settings.sgst_percentage)
            address = None
            if outlet_settings.show_address_on_bill:
                parts = [
                    outlet_settings.address_line1,
                    outlet_settings.address_line2,
                    outlet_settings.city,
                    outlet_settings.state,
                    outlet_settings.pincode,
                ]
                address = ", ".join(p for p in parts if p) or None
            header = BillHeaderOutput(
                business_name=outlet_settings.business_name,
                gstin=outlet_settings.gstin if outlet_settings.show_gstin_on_bill else None,
                address=address,
                phone=outlet_settings.phone,
                receipt_header=outlet_settings.receipt_header,
                receipt_footer=outlet_settings.receipt_footer,
                currency_symbol=outlet_settings.currency_symbol,
                currency_code=outlet_settings.currency_code,
            )
        else:
            cgst, sgst = split_tax(order.tax, None, None)
            header = BillHeaderOutput()

        lines = [
            BillLineOutput(
                name=line.item_name or "Unknown item",
                quantity=line.quantity,
                quantity_type=line.quantity_type,
                quantity_label=QUANTITY_LABELS[QuantityType(line.quantity_type)] if line.quantity_type else None,
                unit_price=line.price,
                line_total=line.line_total,
                notes=line.notes,
            )
            for line in order.items
        ]

        return BillOutput(
            order_id=order.id,
            outlet_id=order.outlet_id,
            order_type=order.order_type,
            status=order.status,
            table_name=order.table_name,
            subtotal=order.subtotal,
            tax_rate=order.tax_rate,
            tax=order.tax,
            cgst=cgst,
            sgst=sgst,
            total=order.total,
            payment_method=order.payment_method,
            items=lines,
            header=header,
            created_at=order.created_at,
            billed_at=order.billed_at,
        )
