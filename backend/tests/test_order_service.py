"""
Tests for the order aggregate: creation, line edits and status changes.
"""

import json
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select

from pos_api.models import Item, Order, OutboxEvent, Table
from pos_api.services.domain import BillingService, OrderService
from pos_shared.infrastructure.events import ORDER_CREATED, ORDER_STATUS_CHANGED, ORDER_UPDATED
from pos_shared.utils.exceptions import (
    ConflictError,
    InvalidStateError,
    ItemNotFoundError,
    NotFoundError,
    ValidationError,
)
from pos_shared.utils.schemas import (
    CreateOrderRequest,
    OrderLineInput,
    OrderLineUpdate,
    UpdateOrderItemsRequest,
)


def dine_in_request(outlet, table, *lines):
    return CreateOrderRequest(
        outlet_id=outlet.id,
        table_id=table.id,
        order_type="DINE_IN",
        items=list(lines),
    )


def takeaway_request(outlet, *lines):
    return CreateOrderRequest(outlet_id=outlet.id, order_type="TAKEAWAY", items=list(lines))


@pytest.fixture
def half_and_full(seed_manual_item):
    return (
        OrderLineInput(item_id=seed_manual_item.id, quantity=1, quantity_type="HALF"),
        OrderLineInput(item_id=seed_manual_item.id, quantity=1, quantity_type="FULL"),
    )


class TestCreateOrder:
    def test_dine_in_totals_and_table_occupied(
        self, db_session, seed_outlet, seed_settings, seed_table, half_and_full
    ):
        order = OrderService(db_session).create(
            seed_outlet.id, dine_in_request(seed_outlet, seed_table, *half_and_full)
        )

        assert order.status == "NEW"
        assert order.subtotal == Decimal("430.00")
        assert order.tax == Decimal("77.40")
        assert order.total == Decimal("507.40")
        assert order.tax_rate == Decimal("18")
        assert sorted(line.price for line in order.items) == [Decimal("150"), Decimal("280")]

        db_session.refresh(seed_table)
        assert seed_table.status == "OCCUPIED"

    def test_two_halves_at_eighteen_percent(
        self, db_session, seed_outlet, seed_settings, seed_table, seed_manual_item
    ):
        line = OrderLineInput(item_id=seed_manual_item.id, quantity=2, quantity_type="HALF")

        order = OrderService(db_session).create(seed_outlet.id, dine_in_request(seed_outlet, seed_table, line))

        assert order.subtotal == Decimal("300.00")
        assert order.tax == Decimal("54.00")
        assert order.total == Decimal("354.00")

    def test_portion_line_keeps_exact_unit_price(self, db_session, seed_outlet, seed_settings):
        item = Item(
            outlet_id=seed_outlet.id,
            name="Paneer Tikka",
            pricing_mode="QUANTITY_AUTO",
            price=Decimal("99.99"),
            base_price=Decimal("99.99"),
        )
        db_session.add(item)
        db_session.commit()
        line = OrderLineInput(item_id=item.id, quantity=1, quantity_type="HALF")

        order = OrderService(db_session).create(seed_outlet.id, takeaway_request(seed_outlet, line))

        assert order.items[0].price == Decimal("49.995")
        assert order.subtotal == Decimal("50.00")
        assert order.tax == Decimal("9.00")
        assert order.total == Decimal("59.00")

    def test_takeaway_has_no_table(self, db_session, seed_outlet, seed_settings, seed_fixed_item):
        line = OrderLineInput(item_id=seed_fixed_item.id, quantity=2)

        order = OrderService(db_session).create(seed_outlet.id, takeaway_request(seed_outlet, line))

        assert order.order_type == "TAKEAWAY"
        assert order.table_id is None
        assert order.total == Decimal("283.20")

    def test_takeaway_ignores_table_id(self, db_session, seed_outlet, seed_settings, seed_table, seed_fixed_item):
        request = CreateOrderRequest(
            outlet_id=seed_outlet.id,
            table_id=seed_table.id,
            order_type="TAKEAWAY",
            items=[OrderLineInput(item_id=seed_fixed_item.id, quantity=1)],
        )

        order = OrderService(db_session).create(seed_outlet.id, request)

        assert order.table_id is None
        db_session.refresh(seed_table)
        assert seed_table.status == "EMPTY"

    def test_dine_in_without_table_is_rejected(self, db_session, seed_outlet, seed_fixed_item):
        # Skips the schema check so the service guard is exercised
        request = CreateOrderRequest.model_construct(
            outlet_id=seed_outlet.id,
            order_type="DINE_IN",
            items=[OrderLineInput(item_id=seed_fixed_item.id, quantity=1)],
        )

        with pytest.raises(ValidationError) as exc_info:
            OrderService(db_session).create(seed_outlet.id, request)

        assert exc_info.value.detail == "Table ID is required for dine-in orders"

    def test_one_active_order_per_table(self, db_session, seed_outlet, seed_table, seed_fixed_item):
        line = OrderLineInput(item_id=seed_fixed_item.id, quantity=1)
        service = OrderService(db_session)
        service.create(seed_outlet.id, dine_in_request(seed_outlet, seed_table, line))

        with pytest.raises(ConflictError) as exc_info:
            service.create(seed_outlet.id, dine_in_request(seed_outlet, seed_table, line))

        assert exc_info.value.status_code == 409
        assert db_session.scalar(select(Order).where(Order.table_id == seed_table.id)) is not None

    def test_active_table_index_violation_is_a_conflict(
        self, db_session, seed_outlet, seed_table, seed_fixed_item, monkeypatch
    ):
        line = OrderLineInput(item_id=seed_fixed_item.id, quantity=1)
        service = OrderService(db_session)
        first = service.create(seed_outlet.id, dine_in_request(seed_outlet, seed_table, line))
        first_id = first.id
        # A concurrent request that passed the active-order check
        monkeypatch.setattr(service._tables, "active_order", lambda table_id: None)

        with pytest.raises(ConflictError) as exc_info:
            service.create(seed_outlet.id, dine_in_request(seed_outlet, seed_table, line))

        assert exc_info.value.status_code == 409
        orders = db_session.scalars(select(Order).where(Order.table_id == seed_table.id)).all()
        assert [order.id for order in orders] == [first_id]

    def test_billed_table_takes_new_order(self, db_session, seed_outlet, seed_table, seed_fixed_item):
        seed_table.status = "BILLED"
        db_session.commit()

        order = OrderService(db_session).create(
            seed_outlet.id,
            dine_in_request(seed_outlet, seed_table, OrderLineInput(item_id=seed_fixed_item.id, quantity=1)),
        )

        assert order.table_id == seed_table.id
        db_session.refresh(seed_table)
        assert seed_table.status == "OCCUPIED"

    def test_unknown_outlet(self, db_session, seed_outlet, seed_fixed_item):
        other = uuid.uuid4()
        request = CreateOrderRequest(
            outlet_id=other,
            order_type="TAKEAWAY",
            items=[OrderLineInput(item_id=seed_fixed_item.id, quantity=1)],
        )

        with pytest.raises(NotFoundError):
            OrderService(db_session).create(other, request)

    def test_item_from_another_outlet_is_rejected(
        self, db_session, seed_outlet, seed_other_outlet, seed_fixed_item
    ):
        request = takeaway_request(seed_other_outlet, OrderLineInput(item_id=seed_fixed_item.id, quantity=1))

        with pytest.raises(ItemNotFoundError):
            OrderService(db_session).create(seed_other_outlet.id, request)

    def test_table_from_another_outlet_is_rejected(
        self, db_session, seed_other_outlet, seed_table, seed_fixed_item
    ):
        request = dine_in_request(
            seed_other_outlet, seed_table, OrderLineInput(item_id=seed_fixed_item.id, quantity=1)
        )

        with pytest.raises(NotFoundError):
            OrderService(db_session).create(seed_other_outlet.id, request)

    def test_required_portion_missing(self, db_session, seed_outlet, seed_auto_item):
        request = takeaway_request(seed_outlet, OrderLineInput(item_id=seed_auto_item.id, quantity=1))

        with pytest.raises(ValidationError):
            OrderService(db_session).create(seed_outlet.id, request)

        assert db_session.scalar(select(Order)) is None

    def test_disabled_order_type(self, db_session, seed_outlet, seed_settings, seed_fixed_item):
        seed_settings.allow_takeaway = False
        db_session.commit()

        request = takeaway_request(seed_outlet, OrderLineInput(item_id=seed_fixed_item.id, quantity=1))

        with pytest.raises(ValidationError) as exc_info:
            OrderService(db_session).create(seed_outlet.id, request)

        assert "Takeaway" in exc_info.value.detail

    def test_without_settings_uses_default_rate(self, db_session, seed_outlet, seed_fixed_item):
        request = takeaway_request(seed_outlet, OrderLineInput(item_id=seed_fixed_item.id, quantity=1))

        order = OrderService(db_session).create(seed_outlet.id, request)

        assert order.tax == Decimal("21.60")
        assert order.total == Decimal("141.60")

    def test_writes_outbox_event(self, db_session, seed_outlet, seed_fixed_item):
        request = takeaway_request(seed_outlet, OrderLineInput(item_id=seed_fixed_item.id, quantity=1))

        order = OrderService(db_session).create(seed_outlet.id, request, actor_role="staff")

        event = db_session.scalar(select(OutboxEvent).where(OutboxEvent.event_type == ORDER_CREATED))
        assert event is not None
        assert event.aggregate_id == order.id
        payload = json.loads(event.payload)
        assert payload["order_id"] == str(order.id)


class TestPriceFreezing:
    def test_catalog_change_does_not_touch_existing_lines(
        self, db_session, seed_outlet, seed_settings, seed_manual_item
    ):
        service = OrderService(db_session)
        order = service.create(
            seed_outlet.id,
            takeaway_request(
                seed_outlet, OrderLineInput(item_id=seed_manual_item.id, quantity=1, quantity_type="HALF")
            ),
        )

        seed_manual_item.half_price = Decimal("175")
        db_session.commit()

        service.update_lines(
            order.id,
            UpdateOrderItemsRequest(
                items_to_add=[OrderLineInput(item_id=seed_manual_item.id, quantity=1, quantity_type="HALF")]
            ),
        )
        order = service.get(order.id)

        assert sorted(line.price for line in order.items) == [Decimal("150"), Decimal("175")]
        assert order.subtotal == Decimal("325.00")


class TestUpdateLines:
    @pytest.fixture
    def order(self, db_session, seed_outlet, seed_settings, seed_table, seed_manual_item):
        return OrderService(db_session).create(
            seed_outlet.id,
            dine_in_request(
                seed_outlet,
                seed_table,
                OrderLineInput(item_id=seed_manual_item.id, quantity=1, quantity_type="HALF"),
            ),
        )

    def test_update_quantity_recomputes_totals(self, db_session, order):
        line = order.items[0]

        updated = OrderService(db_session).update_lines(
            order.id,
            UpdateOrderItemsRequest(items_to_update=[OrderLineUpdate(order_item_id=line.id, quantity=2)]),
        )

        assert updated.subtotal == Decimal("300.00")
        assert updated.tax == Decimal("54.00")
        assert updated.total == Decimal("354.00")

    def test_remove_and_add_in_one_request(self, db_session, order, seed_fixed_item):
        line = order.items[0]

        updated = OrderService(db_session).update_lines(
            order.id,
            UpdateOrderItemsRequest(
                items_to_remove=[line.id],
                items_to_add=[OrderLineInput(item_id=seed_fixed_item.id, quantity=1)],
            ),
        )

        assert len(updated.items) == 1
        assert updated.items[0].item_id == seed_fixed_item.id
        assert updated.subtotal == Decimal("120.00")
        assert updated.total == Decimal("141.60")

    def test_removing_every_line_leaves_zero_totals(self, db_session, order):
        updated = OrderService(db_session).update_lines(
            order.id,
            UpdateOrderItemsRequest(items_to_remove=[order.items[0].id]),
        )

        assert updated.items == []
        assert updated.subtotal == Decimal("0.00")
        assert updated.total == Decimal("0.00")

    def test_notes_only_update_keeps_quantity(self, db_session, order):
        line = order.items[0]

        updated = OrderService(db_session).update_lines(
            order.id,
            UpdateOrderItemsRequest(items_to_update=[OrderLineUpdate(order_item_id=line.id, notes="extra spicy")]),
        )

        assert updated.items[0].notes == "extra spicy"
        assert updated.items[0].quantity == 1

    def test_writes_update_event(self, db_session, order):
        OrderService(db_session).update_lines(
            order.id,
            UpdateOrderItemsRequest(items_to_update=[OrderLineUpdate(order_item_id=order.items[0].id, quantity=3)]),
        )

        assert db_session.scalar(select(OutboxEvent).where(OutboxEvent.event_type == ORDER_UPDATED)) is not None

    def test_completed_order_is_immutable(self, db_session, order):
        service = OrderService(db_session)
        service.update_status(order.id, "COMPLETED")

        with pytest.raises(InvalidStateError) as exc_info:
            service.update_lines(
                order.id,
                UpdateOrderItemsRequest(items_to_update=[OrderLineUpdate(order_item_id=order.items[0].id, quantity=5)]),
            )

        assert exc_info.value.detail == "Cannot edit completed or cancelled orders"
        assert service.get(order.id).total == Decimal("177.00")

    def test_cancelled_order_is_immutable(self, db_session, order):
        service = OrderService(db_session)
        service.update_status(order.id, "CANCELLED", cancellation_reason="Customer left")

        with pytest.raises(InvalidStateError):
            service.update_lines(order.id, UpdateOrderItemsRequest(items_to_remove=[order.items[0].id]))


class TestUpdateStatus:
    @pytest.fixture
    def order(self, db_session, seed_outlet, seed_settings, seed_table, seed_fixed_item):
        return OrderService(db_session).create(
            seed_outlet.id,
            dine_in_request(seed_outlet, seed_table, OrderLineInput(item_id=seed_fixed_item.id, quantity=1)),
        )

    def test_kitchen_progression(self, db_session, order):
        service = OrderService(db_session)

        for status in ("PREPARING", "READY", "SERVED"):
            order = service.update_status(order.id, status)
            assert order.status == status

    def test_status_change_event_records_previous_status(self, db_session, order):
        OrderService(db_session).update_status(order.id, "PREPARING")

        event = db_session.scalar(select(OutboxEvent).where(OutboxEvent.event_type == ORDER_STATUS_CHANGED))
        entity = json.loads(event.payload)["entity"]
        assert entity["previous_status"] == "NEW"
        assert entity["status"] == "PREPARING"

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_cancel_requires_reason(self, db_session, order, reason):
        with pytest.raises(ValidationError) as exc_info:
            OrderService(db_session).update_status(order.id, "CANCELLED", cancellation_reason=reason)

        assert exc_info.value.detail == "Cancellation reason is required when cancelling an order"
        assert OrderService(db_session).get(order.id).status == "NEW"

    def test_cancel_frees_table(self, db_session, order, seed_table):
        cancelled = OrderService(db_session).update_status(
            order.id, "CANCELLED", cancellation_reason="  Kitchen closed  "
        )

        assert cancelled.status == "CANCELLED"
        assert cancelled.cancellation_reason == "Kitchen closed"
        assert db_session.get(Table, seed_table.id).status == "EMPTY"

    def test_complete_runs_billing_cascade(self, db_session, order, seed_table):
        completed = OrderService(db_session).update_status(order.id, "COMPLETED")

        assert completed.status == "COMPLETED"
        assert completed.billed_at is not None
        assert completed.payment_method is None
        assert db_session.get(Table, seed_table.id).status == "EMPTY"

    def test_complete_endpoint_cascade_leaves_table_billed(self, db_session, order, seed_table):
        completed = BillingService(db_session).complete_order(order.id)

        assert completed.status == "COMPLETED"
        assert completed.payment_method is None
        assert db_session.get(Table, seed_table.id).status == "BILLED"

    def test_terminal_order_cannot_change_status(self, db_session, order):
        service = OrderService(db_session)
        service.update_status(order.id, "CANCELLED", cancellation_reason="Duplicate")

        with pytest.raises(InvalidStateError) as exc_info:
            service.update_status(order.id, "PREPARING")

        assert exc_info.value.detail == "Cannot change status of a cancelled order"

    def test_table_reusable_after_completion(self, db_session, order, seed_outlet, seed_table, seed_fixed_item):
        service = OrderService(db_session)
        service.update_status(order.id, "COMPLETED")

        second = service.create(
            seed_outlet.id,
            dine_in_request(seed_outlet, seed_table, OrderLineInput(item_id=seed_fixed_item.id, quantity=1)),
        )

        assert second.table_id == seed_table.id


class TestListOrders:
    def test_filters_by_status_and_outlet(self, db_session, seed_outlet, seed_other_outlet, seed_fixed_item):
        service = OrderService(db_session)
        line = OrderLineInput(item_id=seed_fixed_item.id, quantity=1)
        first = service.create(seed_outlet.id, takeaway_request(seed_outlet, line))
        service.create(seed_outlet.id, takeaway_request(seed_outlet, line))
        service.update_status(first.id, "PREPARING")

        preparing = service.list_orders(seed_outlet.id, statuses=["PREPARING"])
        everything = service.list_orders(seed_outlet.id)
        elsewhere = service.list_orders(seed_other_outlet.id)

        assert [o.id for o in preparing] == [first.id]
        assert len(everything) == 2
        assert elsewhere == []
