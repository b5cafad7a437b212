"""
Tests for the transactional outbox.

Tests verify:
- outbox_service writes PENDING events with the right payloads
- domain operations queue their events in the same transaction
- the processor publishes to outlet channels, retries and gives up
"""

import json
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from pos_api.models import OutboxEvent, OutboxStatus
from pos_api.services.domain import OrderService
from pos_api.services.events.outbox_processor import OutboxProcessor
from pos_api.services.events.outbox_service import write_outbox_event
from pos_shared.infrastructure.events import (
    ORDER_CREATED,
    TABLE_STATUS_CHANGED,
    Event,
    channel_for_event,
)
from pos_shared.utils.schemas import CreateOrderRequest, OrderLineInput


def mock_redis(publish_side_effect=None):
    client = AsyncMock()
    if publish_side_effect is not None:
        client.publish.side_effect = publish_side_effect
    else:
        client.publish.return_value = 1
    return client


def make_processor(db_session, client, **kwargs):
    return OutboxProcessor(
        session_factory=lambda: db_session,
        redis_getter=AsyncMock(return_value=client),
        **kwargs,
    )


@pytest.fixture
def pending_event(db_session, seed_outlet):
    order_id = uuid.uuid4()
    event = write_outbox_event(
        db=db_session,
        outlet_id=seed_outlet.id,
        event_type=ORDER_CREATED,
        aggregate_type="order",
        aggregate_id=order_id,
        payload={
            "order_id": str(order_id),
            "table_id": None,
            "entity": {"order_id": str(order_id), "status": "NEW"},
            "actor": {"user_id": None, "role": "staff"},
        },
    )
    db_session.commit()
    return event.id


def reload(db_session, event_id):
    return db_session.scalar(select(OutboxEvent).where(OutboxEvent.id == event_id))


class TestOutboxService:
    """Tests for outbox_service.py functions."""

    def test_write_outbox_event_creates_pending_event(self):
        """write_outbox_event should create an OutboxEvent with PENDING status."""
        mock_db = MagicMock()
        outlet_id = uuid.uuid4()
        aggregate_id = uuid.uuid4()

        write_outbox_event(
            db=mock_db,
            outlet_id=outlet_id,
            event_type="TEST_EVENT",
            aggregate_type="test",
            aggregate_id=aggregate_id,
            payload={"key": "value"},
        )

        mock_db.add.assert_called_once()
        added_event = mock_db.add.call_args[0][0]

        assert added_event.outlet_id == outlet_id
        assert added_event.event_type == "TEST_EVENT"
        assert added_event.aggregate_id == aggregate_id
        assert added_event.status == OutboxStatus.PENDING
        assert json.loads(added_event.payload) == {"key": "value"}

    def test_dine_in_order_queues_order_and_table_events(
        self, db_session, seed_outlet, seed_table, seed_fixed_item
    ):
        OrderService(db_session).create(
            seed_outlet.id,
            CreateOrderRequest(
                outlet_id=seed_outlet.id,
                table_id=seed_table.id,
                order_type="DINE_IN",
                items=[OrderLineInput(item_id=seed_fixed_item.id, quantity=1)],
            ),
        )

        types = sorted(e.event_type for e in db_session.scalars(select(OutboxEvent)).all())
        assert types == [ORDER_CREATED, TABLE_STATUS_CHANGED]

        table_event = db_session.scalar(
            select(OutboxEvent).where(OutboxEvent.event_type == TABLE_STATUS_CHANGED)
        )
        assert json.loads(table_event.payload)["entity"]["status"] == "OCCUPIED"


class TestChannels:
    def test_events_route_to_outlet_channels(self):
        outlet_id = uuid.uuid4()

        assert channel_for_event(ORDER_CREATED, outlet_id) == f"outlet:{outlet_id}:orders"
        assert channel_for_event(TABLE_STATUS_CHANGED, outlet_id) == f"outlet:{outlet_id}:tables"
        assert channel_for_event("LOW_STOCK", outlet_id) == f"outlet:{outlet_id}:inventory"

    def test_channel_rejects_non_uuid_outlet(self):
        with pytest.raises(ValueError):
            channel_for_event(ORDER_CREATED, "outlet-1")

    def test_event_rejects_bad_outlet(self):
        with pytest.raises(ValueError):
            Event(type=ORDER_CREATED, outlet_id="not-a-uuid")


class TestOutboxProcessor:
    """Tests for outbox_processor.py."""

    @pytest.mark.asyncio
    async def test_processor_publishes_pending_events(self, db_session, seed_outlet, pending_event):
        """Processor should publish PENDING events and mark them PUBLISHED."""
        client = mock_redis()
        # process_batch closes its session, detaching the fixture objects
        outlet_id = seed_outlet.id

        published = await make_processor(db_session, client).process_batch()

        assert published == 1
        client.publish.assert_awaited_once()
        channel, message = client.publish.call_args[0]
        assert channel == f"outlet:{outlet_id}:orders"
        received = Event.from_json(message)
        assert received.type == ORDER_CREATED
        assert received.outlet_id == str(outlet_id)
        assert received.entity["status"] == "NEW"

        event = reload(db_session, pending_event)
        assert event.status == OutboxStatus.PUBLISHED
        assert event.processed_at is not None

    @pytest.mark.asyncio
    async def test_processor_with_nothing_pending(self, db_session):
        client = mock_redis()

        assert await make_processor(db_session, client).process_batch() == 0
        client.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_processor_retries_failed_events(self, db_session, pending_event):
        """A publish failure puts the event back to PENDING with the error recorded."""
        client = mock_redis(publish_side_effect=ConnectionError("Redis unavailable"))

        published = await make_processor(db_session, client, max_retries=5).process_batch()

        assert published == 0
        event = reload(db_session, pending_event)
        assert event.status == OutboxStatus.PENDING
        assert event.retry_count == 1
        assert "Redis unavailable" in event.last_error

    @pytest.mark.asyncio
    async def test_processor_marks_failed_after_max_retries(self, db_session, pending_event):
        client = mock_redis(publish_side_effect=ConnectionError("Redis unavailable"))

        await make_processor(db_session, client, max_retries=1).process_batch()

        event = reload(db_session, pending_event)
        assert event.status == OutboxStatus.FAILED
        assert event.retry_count == 1

    @pytest.mark.asyncio
    async def test_processor_skips_published_events(self, db_session, pending_event):
        client = mock_redis()
        processor = make_processor(db_session, client)

        await processor.process_batch()
        second = await processor.process_batch()

        assert second == 0
        assert client.publish.await_count == 1
