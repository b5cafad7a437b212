"""
Outbox processor for publishing events from the outbox table.

Reads PENDING events and publishes them to the outlet's Redis channel:
- Batch processing, oldest first
- PENDING -> PROCESSING -> PUBLISHED, or back to PENDING for retry
- FAILED after max retries
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session, sessionmaker

from pos_api.models import OutboxEvent, OutboxStatus
from pos_shared.config.logging import get_logger
from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import SessionLocal
from pos_shared.infrastructure.events import (
    Event,
    channel_for_event,
    get_redis_pool,
    publish_event,
)

logger = get_logger(__name__)


class OutboxProcessor:
    """
    Processes outbox events and publishes them to Redis.

    session_factory and redis_getter are injectable so the processor can
    run against a test database and a mocked Redis client.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | sessionmaker = SessionLocal,
        redis_getter: Callable[[], Awaitable[Any]] = get_redis_pool,
        batch_size: int | None = None,
        max_retries: int | None = None,
        poll_interval: float | None = None,
    ):
        self._session_factory = session_factory
        self._redis_getter = redis_getter
        self._batch_size = batch_size or settings.outbox_batch_size
        self._max_retries = max_retries or settings.outbox_max_retries
        self._poll_interval = poll_interval or settings.outbox_poll_interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the processor loop."""
        if self._running:
            logger.warning("Outbox processor already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Outbox processor started")

    async def stop(self) -> None:
        """Stop the processor gracefully."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Outbox processor stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                processed = await self.process_batch()
                if processed == 0:
                    await asyncio.sleep(self._poll_interval)
            except Exception as e:
                logger.error("Outbox processor error", error=str(e))
                await asyncio.sleep(self._poll_interval)

    async def process_batch(self) -> int:
        """
        Process one batch of PENDING events.

        Returns:
            Number of events published
        """
        db = self._session_factory()
        try:
            events = db.execute(
                select(OutboxEvent)
                .where(OutboxEvent.status == OutboxStatus.PENDING)
                .order_by(OutboxEvent.created_at.asc())
                .limit(self._batch_size)
                .with_for_update(skip_locked=True)
            ).scalars().all()

            if not events:
                return 0

            # Claim the batch so parallel workers skip it
            event_ids = [e.id for e in events]
            db.execute(
                update(OutboxEvent)
                .where(OutboxEvent.id.in_(event_ids))
                .values(status=OutboxStatus.PROCESSING)
            )
            db.commit()

            published = 0
            for event in events:
                if await self._publish(event):
                    event.status = OutboxStatus.PUBLISHED
                    event.processed_at = datetime.now(timezone.utc)
                    published += 1
                else:
                    event.retry_count += 1
                    if event.retry_count >= self._max_retries:
                        event.status = OutboxStatus.FAILED
                        logger.error(
                            "Outbox event failed after max retries",
                            event_id=str(event.id),
                            event_type=event.event_type,
                        )
                    else:
                        event.status = OutboxStatus.PENDING

            db.commit()
            logger.info("Outbox batch processed", total=len(events), published=published)
            return published

        except Exception as e:
            db.rollback()
            logger.error("Outbox batch processing failed", error=str(e))
            return 0
        finally:
            db.close()

    async def _publish(self, event: OutboxEvent) -> bool:
        try:
            payload = json.loads(event.payload)
            message = Event(
                type=event.event_type,
                outlet_id=str(event.outlet_id),
                table_id=payload.get("table_id"),
                order_id=payload.get("order_id"),
                entity=payload.get("entity") or {},
                actor=payload.get("actor") or {},
                ts=event.created_at.isoformat() if event.created_at else None,
            )
            redis_client = await self._redis_getter()
            await publish_event(
                redis_client,
                channel_for_event(event.event_type, event.outlet_id),
                message,
            )
            return True
        except Exception as e:
            event.last_error = str(e)
            logger.error(
                "Failed to publish outbox event",
                event_id=str(event.id),
                event_type=event.event_type,
                error=str(e),
            )
            return False


# Singleton instance
_processor: OutboxProcessor | None = None


def get_outbox_processor() -> OutboxProcessor:
    """Get the singleton outbox processor instance."""
    global _processor
    if _processor is None:
        _processor = OutboxProcessor()
    return _processor


async def start_outbox_processor() -> None:
    """Start the outbox processor (FastAPI lifespan startup)."""
    await get_outbox_processor().start()


async def stop_outbox_processor() -> None:
    """Stop the outbox processor (FastAPI lifespan shutdown)."""
    await get_outbox_processor().stop()


async def process_pending_events_once() -> int:
    """Process pending outbox events once (CLI and manual triggering)."""
    return await get_outbox_processor().process_batch()
