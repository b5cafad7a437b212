"""
Publishing of realtime events to Redis pub/sub.

Publishing is best effort from the business point of view: the outbox row
is already committed, so a failed publish only leaves the row PENDING for
the next processor pass.
"""

from __future__ import annotations

import asyncio
import random

import redis.asyncio as redis

from pos_shared.config.logging import get_logger
from pos_shared.config.settings import settings
from .event_schema import Event
from .event_types import MAX_EVENT_SIZE

logger = get_logger(__name__)

MAX_RETRY_DELAY_SECONDS = 10.0


def calculate_retry_delay_with_jitter(attempt: int, base_delay: float = 0.5) -> float:
    """
    Delay before retry number `attempt` (0-indexed): uniform between
    base_delay and base_delay * 2**attempt, capped at 10 seconds.
    """
    ceiling = min(base_delay * (2 ** attempt), MAX_RETRY_DELAY_SECONDS)
    return random.uniform(base_delay, max(base_delay, ceiling))


async def publish_event(redis_client: redis.Redis, channel: str, event: Event) -> int:
    """
    Publish one event, retrying transient Redis errors.

    Returns:
        Number of subscribers that received the message.

    Raises:
        ValueError: the serialized event exceeds MAX_EVENT_SIZE.
        Exception: the last Redis error once retries are exhausted.
    """
    message = event.to_json()
    size = len(message.encode("utf-8"))
    if size > MAX_EVENT_SIZE:
        raise ValueError(f"Event {event.type} exceeds max size: {size} > {MAX_EVENT_SIZE} bytes")

    attempts = max(1, settings.redis_publish_max_retries)
    for attempt in range(attempts):
        try:
            return await redis_client.publish(channel, message)
        except Exception as e:
            if attempt == attempts - 1:
                logger.error(
                    "Redis publish failed after all retries",
                    channel=channel,
                    event_type=event.type,
                    attempts=attempts,
                    error=str(e),
                )
                raise
            delay = calculate_retry_delay_with_jitter(attempt, settings.redis_publish_retry_delay)
            logger.warning(
                "Redis publish failed, retrying",
                channel=channel,
                event_type=event.type,
                attempt=attempt + 1,
                delay_seconds=round(delay, 2),
                error=str(e),
            )
            await asyncio.sleep(delay)
