"""
Event system for realtime notifications via Redis pub/sub.

- event_types.py: Event type constants
- event_schema.py: Event dataclass with validation
- channels.py: Outlet-scoped channel naming
- redis_pool.py: Connection pool management
- publisher.py: publish_event with retry and jitter
"""

from .event_types import (
    ORDER_CREATED,
    ORDER_UPDATED,
    ORDER_STATUS_CHANGED,
    BILL_GENERATED,
    TABLE_STATUS_CHANGED,
    INVENTORY_UPDATED,
    LOW_STOCK,
    MAX_EVENT_SIZE,
)
from .event_schema import Event
from .channels import (
    channel_outlet_orders,
    channel_outlet_tables,
    channel_outlet_inventory,
    channel_for_event,
)
from .redis_pool import get_redis_pool, close_redis_pool, check_redis_health
from .publisher import publish_event, calculate_retry_delay_with_jitter

__all__ = [
    "ORDER_CREATED",
    "ORDER_UPDATED",
    "ORDER_STATUS_CHANGED",
    "BILL_GENERATED",
    "TABLE_STATUS_CHANGED",
    "INVENTORY_UPDATED",
    "LOW_STOCK",
    "MAX_EVENT_SIZE",
    "Event",
    "channel_outlet_orders",
    "channel_outlet_tables",
    "channel_outlet_inventory",
    "channel_for_event",
    "get_redis_pool",
    "close_redis_pool",
    "check_redis_health",
    "publish_event",
    "calculate_retry_delay_with_jitter",
]
