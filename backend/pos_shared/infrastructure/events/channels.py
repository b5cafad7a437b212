"""
Redis channel naming.

Every channel is scoped to one outlet, the tenancy boundary for all data.
"""

from __future__ import annotations

import uuid

from .event_types import INVENTORY_EVENTS, TABLE_EVENTS


def _validate_outlet_id(outlet_id: str | uuid.UUID) -> str:
    try:
        return str(uuid.UUID(str(outlet_id)))
    except (TypeError, ValueError):
        raise ValueError(f"outlet_id must be a UUID, got {outlet_id!r}")


def channel_outlet_orders(outlet_id: str | uuid.UUID) -> str:
    """Order and bill changes for an outlet."""
    return f"outlet:{_validate_outlet_id(outlet_id)}:orders"


def channel_outlet_tables(outlet_id: str | uuid.UUID) -> str:
    """Table status changes for an outlet."""
    return f"outlet:{_validate_outlet_id(outlet_id)}:tables"


def channel_outlet_inventory(outlet_id: str | uuid.UUID) -> str:
    """Stock level changes and low stock alerts for an outlet."""
    return f"outlet:{_validate_outlet_id(outlet_id)}:inventory"


def channel_for_event(event_type: str, outlet_id: str | uuid.UUID) -> str:
    """Route an event type to its outlet channel."""
    if event_type in TABLE_EVENTS:
        return channel_outlet_tables(outlet_id)
    if event_type in INVENTORY_EVENTS:
        return channel_outlet_inventory(outlet_id)
    return channel_outlet_orders(outlet_id)
