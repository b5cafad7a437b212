"""
Event Schema.

Defines the Event dataclass carried over the realtime push channel.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Any


def _is_uuid(value: Any) -> bool:
    try:
        uuid.UUID(str(value))
    except (TypeError, ValueError):
        return False
    return True


@dataclass
class Event:
    """
    Unified event schema.

    'entity' carries event-specific data (ids, totals, statuses),
    'actor' identifies the user who triggered the change.
    Ids are UUID strings so the payload stays JSON-native.
    """

    type: str
    outlet_id: str
    table_id: str | None = None
    order_id: str | None = None
    entity: dict[str, Any] = field(default_factory=dict)
    actor: dict[str, Any] = field(default_factory=dict)
    ts: str | None = None
    v: int = 1

    def __post_init__(self) -> None:
        """Reject malformed events before they reach Redis."""
        if not self.type or not isinstance(self.type, str):
            raise ValueError("Event type must be a non-empty string")

        if not _is_uuid(self.outlet_id):
            raise ValueError("Event outlet_id must be a UUID")

        if self.table_id is not None and not _is_uuid(self.table_id):
            raise ValueError("Event table_id must be a UUID or None")

        if self.order_id is not None and not _is_uuid(self.order_id):
            raise ValueError("Event order_id must be a UUID or None")

        if self.entity is not None and not isinstance(self.entity, dict):
            raise ValueError("Event entity must be a dict or None")

        if self.actor is not None and not isinstance(self.actor, dict):
            raise ValueError("Event actor must be a dict or None")

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        data = asdict(self)
        data["entity"] = data["entity"] or {}
        data["actor"] = data["actor"] or {}
        data["ts"] = data["ts"] or datetime.now(timezone.utc).isoformat()
        return json.dumps(data, ensure_ascii=False, default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        data = json.loads(json_str)
        return cls(**data)
