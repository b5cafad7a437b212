"""
Helpers shared across routers.
"""

import uuid
from typing import Any

from pos_shared.config.constants import OrderStatus
from pos_shared.security.auth import is_admin, resolve_outlet_id
from pos_shared.utils.exceptions import ValidationError


def get_user_id(ctx: dict[str, Any]) -> uuid.UUID:
    """Acting user id from the JWT context."""
    return uuid.UUID(str(ctx["sub"]))


def get_role(ctx: dict[str, Any]) -> str:
    return ctx["role"]


def outlet_scope(ctx: dict[str, Any]) -> uuid.UUID | None:
    """
    Outlet that lookups by id are restricted to.

    None for admins (every outlet); otherwise the token's outlet, so a
    record of another outlet reads as not found.
    """
    if is_admin(ctx):
        return None
    return resolve_outlet_id(ctx, None)


def parse_order_statuses(values: list[str] | None) -> list[str] | None:
    """
    Order statuses from `status` query values, repeated or comma separated
    (`?status=NEW,PREPARING` or `?status=NEW&status=PREPARING`).
    """
    if not values:
        return None
    statuses = [part.strip().upper() for value in values for part in value.split(",") if part.strip()]
    allowed = {s.value for s in OrderStatus}
    unknown = [s for s in statuses if s not in allowed]
    if unknown:
        raise ValidationError(f"Unknown order status: {', '.join(unknown)}")
    return statuses or None
