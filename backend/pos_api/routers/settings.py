"""
Outlet settings router.
Tax and receipt configuration; only admins may change it.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pos_api.routers._common import get_user_id
from pos_api.services.domain import SettingsService
from pos_shared.config.constants import Roles
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, require_roles, resolve_outlet_id
from pos_shared.utils.schemas import SettingsOutput, SettingsUpdateRequest

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=SettingsOutput)
def get_settings(
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> SettingsOutput:
    """Outlet settings, with defaults when none are stored yet."""
    return SettingsService(db).get(resolve_outlet_id(ctx, outlet_id))


@router.put("", response_model=SettingsOutput)
def update_settings(
    body: SettingsUpdateRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> SettingsOutput:
    require_roles(ctx, [Roles.ADMIN.value])
    outlet = resolve_outlet_id(ctx, body.outlet_id)
    return SettingsService(db).update(outlet, body, user_id=get_user_id(ctx))
