"""
Outlets router.
Outlet list and creation, the admin outlet switch and the outlet summary.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from pos_api.models import User
from pos_api.routers._common import get_user_id
from pos_api.routers.auth import access_token_for
from pos_api.services.domain import OutletService
from pos_shared.config.constants import Roles
from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, is_admin, require_outlet, require_roles
from pos_shared.utils.schemas import (
    OutletCreateRequest,
    OutletOutput,
    OutletSummaryOutput,
    OutletSwitchRequest,
    OutletSwitchResponse,
)

router = APIRouter(prefix="/api/outlets", tags=["outlets"])


@router.get("", response_model=list[OutletOutput])
def list_outlets(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[OutletOutput]:
    """Admins see every outlet; other roles only their own."""
    service = OutletService(db)
    if is_admin(ctx):
        outlets = service.list_outlets()
    elif ctx.get("outlet_id"):
        outlets = service.list_outlets(uuid.UUID(str(ctx["outlet_id"])))
    else:
        outlets = []
    return [OutletOutput.model_validate(o) for o in outlets]


@router.post("", response_model=OutletOutput, status_code=status.HTTP_201_CREATED)
def create_outlet(
    body: OutletCreateRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OutletOutput:
    require_roles(ctx, [Roles.ADMIN.value])
    outlet = OutletService(db).create(body, user_id=get_user_id(ctx))
    return OutletOutput.model_validate(outlet)


@router.post("/switch", response_model=OutletSwitchResponse)
def switch_outlet(
    body: OutletSwitchRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OutletSwitchResponse:
    """
    Switch the admin's working outlet.

    The response carries a fresh access token scoped to the new outlet;
    the old token keeps its outlet until it expires.
    """
    require_roles(ctx, [Roles.ADMIN.value])
    user = db.get(User, get_user_id(ctx))
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    outlet = OutletService(db).switch(user, body.outlet_id)
    return OutletSwitchResponse(
        outlet=OutletOutput.model_validate(outlet),
        message=f"Switched to outlet: {outlet.name}",
        access_token=access_token_for(user),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


@router.get("/{outlet_id}/summary", response_model=OutletSummaryOutput)
def outlet_summary(
    outlet_id: uuid.UUID,
    days: int = Query(default=30, ge=1, le=366),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OutletSummaryOutput:
    require_outlet(ctx, outlet_id)
    return OutletService(db).summary(outlet_id, days=days)
