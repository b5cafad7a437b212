"""
Menu router.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pos_api.routers._common import outlet_scope
from pos_api.services.domain import CatalogService
from pos_shared.config.constants import Roles
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, require_outlet, require_roles, resolve_outlet_id
from pos_shared.utils.schemas import ItemCreateRequest, ItemOutput, ItemUpdateRequest

router = APIRouter(prefix="/api/menu", tags=["menu"])


@router.get("", response_model=list[ItemOutput])
def list_menu(
    outlet_id: uuid.UUID | None = None,
    category: str | None = None,
    available: bool | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[ItemOutput]:
    outlet = resolve_outlet_id(ctx, outlet_id)
    items = CatalogService(db).list_items(outlet, category=category, available=available)
    return [ItemOutput.model_validate(i) for i in items]


@router.post("", response_model=list[ItemOutput], status_code=status.HTTP_201_CREATED)
def create_menu_item(
    body: ItemCreateRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[ItemOutput]:
    """Create an item in one outlet, or a copy in each of `outlet_ids`."""
    require_roles(ctx, [Roles.ADMIN.value])
    if body.outlet_ids:
        outlets = body.outlet_ids
        for outlet_id in outlets:
            require_outlet(ctx, outlet_id)
    else:
        outlets = [resolve_outlet_id(ctx, body.outlet_id)]
    items = CatalogService(db).create(outlets, body)
    return [ItemOutput.model_validate(i) for i in items]


@router.patch("/{item_id}", response_model=ItemOutput)
def update_menu_item(
    item_id: uuid.UUID,
    body: ItemUpdateRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ItemOutput:
    """Edit an item. Existing order lines keep their frozen price."""
    require_roles(ctx, [Roles.ADMIN.value])
    item = CatalogService(db).update(item_id, body, outlet_scope(ctx))
    return ItemOutput.model_validate(item)
