"""
Inventory router.
Stock levels, manual adjustments (recorded in the ledger), alerts and the ledger itself.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pos_api.routers._common import get_role, get_user_id
from pos_api.services.domain import InventoryService
from pos_shared.config.constants import Roles
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, require_roles, resolve_outlet_id
from pos_shared.utils.schemas import InventoryLogOutput, InventoryOutput, SetStockRequest

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

INVENTORY_ROLES = [Roles.ADMIN.value, Roles.CASHIER.value]


@router.get("", response_model=list[InventoryOutput])
def list_inventory(
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[InventoryOutput]:
    outlet = resolve_outlet_id(ctx, outlet_id)
    return [InventoryOutput.model_validate(r) for r in InventoryService(db).list_records(outlet)]


@router.patch("", response_model=InventoryOutput)
def set_stock(
    body: SetStockRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> InventoryOutput:
    """
    Set an item's stock by hand. The difference is appended to the
    inventory log as a manual adjustment.
    """
    require_roles(ctx, INVENTORY_ROLES)
    outlet = resolve_outlet_id(ctx, body.outlet_id)
    record = InventoryService(db).set_stock(
        outlet,
        body.item_id,
        body.stock,
        low_stock_threshold=body.low_stock_threshold,
        user_id=get_user_id(ctx),
        actor_role=get_role(ctx),
    )
    return InventoryOutput.model_validate(record)


@router.get("/alerts", response_model=list[InventoryOutput])
def low_stock_alerts(
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[InventoryOutput]:
    outlet = resolve_outlet_id(ctx, outlet_id)
    return [InventoryOutput.model_validate(r) for r in InventoryService(db).low_stock_alerts(outlet)]


@router.get("/logs", response_model=list[InventoryLogOutput])
def inventory_logs(
    outlet_id: uuid.UUID | None = None,
    item_id: uuid.UUID | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[InventoryLogOutput]:
    outlet = resolve_outlet_id(ctx, outlet_id)
    entries = InventoryService(db).logs(outlet, item_id=item_id, limit=limit)
    return [InventoryLogOutput.model_validate(e) for e in entries]
