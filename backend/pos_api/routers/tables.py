"""
Tables router.
Floor view and table CRUD. Status changes here are manual overrides;
orders drive the normal EMPTY/OCCUPIED transitions.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pos_api.routers._common import get_role, get_user_id, outlet_scope
from pos_api.services.domain import TableService
from pos_shared.config.constants import Roles
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, require_roles, resolve_outlet_id
from pos_shared.utils.schemas import (
    TableCreateRequest,
    TableOutput,
    TableStatus,
    TableUpdateRequest,
)

router = APIRouter(prefix="/api/tables", tags=["tables"])

TABLE_ADMIN_ROLES = [Roles.ADMIN.value, Roles.CASHIER.value]


@router.get("", response_model=list[TableOutput])
def list_tables(
    outlet_id: uuid.UUID | None = None,
    status_filter: TableStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[TableOutput]:
    outlet = resolve_outlet_id(ctx, outlet_id)
    tables = TableService(db).list_tables(outlet, status_filter)
    return [TableOutput.model_validate(t) for t in tables]


@router.post("", response_model=TableOutput, status_code=status.HTTP_201_CREATED)
def create_table(
    body: TableCreateRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TableOutput:
    require_roles(ctx, TABLE_ADMIN_ROLES)
    outlet = resolve_outlet_id(ctx, body.outlet_id)
    return TableOutput.model_validate(TableService(db).create(outlet, body))


@router.patch("/{table_id}", response_model=TableOutput)
def update_table(
    table_id: uuid.UUID,
    body: TableUpdateRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TableOutput:
    require_roles(ctx, TABLE_ADMIN_ROLES)
    table = TableService(db).update(
        table_id,
        body,
        outlet_id=outlet_scope(ctx),
        actor_user_id=get_user_id(ctx),
        actor_role=get_role(ctx),
    )
    return TableOutput.model_validate(table)
