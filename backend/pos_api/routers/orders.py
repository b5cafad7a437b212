"""
Orders router.
Create, list and edit orders; status changes and the completion cascade.
"""

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pos_api.routers._common import get_role, get_user_id, outlet_scope, parse_order_statuses
from pos_api.services.domain import BillingService, OrderService
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, require_outlet, resolve_outlet_id
from pos_shared.utils.schemas import (
    CreateOrderRequest,
    OrderOutput,
    UpdateOrderItemsRequest,
    UpdateOrderStatusRequest,
)

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("", response_model=list[OrderOutput])
def list_orders(
    outlet_id: uuid.UUID | None = None,
    status_filter: list[str] | None = Query(default=None, alias="status"),
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[OrderOutput]:
    """Orders of an outlet, newest first. `status` may be repeated or comma separated."""
    outlet = resolve_outlet_id(ctx, outlet_id)
    orders = OrderService(db).list_orders(
        outlet_id=outlet,
        statuses=parse_order_statuses(status_filter),
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return [OrderOutput.model_validate(o) for o in orders]


@router.post("", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
def create_order(
    body: CreateOrderRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """
    Create an order with computed subtotal, tax and total.
    A DINE_IN order marks its table OCCUPIED.
    """
    require_outlet(ctx, body.outlet_id)
    order = OrderService(db).create(
        body.outlet_id, body, user_id=get_user_id(ctx), actor_role=get_role(ctx)
    )
    return OrderOutput.model_validate(order)


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    order = OrderService(db).get(order_id, outlet_scope(ctx))
    return OrderOutput.model_validate(order)


@router.patch("/{order_id}", response_model=OrderOutput)
def update_order_status(
    order_id: uuid.UUID,
    body: UpdateOrderStatusRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """
    Change the order status.
    CANCELLED requires cancellation_reason; COMPLETED runs the completion cascade.
    """
    order = OrderService(db).update_status(
        order_id,
        body.status,
        cancellation_reason=body.cancellation_reason,
        user_id=get_user_id(ctx),
        actor_role=get_role(ctx),
        outlet_id=outlet_scope(ctx),
    )
    return OrderOutput.model_validate(order)


@router.patch("/{order_id}/items", response_model=OrderOutput)
def update_order_items(
    order_id: uuid.UUID,
    body: UpdateOrderItemsRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """Remove, update and add lines, then recompute totals."""
    order = OrderService(db).update_lines(
        order_id,
        body,
        user_id=get_user_id(ctx),
        actor_role=get_role(ctx),
        outlet_id=outlet_scope(ctx),
    )
    return OrderOutput.model_validate(order)


@router.post("/{order_id}/complete", response_model=OrderOutput)
def complete_order(
    order_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """Complete an order without a payment method: the table goes BILLED and stock is deducted."""
    order = BillingService(db).complete_order(
        order_id,
        user_id=get_user_id(ctx),
        actor_role=get_role(ctx),
        outlet_id=outlet_scope(ctx),
    )
    return OrderOutput.model_validate(order)
