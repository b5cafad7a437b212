"""
Billing router.
Bill generation (the order completion transaction), bill view and reprint.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from pos_api.routers._common import get_role, get_user_id, outlet_scope
from pos_api.services.domain import BillingService
from pos_shared.config.constants import Roles
from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, require_roles
from pos_shared.security.rate_limit import limiter
from pos_shared.utils.schemas import BillOutput, GenerateBillRequest, ReprintBillRequest

router = APIRouter(prefix="/api/billing", tags=["billing"])

BILLING_ROLES = [Roles.ADMIN.value, Roles.CASHIER.value]


@router.post("/generate", response_model=BillOutput)
@limiter.limit(settings.billing_rate_limit)
def generate_bill(
    request: Request,
    body: GenerateBillRequest,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> BillOutput:
    """
    Bill an order: recompute tax, record the payment method, mark it
    COMPLETED, free the table and deduct inventory in one transaction.

    Retrying with the same Idempotency-Key returns the existing bill
    instead of failing with "Order is already completed".
    """
    require_roles(ctx, BILLING_ROLES)
    return BillingService(db).generate_bill(
        body.order_id,
        body.payment_method,
        user_id=get_user_id(ctx),
        actor_role=get_role(ctx),
        idempotency_key=idempotency_key,
        outlet_id=outlet_scope(ctx),
    )


@router.post("/reprint", response_model=BillOutput)
def reprint_bill(
    body: ReprintBillRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> BillOutput:
    require_roles(ctx, BILLING_ROLES)
    return BillingService(db).reprint_bill(body.order_id, outlet_scope(ctx))


@router.get("/{order_id}", response_model=BillOutput)
def get_bill(
    order_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> BillOutput:
    """Bill view of an order in any status."""
    return BillingService(db).get_bill(order_id, outlet_scope(ctx))
