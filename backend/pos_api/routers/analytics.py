"""
Analytics router (read-only).
"""

import uuid
from datetime import date
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pos_api.services.domain import AnalyticsService
from pos_shared.config.constants import Roles
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, require_roles, resolve_outlet_id
from pos_shared.utils.schemas import (
    OrdersListOutput,
    PaymentBreakdownEntry,
    PeakHourEntry,
    SalesSummaryOutput,
    SalesTrendOutput,
    SalesTrendPeriod,
    StaffPerformanceEntry,
    TopItemsOutput,
)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])

ANALYTICS_ROLES = [Roles.ADMIN.value, Roles.CASHIER.value]


@router.get("/summary", response_model=SalesSummaryOutput)
def sales_summary(
    start_date: date,
    end_date: date,
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> SalesSummaryOutput:
    """Sales KPIs for orders created between start_date and end_date (inclusive)."""
    require_roles(ctx, ANALYTICS_ROLES)
    outlet = resolve_outlet_id(ctx, outlet_id)
    return AnalyticsService(db).summary(outlet, start_date, end_date)


@router.get("/payment-breakdown", response_model=list[PaymentBreakdownEntry])
def payment_breakdown(
    start_date: date | None = None,
    end_date: date | None = None,
    days: int = Query(default=30, ge=1, le=366),
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[PaymentBreakdownEntry]:
    require_roles(ctx, ANALYTICS_ROLES)
    outlet = resolve_outlet_id(ctx, outlet_id)
    return AnalyticsService(db).payment_breakdown(outlet, start_date, end_date, days=days)


@router.get("/top-items", response_model=TopItemsOutput)
def top_items(
    days: int = Query(default=30, ge=1, le=366),
    limit: int = Query(default=5, ge=1, le=50),
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TopItemsOutput:
    """Best and worst sellers by revenue over the last `days` days."""
    require_roles(ctx, ANALYTICS_ROLES)
    outlet = resolve_outlet_id(ctx, outlet_id)
    return AnalyticsService(db).top_items(outlet, days=days, limit=limit)


@router.get("/sales-trend", response_model=SalesTrendOutput)
def sales_trend(
    start_date: date,
    end_date: date,
    period: SalesTrendPeriod = "month",
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> SalesTrendOutput:
    require_roles(ctx, ANALYTICS_ROLES)
    outlet = resolve_outlet_id(ctx, outlet_id)
    return AnalyticsService(db).sales_trend(outlet, start_date, end_date, period=period)


@router.get("/peak-hours", response_model=list[PeakHourEntry])
def peak_hours(
    days: int = Query(default=30, ge=1, le=366),
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[PeakHourEntry]:
    require_roles(ctx, ANALYTICS_ROLES)
    outlet = resolve_outlet_id(ctx, outlet_id)
    return AnalyticsService(db).peak_hours(outlet, days=days)


@router.get("/staff-performance", response_model=list[StaffPerformanceEntry])
def staff_performance(
    days: int = Query(default=30, ge=1, le=366),
    limit: int = Query(default=5, ge=1, le=50),
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[StaffPerformanceEntry]:
    require_roles(ctx, ANALYTICS_ROLES)
    outlet = resolve_outlet_id(ctx, outlet_id)
    return AnalyticsService(db).staff_performance(outlet, days=days, limit=limit)


@router.get("/orders-list", response_model=OrdersListOutput)
def orders_list(
    start_date: date,
    end_date: date,
    group_by: Literal["none", "date"] = "none",
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrdersListOutput:
    """Orders of every status in the range with their lines, optionally grouped per day."""
    require_roles(ctx, ANALYTICS_ROLES)
    outlet = resolve_outlet_id(ctx, outlet_id)
    return AnalyticsService(db).orders_list(outlet, start_date, end_date, group_by=group_by)
