"""
Reports router.
JSON report data: daily sales and item-wise sales.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pos_api.routers.analytics import ANALYTICS_ROLES
from pos_api.services.domain import AnalyticsService
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, require_roles, resolve_outlet_id
from pos_shared.utils.schemas import DailyReportOutput, ItemwiseReportOutput

router = APIRouter(prefix="/api/reports", tags=["reports"])


def _today() -> date:
    return datetime.now(timezone.utc).date()


@router.get("/daily", response_model=DailyReportOutput)
def daily_report(
    report_date: date | None = Query(default=None, alias="date"),
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> DailyReportOutput:
    """Completed orders of one day (default today, UTC)."""
    require_roles(ctx, ANALYTICS_ROLES)
    outlet = resolve_outlet_id(ctx, outlet_id)
    return AnalyticsService(db).daily_report(outlet, report_date or _today())


@router.get("/itemwise", response_model=ItemwiseReportOutput)
def itemwise_report(
    start_date: date | None = None,
    end_date: date | None = None,
    outlet_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ItemwiseReportOutput:
    """Quantity and revenue per item; both dates default to today."""
    require_roles(ctx, ANALYTICS_ROLES)
    outlet = resolve_outlet_id(ctx, outlet_id)
    return AnalyticsService(db).itemwise_report(outlet, start_date or _today(), end_date or _today())
