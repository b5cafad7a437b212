"""
Outlet Domain Service.

Outlet listing and creation, the admin outlet switch, and the per-outlet
sales summary shown on the outlet overview.
"""

import uuid
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pos_api.models import Order, Outlet, User
from pos_api.services.domain.analytics_service import day_bounds, recent_range
from pos_api.services.domain.pricing import to_money
from pos_shared.config.constants import OrderStatus, PaymentMethod
from pos_shared.config.logging import get_logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.utils.exceptions import NotFoundError
from pos_shared.utils.schemas import OutletCreateRequest, OutletOutput, OutletSummaryOutput

logger = get_logger(__name__)

ZERO = Decimal("0")


class OutletService:
    def __init__(self, db: Session):
        self._db = db

    def get(self, outlet_id: uuid.UUID) -> Outlet:
        outlet = self._db.get(Outlet, outlet_id)
        if outlet is None or not outlet.is_active:
            raise NotFoundError("Outlet", outlet_id)
        return outlet

    def list_outlets(self, outlet_id: uuid.UUID | None = None) -> list[Outlet]:
        """
        Active outlets, newest first. With outlet_id only that outlet is
        returned (the view of a non-admin user).
        """
        query = select(Outlet).where(Outlet.is_active.is_(True))
        if outlet_id is not None:
            query = query.where(Outlet.id == outlet_id)
        return list(self._db.scalars(query.order_by(Outlet.created_at.desc())).all())

    def create(self, data: OutletCreateRequest, user_id: uuid.UUID | None = None) -> Outlet:
        outlet = Outlet(name=data.name.strip(), address=data.address)
        self._db.add(outlet)
        safe_commit(self._db)
        self._db.refresh(outlet)
        logger.info("Outlet created", outlet_id=str(outlet.id), name=outlet.name, user_id=str(user_id))
        return outlet

    def switch(self, user: User, outlet_id: uuid.UUID) -> Outlet:
        """
        Make outlet_id the user's effective outlet (User.current_outlet_id).
        Tokens issued afterwards carry it as their outlet_id claim.

        Raises:
            NotFoundError: unknown or inactive outlet.
        """
        outlet = self.get(outlet_id)
        previous = user.effective_outlet_id
        user.current_outlet_id = outlet.id
        safe_commit(self._db)
        self._db.refresh(user)
        logger.info(
            "Outlet switched",
            user_id=str(user.id),
            from_outlet_id=str(previous) if previous else None,
            outlet_id=str(outlet.id),
        )
        return outlet

    def summary(self, outlet_id: uuid.UUID, days: int = 30) -> OutletSummaryOutput:
        """Completed sales of the last `days` days with a per-method split."""
        outlet = self.get(outlet_id)
        start, end = day_bounds(*recent_range(days))

        rows = self._db.execute(
            select(Order.payment_method, func.count(Order.id), func.sum(Order.total))
            .where(
                Order.outlet_id == outlet.id,
                Order.status == OrderStatus.COMPLETED.value,
                Order.created_at >= start,
                Order.created_at <= end,
            )
            .group_by(Order.payment_method)
        ).all()

        breakdown = {method.value: ZERO for method in PaymentMethod}
        total_orders = 0
        total_sales = ZERO
        for method, count, total in rows:
            total = Decimal(total or 0)
            total_orders += count
            total_sales += total
            # Completed through /complete: counted in sales, not in the split
            if method in breakdown:
                breakdown[method] += total

        return OutletSummaryOutput(
            outlet=OutletOutput.model_validate(outlet),
            period_days=days,
            total_sales=to_money(total_sales),
            total_orders=total_orders,
            average_order_value=to_money(total_sales / total_orders if total_orders else ZERO),
            payment_breakdown={method: to_money(value) for method, value in breakdown.items()},
        )
