"""
Read-only sales analytics and report data over orders of one outlet.

Every figure is built from COMPLETED orders unless stated otherwise, and
date ranges are whole UTC days on Order.created_at.
"""

import uuid
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from pos_api.models import Item, Order, OrderLine, User
from pos_api.services.domain.pricing import to_money
from pos_shared.config.constants import OrderStatus, PaymentMethod
from pos_shared.utils.exceptions import ValidationError
from pos_shared.utils.schemas import (
    DailyReportOutput,
    ItemSalesEntry,
    ItemwiseReportOutput,
    OrderListEntry,
    OrderListGroup,
    OrderListLine,
    OrdersListOutput,
    PaymentBreakdownEntry,
    PeakHourEntry,
    SalesSummaryOutput,
    SalesTrendOutput,
    SalesTrendPoint,
    StaffPerformanceEntry,
    TopItemsOutput,
)

ZERO = Decimal("0")

# Number of daily points in the week and month trend views
TREND_DAYS = {"week": 7, "month": 30}


def day_bounds(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """UTC datetimes covering start_date 00:00 through the whole of end_date."""
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_date, time.max, tzinfo=timezone.utc)
    return start, end


def recent_range(days: int) -> tuple[date, date]:
    """The last `days` days up to and including today (UTC)."""
    end_date = datetime.now(timezone.utc).date()
    return end_date - timedelta(days=days), end_date


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def order_number(order_id: uuid.UUID) -> str:
    """Short display number: ORD- and the first 8 hex digits of the id."""
    return f"ORD-{str(order_id)[:8].upper()}"


def _list_entry(order: Order) -> OrderListEntry:
    return OrderListEntry(
        id=order.id,
        order_number=order_number(order.id),
        total=order.total,
        status=order.status,
        order_type=order.order_type,
        payment_method=order.payment_method,
        staff_name=order.user.name if order.user is not None else None,
        created_at=order.created_at,
        items=[
            OrderListLine(name=line.item_name or "Unknown", quantity=line.quantity, price=line.price)
            for line in order.items
        ],
    )


def _trend_bucket(period: str, at: datetime):
    if period == "today":
        return at.hour
    if period == "year":
        return (at.year, at.month)
    return at.date()


def _completed_sales(entries: list[OrderListEntry]) -> Decimal:
    return to_money(sum((e.total for e in entries if e.status == OrderStatus.COMPLETED.value), ZERO))


class AnalyticsService:
    def __init__(self, db: Session):
        self._db = db

    def _completed_between(self, outlet_id: uuid.UUID, start: datetime, end: datetime) -> list:
        return [
            Order.outlet_id == outlet_id,
            Order.status == OrderStatus.COMPLETED.value,
            Order.created_at >= start,
            Order.created_at <= end,
        ]

    def _orders_with_lines(self, *conditions) -> list[Order]:
        return list(
            self._db.scalars(
                select(Order)
                .where(*conditions)
                .options(
                    selectinload(Order.items).selectinload(OrderLine.item),
                    selectinload(Order.user),
                )
                .order_by(Order.created_at.desc())
            ).all()
        )

    # -------------------------------------------------------------------------
    # KPIs
    # -------------------------------------------------------------------------

    def summary(self, outlet_id: uuid.UUID, start_date: date, end_date: date) -> SalesSummaryOutput:
        """
        Sales KPIs for orders created in the date range (inclusive).
        Sales only count COMPLETED orders; the cancellation rate is a
        percentage of all orders.
        """
        start, end = day_bounds(start_date, end_date)
        rows = self._db.execute(
            select(Order.status, func.count(Order.id), func.sum(Order.total))
            .where(
                Order.outlet_id == outlet_id,
                Order.created_at >= start,
                Order.created_at <= end,
            )
            .group_by(Order.status)
        ).all()

        counts = {status: count for status, count, _ in rows}
        sums = {status: Decimal(total or 0) for status, _, total in rows}

        total_orders = sum(counts.values())
        completed = counts.get(OrderStatus.COMPLETED.value, 0)
        cancelled = counts.get(OrderStatus.CANCELLED.value, 0)
        total_sales = sums.get(OrderStatus.COMPLETED.value, ZERO)

        average = total_sales / completed if completed else ZERO
        cancellation_rate = Decimal(cancelled * 100) / total_orders if total_orders else ZERO

        return SalesSummaryOutput(
            total_sales=to_money(total_sales),
            total_orders=total_orders,
            completed_orders=completed,
            cancelled_orders=cancelled,
            average_order_value=to_money(average),
            cancellation_rate=to_money(cancellation_rate),
        )

    def payment_breakdown(
        self,
        outlet_id: uuid.UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        days: int = 30,
    ) -> list[PaymentBreakdownEntry]:
        """
        Completed sales per payment method. Without explicit dates the last
        `days` days are used. Methods with no sales are omitted.
        """
        if start_date is None or end_date is None:
            start_date, end_date = recent_range(days)
        start, end = day_bounds(start_date, end_date)

        rows = self._db.execute(
            select(Order.payment_method, func.count(Order.id), func.sum(Order.total))
            .where(
                *self._completed_between(outlet_id, start, end),
                Order.payment_method.is_not(None),
            )
            .group_by(Order.payment_method)
        ).all()
        by_method = {method: (count, Decimal(total or 0)) for method, count, total in rows}

        return [
            PaymentBreakdownEntry(
                payment_method=method.value,
                count=by_method[method.value][0],
                total=to_money(by_method[method.value][1]),
            )
            for method in PaymentMethod
            if method.value in by_method
        ]

    # -------------------------------------------------------------------------
    # Items and staff
    # -------------------------------------------------------------------------

    def item_sales(self, outlet_id: uuid.UUID, start_date: date, end_date: date) -> list[ItemSalesEntry]:
        """Quantity and revenue (frozen line price x quantity) per item, highest revenue first."""
        start, end = day_bounds(start_date, end_date)
        rows = self._db.execute(
            select(
                OrderLine.item_id,
                Item.name,
                func.sum(OrderLine.quantity),
                func.sum(OrderLine.price * OrderLine.quantity),
            )
            .join(Order, OrderLine.order_id == Order.id)
            .join(Item, OrderLine.item_id == Item.id)
            .where(*self._completed_between(outlet_id, start, end))
            .group_by(OrderLine.item_id, Item.name)
        ).all()

        entries = [
            ItemSalesEntry(item_id=item_id, name=name, quantity=int(quantity), revenue=to_money(revenue or 0))
            for item_id, name, quantity, revenue in rows
        ]
        entries.sort(key=lambda e: (-e.revenue, e.name))
        return entries

    def top_items(self, outlet_id: uuid.UUID, days: int = 30, limit: int = 5) -> TopItemsOutput:
        entries = self.item_sales(outlet_id, *recent_range(days))
        low = sorted(entries, key=lambda e: (e.revenue, e.name))
        return TopItemsOutput(top=entries[:limit], low=low[:limit])

    def staff_performance(self, outlet_id: uuid.UUID, days: int = 30, limit: int = 5) -> list[StaffPerformanceEntry]:
        """Completed orders and sales per staff member; orders without a user are skipped."""
        start, end = day_bounds(*recent_range(days))
        rows = self._db.execute(
            select(User.id, User.name, func.count(Order.id), func.sum(Order.total))
            .join(User, Order.user_id == User.id)
            .where(*self._completed_between(outlet_id, start, end))
            .group_by(User.id, User.name)
        ).all()

        entries = [
            StaffPerformanceEntry(user_id=user_id, name=name, orders=count, sales=to_money(sales or 0))
            for user_id, name, count, sales in rows
        ]
        entries.sort(key=lambda e: (-e.sales, e.name))
        return entries[:limit]

    # -------------------------------------------------------------------------
    # Time series
    # -------------------------------------------------------------------------

    def sales_trend(
        self,
        outlet_id: uuid.UUID,
        start_date: date,
        end_date: date,
        period: str = "month",
    ) -> SalesTrendOutput:
        """
        Completed sales in the range bucketed for a chart.

        - today: 24 hourly points for start_date
        - week / month: 7 / 30 daily points from start_date
        - year: 12 monthly points for start_date's year

        Buckets without sales are present with zeros.
        """
        start, end = day_bounds(start_date, end_date)
        rows = self._db.execute(
            select(Order.total, Order.created_at)
            .where(*self._completed_between(outlet_id, start, end))
            .order_by(Order.created_at)
        ).all()

        if period == "today":
            labels = [(start_date.isoformat(), f"{hour:02d}:00", hour) for hour in range(24)]
        elif period == "year":
            labels = [
                (f"{start_date.year}-{month:02d}", None, (start_date.year, month))
                for month in range(1, 13)
            ]
        elif period in TREND_DAYS:
            days = [start_date + timedelta(days=i) for i in range(TREND_DAYS[period])]
            labels = [(day.isoformat(), None, day) for day in days]
        else:
            raise ValidationError(f"Unknown trend period: {period}")

        sales: dict = defaultdict(lambda: ZERO)
        counts: dict = defaultdict(int)
        for total, created_at in rows:
            bucket = _trend_bucket(period, as_utc(created_at))
            sales[bucket] += Decimal(total)
            counts[bucket] += 1

        return SalesTrendOutput(
            period=period,
            data=[
                SalesTrendPoint(date=label, time=clock, sales=to_money(sales[bucket]), order_count=counts[bucket])
                for label, clock, bucket in labels
            ],
            total_orders=len(rows),
            total_sales=to_money(sum((Decimal(total) for total, _ in rows), ZERO)),
        )

    def peak_hours(self, outlet_id: uuid.UUID, days: int = 30) -> list[PeakHourEntry]:
        """Completed orders per UTC hour of day, all 24 hours."""
        start, end = day_bounds(*recent_range(days))
        created = self._db.scalars(
            select(Order.created_at).where(*self._completed_between(outlet_id, start, end))
        ).all()

        per_hour = [0] * 24
        for created_at in created:
            per_hour[as_utc(created_at).hour] += 1
        return [PeakHourEntry(hour=hour, orders=count) for hour, count in enumerate(per_hour)]

    # -------------------------------------------------------------------------
    # Order lists and reports
    # -------------------------------------------------------------------------

    def orders_list(
        self,
        outlet_id: uuid.UUID,
        start_date: date,
        end_date: date,
        group_by: str = "none",
    ) -> OrdersListOutput:
        """
        Orders of every status created in the range, newest first, with their
        lines. group_by="date" groups them per UTC day. Sales totals only count
        COMPLETED orders.
        """
        start, end = day_bounds(start_date, end_date)
        entries = [
            _list_entry(order)
            for order in self._orders_with_lines(
                Order.outlet_id == outlet_id,
                Order.created_at >= start,
                Order.created_at <= end,
            )
        ]

        result = OrdersListOutput(total_orders=len(entries), total_sales=_completed_sales(entries))
        if group_by == "none":
            result.orders = entries
            return result
        if group_by != "date":
            raise ValidationError(f"Unknown grouping: {group_by}")

        by_day: dict[str, list[OrderListEntry]] = {}
        for entry in entries:
            by_day.setdefault(as_utc(entry.created_at).date().isoformat(), []).append(entry)
        result.grouped = [
            OrderListGroup(
                date=day,
                orders=day_orders,
                total_sales=_completed_sales(day_orders),
                order_count=len(day_orders),
            )
            for day, day_orders in by_day.items()
        ]
        return result

    def daily_report(self, outlet_id: uuid.UUID, day: date) -> DailyReportOutput:
        """Completed orders of one day, newest first."""
        start, end = day_bounds(day, day)
        orders = self._orders_with_lines(*self._completed_between(outlet_id, start, end))
        entries = [_list_entry(order) for order in orders]
        return DailyReportOutput(
            date=day.isoformat(),
            total_sales=_completed_sales(entries),
            total_orders=len(entries),
            orders=entries,
        )

    def itemwise_report(self, outlet_id: uuid.UUID, start_date: date, end_date: date) -> ItemwiseReportOutput:
        return ItemwiseReportOutput(
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            items=self.item_sales(outlet_id, start_date, end_date),
        )
