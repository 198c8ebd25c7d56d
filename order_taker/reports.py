"""Sales report computations: range filtering, revenue trends and metrics.

Everything here is a pure function of ``(orders, range, now)``. The
reference instant is always passed in by the caller; nothing reads the
clock, so a report computed twice from the same snapshot is identical.

Calendar arithmetic happens in the timezone of ``now``. A naive ``now`` is
read as host-local time. Order timestamps are ISO instants; naive ones are
taken as UTC.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any, Iterable, Mapping

from dateutil import tz
from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from order_taker.config import TOP_ITEMS_LIMIT
from order_taker.constant import (
    CUSTOM_CATEGORY,
    DAY_NAMES,
    MONTH_NAMES,
    UNCATEGORIZED,
    UNKNOWN_SOURCE,
)
from order_taker.data import CategoryLookup
from order_taker.models import Order, OrderItem

logger = logging.getLogger(__name__)


class ReportRange(str, Enum):
    """Reporting window selector."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL = "all"

    @classmethod
    def coerce(cls, value: ReportRange | str) -> ReportRange:
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown report range: {value!r}") from None


class SourceSort(str, Enum):
    """Sort key for the orders-by-source breakdown."""

    COUNT = "count"
    REVENUE = "revenue"

    @classmethod
    def coerce(cls, value: SourceSort | str) -> SourceSort:
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown source sort: {value!r}") from None


@dataclass(frozen=True)
class TrendPoint:
    label: str
    revenue: float


@dataclass(frozen=True)
class ItemStat:
    """A ranked item. ``percentage`` is relative to the first entry of its list."""

    name: str
    total_quantity: float
    total_revenue: float
    percentage: float


@dataclass(frozen=True)
class SourceStat:
    source: str
    count: int
    revenue: float


@dataclass(frozen=True)
class CategoryItem:
    name: str
    quantity: float
    percentage: float


@dataclass(frozen=True)
class CategoryBreakdown:
    """One category with its items ranked by quantity sold."""

    category: str
    total_quantity: float
    total_revenue: float
    items: list[CategoryItem]


@dataclass(frozen=True)
class Metrics:
    total_orders: int
    total_revenue: float
    average_order_value: float
    top_selling_items: list[ItemStat]
    top_earning_items: list[ItemStat]
    by_source: list[SourceStat]
    by_category: list[CategoryBreakdown]

    def category(self, name: str) -> CategoryBreakdown | None:
        """Return the precomputed breakdown for one category."""
        for breakdown in self.by_category:
            if breakdown.category == name:
                return breakdown
        return None


@dataclass(frozen=True)
class ReportSnapshot:
    """One full report pass over a record snapshot."""

    report_range: ReportRange
    generated_at: datetime
    orders: list[Order]
    trend: list[TrendPoint]
    metrics: Metrics

    @property
    def has_revenue(self) -> bool:
        return any(point.revenue for point in self.trend)

    def to_dict(self) -> dict[str, Any]:
        return {
            "range": self.report_range.value,
            "generatedAt": self.generated_at.isoformat(),
            "trend": [asdict(point) for point in self.trend],
            "metrics": asdict(self.metrics),
            "orders": [order.to_record() for order in self.orders],
        }


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO instant, returning None for empty or unreadable values."""
    if not value:
        return None
    try:
        parsed = isoparse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _localize(now: datetime) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=tz.tzlocal())
    return now


def _midnight(day: date, zone: tzinfo) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=zone)


def _range_start(report_range: ReportRange, now: datetime) -> datetime | None:
    today_start = _midnight(now.date(), now.tzinfo)
    if report_range == ReportRange.DAILY:
        return today_start
    if report_range == ReportRange.WEEKLY:
        return today_start - timedelta(days=7)
    if report_range == ReportRange.MONTHLY:
        # relativedelta clamps to the end of shorter months (Mar 31 -> Feb 28/29).
        return today_start - relativedelta(months=1)
    return None


def hour_label(hour: int) -> str:
    """12-hour clock label for an hour of day: 0 -> 12AM, 13 -> 1PM."""
    if hour == 0:
        return "12AM"
    if hour < 12:
        return f"{hour}AM"
    if hour == 12:
        return "12PM"
    return f"{hour - 12}PM"


def _day_label(day: date) -> str:
    return f"{MONTH_NAMES[day.month - 1]} {day.day}"


# ---------------------------------------------------------------------------
# Range filter
# ---------------------------------------------------------------------------


def filter_by_range(orders: Iterable[Order], report_range: ReportRange | str, now: datetime) -> list[Order]:
    """Select completed orders placed inside the window ending at ``now``.

    The lower bound is inclusive and there is no upper bound, so completed
    orders stamped in the future still count. Input order is preserved.
    """
    report_range = ReportRange.coerce(report_range)
    start = _range_start(report_range, _localize(now))

    selected: list[Order] = []
    for order in orders:
        if not order.is_completed:
            continue
        if start is None:
            selected.append(order)
            continue
        placed = parse_timestamp(order.timestamp)
        if placed is not None and placed >= start:
            selected.append(order)
    return selected


# ---------------------------------------------------------------------------
# Trend bucketizer
# ---------------------------------------------------------------------------


def _placed_completed(orders: Iterable[Order]) -> list[tuple[Order, datetime]]:
    placed: list[tuple[Order, datetime]] = []
    for order in orders:
        if not order.is_completed:
            continue
        moment = parse_timestamp(order.timestamp)
        if moment is not None:
            placed.append((order, moment))
    return placed


def _revenue_between(placed: list[tuple[Order, datetime]], start: datetime, end: datetime) -> float:
    return sum((order.total for order, moment in placed if start <= moment < end), 0.0)


def compute_trend(orders: Iterable[Order], report_range: ReportRange | str, now: datetime) -> list[TrendPoint]:
    """Bucket completed-order revenue for a trend chart.

    Always returns 24 (daily), 7 (weekly), 4 (monthly) or 6 (all) points,
    oldest first, with empty buckets reported as zero. Pending orders are
    dropped here as well, so any order list can be passed in.
    """
    report_range = ReportRange.coerce(report_range)
    now = _localize(now)
    zone = now.tzinfo
    placed = _placed_completed(orders)
    today = now.date()

    if report_range == ReportRange.DAILY:
        today_start = _midnight(today, zone)
        tomorrow_start = _midnight(today + timedelta(days=1), zone)
        hourly = [0.0] * 24
        for order, moment in placed:
            if today_start <= moment < tomorrow_start:
                hourly[moment.astimezone(zone).hour] += order.total
        return [TrendPoint(hour_label(hour), hourly[hour]) for hour in range(24)]

    if report_range == ReportRange.WEEKLY:
        points = []
        for days_back in range(6, -1, -1):
            day = today - timedelta(days=days_back)
            start = _midnight(day, zone)
            end = _midnight(day + timedelta(days=1), zone)
            points.append(TrendPoint(DAY_NAMES[day.weekday()], _revenue_between(placed, start, end)))
        return points

    if report_range == ReportRange.MONTHLY:
        points = []
        for weeks_back in range(3, -1, -1):
            end = now - timedelta(days=7 * weeks_back)
            start = end - timedelta(days=7)
            # The label shows the last day inside the window, not the exclusive end.
            label = f"{_day_label(start.date())}-{_day_label((end - timedelta(days=1)).date())}"
            points.append(TrendPoint(label, _revenue_between(placed, start, end)))
        return points

    month_start = _midnight(today.replace(day=1), zone)
    points = []
    for months_back in range(5, -1, -1):
        start = month_start - relativedelta(months=months_back)
        end = start + relativedelta(months=1)
        points.append(TrendPoint(MONTH_NAMES[start.month - 1], _revenue_between(placed, start, end)))
    return points


# ---------------------------------------------------------------------------
# Metrics aggregator
# ---------------------------------------------------------------------------


def _percentage(value: float, top: float) -> float:
    if not top:
        # A zero leader still reads as a full bar; anything below it stays empty.
        return 100.0 if value == top else 0.0
    return value / top * 100


def _ranked(values: Mapping[str, float], limit: int | None = None) -> list[tuple[str, float]]:
    # sorted() is stable, so ties keep first-encounter order.
    ranked = sorted(values.items(), key=lambda entry: entry[1], reverse=True)
    return ranked if limit is None else ranked[:limit]


def _category_for(line: OrderItem, category_of: CategoryLookup | None) -> str:
    if line.is_custom:
        return CUSTOM_CATEGORY
    if category_of is None:
        return UNCATEGORIZED
    return category_of(line.name, line.menu_item_id or None) or UNCATEGORIZED


def compute_metrics(
    orders: Iterable[Order],
    category_of: CategoryLookup | None = None,
    source_sort: SourceSort | str = SourceSort.COUNT,
    limit: int = TOP_ITEMS_LIMIT,
) -> Metrics:
    """Aggregate totals and ranked breakdowns over already-filtered orders.

    Items are grouped by display name, so a custom line named like a menu
    item is merged with it. Category attribution goes through
    ``category_of(name, menu_item_id)``; custom lines always land in
    "Custom" and unresolved names in "Uncategorized".
    """
    orders = list(orders)
    source_sort = SourceSort.coerce(source_sort)

    total_orders = len(orders)
    total_revenue = sum((order.total for order in orders), 0.0)
    average_order_value = round(total_revenue / total_orders, 2) if total_orders else 0.0

    item_quantity: Counter[str] = Counter()
    item_revenue: dict[str, float] = {}
    source_count: Counter[str] = Counter()
    source_revenue: dict[str, float] = {}
    category_items: dict[str, Counter[str]] = {}
    category_quantity: Counter[str] = Counter()
    category_revenue: dict[str, float] = {}

    for order in orders:
        source = order.source or UNKNOWN_SOURCE
        source_count[source] += 1
        source_revenue[source] = source_revenue.get(source, 0.0) + order.total

        for line in order.items:
            item_quantity[line.name] += line.quantity
            item_revenue[line.name] = item_revenue.get(line.name, 0.0) + line.line_total

            category = _category_for(line, category_of)
            category_items.setdefault(category, Counter())[line.name] += line.quantity
            category_quantity[category] += line.quantity
            category_revenue[category] = category_revenue.get(category, 0.0) + line.line_total

    selling = _ranked(item_quantity, limit)
    top_quantity = selling[0][1] if selling else 0
    top_selling_items = [
        ItemStat(name, quantity, item_revenue[name], _percentage(quantity, top_quantity))
        for name, quantity in selling
    ]

    earning = _ranked(item_revenue, limit)
    top_revenue = earning[0][1] if earning else 0
    top_earning_items = [
        ItemStat(name, item_quantity[name], revenue, _percentage(revenue, top_revenue))
        for name, revenue in earning
    ]

    by_source = [SourceStat(source, count, source_revenue[source]) for source, count in source_count.items()]
    if source_sort == SourceSort.COUNT:
        by_source.sort(key=lambda stat: stat.count, reverse=True)
    else:
        by_source.sort(key=lambda stat: stat.revenue, reverse=True)

    by_category = []
    for category, quantities in category_items.items():
        ranked = _ranked(quantities)
        top_item_quantity = ranked[0][1] if ranked else 0
        by_category.append(
            CategoryBreakdown(
                category=category,
                total_quantity=category_quantity[category],
                total_revenue=category_revenue[category],
                items=[
                    CategoryItem(name, quantity, _percentage(quantity, top_item_quantity))
                    for name, quantity in ranked
                ],
            )
        )
    by_category.sort(key=lambda breakdown: breakdown.total_revenue, reverse=True)

    logger.debug("metrics orders=%d items=%d categories=%d", total_orders, len(item_quantity), len(by_category))
    return Metrics(
        total_orders=total_orders,
        total_revenue=total_revenue,
        average_order_value=average_order_value,
        top_selling_items=top_selling_items,
        top_earning_items=top_earning_items,
        by_source=by_source,
        by_category=by_category,
    )


def build_report(
    orders: Iterable[Order],
    report_range: ReportRange | str,
    now: datetime,
    category_of: CategoryLookup | None = None,
    source_sort: SourceSort | str = SourceSort.COUNT,
) -> ReportSnapshot:
    """Run filter, trend and metrics once for a record snapshot."""
    report_range = ReportRange.coerce(report_range)
    filtered = filter_by_range(orders, report_range, now)
    return ReportSnapshot(
        report_range=report_range,
        generated_at=now,
        orders=filtered,
        trend=compute_trend(filtered, report_range, now),
        metrics=compute_metrics(filtered, category_of, source_sort),
    )
