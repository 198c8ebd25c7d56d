"""Formatting helpers and Rich renderables for sales reports."""

from __future__ import annotations

from datetime import date

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from order_taker.config import CURRENCY
from order_taker.constant import DAY_NAMES, MONTH_NAMES
from order_taker.data import currency_config
from order_taker.reports import ItemStat, Metrics, ReportRange, ReportSnapshot, TrendPoint

EMPTY_SECTION = "No data yet"
EMPTY_TREND = "No revenue data yet"

BAR_WIDTH = 24
_BAR_FILLED = "█"
_BAR_EMPTY = "░"

RANGE_TITLES: dict[ReportRange, str] = {
    ReportRange.DAILY: "Today",
    ReportRange.WEEKLY: "Last 7 days",
    ReportRange.MONTHLY: "Last month",
    ReportRange.ALL: "All time",
}


def format_price(amount: float, currency: str = CURRENCY) -> str:
    """Format an amount with the currency symbol and two decimals."""
    return f"{currency_config(currency).symbol}{amount:.2f}"


def format_display_date(date_str: str, time_str: str | None = None) -> str:
    """Format ``YYYY-MM-DD`` and optional ``HH:MM`` as "Sun, Feb 22 at 2:30 PM"."""
    if not date_str:
        return ""

    day = date.fromisoformat(date_str)
    result = f"{DAY_NAMES[day.weekday()]}, {MONTH_NAMES[day.month - 1]} {day.day}"

    if time_str:
        hours, minutes = (int(part) for part in time_str.split(":"))
        period = "PM" if hours >= 12 else "AM"
        display_hours = 12 if hours == 0 else hours - 12 if hours > 12 else hours
        result += f" at {display_hours}:{minutes:02d} {period}"

    return result


def range_badge_style(report_range: ReportRange) -> str:
    """Return a consistent badge style for the selected range."""
    if report_range == ReportRange.DAILY:
        return "bold #ffffff on #b23a48"
    if report_range == ReportRange.WEEKLY:
        return "bold #ffffff on #2f6db5"
    if report_range == ReportRange.MONTHLY:
        return "bold #0b1f0f on #5fbf72"
    return "bold #1f1400 on #e0a54a"


def progress_bar(percentage: float, width: int = BAR_WIDTH) -> Text:
    """Render a 0-100 share as a fixed-width bar; NaN renders empty."""
    share = percentage if percentage >= 0 else 0.0
    filled = round(min(share, 100.0) / 100 * width)
    text = Text()
    text.append(_BAR_FILLED * filled, style="#e0a54a")
    text.append(_BAR_EMPTY * (width - filled), style="dim")
    return text


def render_range_header(snapshot: ReportSnapshot) -> Text:
    text = Text()
    text.append(f" {snapshot.report_range.value.upper()} ", style=range_badge_style(snapshot.report_range))
    text.append(f" {RANGE_TITLES[snapshot.report_range]}")
    generated = snapshot.generated_at
    as_of = format_display_date(generated.date().isoformat(), generated.strftime("%H:%M"))
    text.append(f"  as of {as_of}", style="dim")
    return text


def render_metric_cards(metrics: Metrics, currency: str = CURRENCY) -> Table:
    """Total orders, revenue and average order value side by side."""
    table = Table.grid(expand=True, padding=(0, 2))
    for _ in range(3):
        table.add_column(ratio=1)
    table.add_row(
        Text("TOTAL ORDERS", style="dim"),
        Text("REVENUE", style="dim"),
        Text("AVG. ORDER", style="dim"),
    )
    table.add_row(
        Text(str(metrics.total_orders), style="bold"),
        Text(format_price(metrics.total_revenue, currency), style="bold"),
        Text(format_price(metrics.average_order_value, currency), style="bold"),
    )
    return table


def render_trend(points: list[TrendPoint], currency: str = CURRENCY) -> Text:
    """Horizontal bar chart of trend points, one row per bucket."""
    if not points:
        return Text(EMPTY_TREND, style="dim")

    peak = max(point.revenue for point in points)
    label_width = max(len(point.label) for point in points)
    text = Text()
    for idx, point in enumerate(points):
        if idx > 0:
            text.append("\n")
        share = point.revenue / peak * 100 if peak else 0.0
        text.append(point.label.rjust(label_width) + " ")
        text.append_text(progress_bar(share))
        text.append(f" {format_price(point.revenue, currency)}")
    return text


def render_trend_section(snapshot: ReportSnapshot, currency: str = CURRENCY) -> Text:
    if not snapshot.has_revenue:
        return Text(EMPTY_TREND, style="dim")
    return render_trend(snapshot.trend, currency)


def _ranked_rows(items: list[ItemStat], value_text: list[str]) -> Text:
    if not items:
        return Text(EMPTY_SECTION, style="dim")

    text = Text()
    for idx, (item, value) in enumerate(zip(items, value_text)):
        if idx > 0:
            text.append("\n")
        text.append(f"{idx + 1:>2}. ", style="bold")
        text.append(item.name)
        text.append(f"  {value}\n", style="dim")
        text.append("    ")
        text.append_text(progress_bar(item.percentage))
    return text


def render_top_selling(items: list[ItemStat]) -> Text:
    """Top items by quantity. Shows counts only."""
    return _ranked_rows(items, [f"{item.total_quantity:g} sold" for item in items])


def render_top_earning(items: list[ItemStat], currency: str = CURRENCY) -> Text:
    """Top items by revenue. Shows amounts only."""
    return _ranked_rows(items, [format_price(item.total_revenue, currency) for item in items])


def render_by_source(metrics: Metrics, currency: str = CURRENCY) -> Text:
    if not metrics.by_source:
        return Text(EMPTY_SECTION, style="dim")

    text = Text()
    for idx, stat in enumerate(metrics.by_source):
        if idx > 0:
            text.append("\n")
        share = stat.count / metrics.total_orders * 100 if metrics.total_orders else 0.0
        text.append(stat.source, style="bold")
        text.append(f"  {stat.count} orders ({share:.0f}%)", style="dim")
        text.append(f"  {format_price(stat.revenue, currency)}\n")
        text.append_text(progress_bar(share))
    return text


def render_by_category(
    metrics: Metrics,
    currency: str = CURRENCY,
    expanded: frozenset[str] | set[str] = frozenset(),
    cursor: int | None = None,
) -> Text:
    """Categories by revenue; expanded ones list their items by quantity."""
    if not metrics.by_category:
        return Text(EMPTY_SECTION, style="dim")

    text = Text()
    for idx, breakdown in enumerate(metrics.by_category):
        if idx > 0:
            text.append("\n")
        is_open = breakdown.category in expanded
        pointer = "➤ " if idx == cursor else "  "
        share = breakdown.total_revenue / metrics.total_revenue * 100 if metrics.total_revenue else 0.0
        text.append(pointer)
        text.append("▾ " if is_open else "▸ ")
        text.append(breakdown.category, style="bold")
        text.append(f"  {breakdown.total_quantity:g} sold", style="dim")
        text.append(f"  {format_price(breakdown.total_revenue, currency)}\n")
        text.append("    ")
        text.append_text(progress_bar(share))

        if not is_open:
            continue
        for item in breakdown.items:
            text.append(f"\n      {item.name}")
            text.append(f"  {item.quantity:g}\n", style="dim")
            text.append("      ")
            text.append_text(progress_bar(item.percentage, width=BAR_WIDTH - 2))
    return text


def render_report(
    snapshot: ReportSnapshot,
    currency: str = CURRENCY,
    expanded: frozenset[str] | set[str] = frozenset(),
) -> Group:
    """Full report as stacked panels, for printing to a console."""
    metrics = snapshot.metrics
    return Group(
        render_range_header(snapshot),
        Panel(render_metric_cards(metrics, currency), title="Summary", border_style="#e0a54a"),
        Panel(render_trend_section(snapshot, currency), title="Revenue Trend"),
        Panel(render_top_selling(metrics.top_selling_items), title="Top Selling Items"),
        Panel(render_top_earning(metrics.top_earning_items, currency), title="Top Earning Items"),
        Panel(render_by_source(metrics, currency), title="Orders By Source"),
        Panel(render_by_category(metrics, currency, expanded), title="Orders By Category"),
    )
