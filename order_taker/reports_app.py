"""Textual app for browsing sales reports."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, VerticalScroll
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.widgets import Header, Static

from order_taker.config import CURRENCY
from order_taker.data import category_lookup
from order_taker.models import MenuItem, Order
from order_taker.rendering import (
    render_by_category,
    render_by_source,
    render_metric_cards,
    render_range_header,
    render_top_earning,
    render_top_selling,
    render_trend_section,
)
from order_taker.reports import CategoryBreakdown, ReportRange, ReportSnapshot, build_report

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class ReportsApp(App):
    """Sales reports over a record snapshot, with expandable categories.

    The report is computed once per load or range change. Expanding and
    collapsing categories only re-renders the precomputed breakdown.
    """

    TITLE = "Order Taker"
    SUB_TITLE = "Reports"

    CSS = """
    Screen {
        layout: vertical;
    }

    #status-bar {
        height: 4;
        border: heavy $secondary;
        padding: 0 1;
    }

    #report-body {
        height: 1fr;
    }

    .row {
        height: auto;
    }

    .card {
        height: auto;
        border: round $primary;
        padding: 0 1;
    }

    .row > .card {
        width: 1fr;
    }
    """

    SECTION_TITLES = {
        "summary": "Summary",
        "trend": "Revenue Trend",
        "top-selling": "Top Selling Items",
        "top-earning": "Top Earning Items",
        "by-source": "Orders By Source",
        "by-category": "Orders By Category",
    }

    report_range = reactive(ReportRange.DAILY)
    category_cursor = reactive(0)

    BINDINGS = [
        ("d", "select_range('daily')", "Daily"),
        ("w", "select_range('weekly')", "Weekly"),
        ("m", "select_range('monthly')", "Monthly"),
        ("a", "select_range('all')", "All"),
        ("j", "move_cursor(1)", "Next category"),
        ("k", "move_cursor(-1)", "Previous category"),
        Binding("down", "move_cursor(1)", "Next category", priority=True),
        Binding("up", "move_cursor(-1)", "Previous category", priority=True),
        Binding("enter", "toggle_category", "Expand/collapse", priority=True),
        ("r", "reload", "Reload"),
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        load_orders: Callable[[], Iterable[Order]],
        load_menu: Callable[[], Iterable[MenuItem]] | None = None,
        clock: Callable[[], datetime] | None = None,
        currency: str = CURRENCY,
    ) -> None:
        super().__init__()
        self._load_orders = load_orders
        self._load_menu = load_menu or list
        self._report_clock = clock or _local_now
        self.currency = currency
        self.orders: list[Order] = []
        self.menu_items: list[MenuItem] = []
        self.snapshot: ReportSnapshot | None = None
        self.expanded: set[str] = set()
        self.system_status = ""

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id="status-bar")
        with VerticalScroll(id="report-body"):
            yield Static(id="summary", classes="card")
            yield Static(id="trend", classes="card")
            with Horizontal(classes="row"):
                yield Static(id="top-selling", classes="card")
                yield Static(id="top-earning", classes="card")
            with Horizontal(classes="row"):
                yield Static(id="by-source", classes="card")
                yield Static(id="by-category", classes="card")

    def on_mount(self) -> None:
        for widget_id, title in self.SECTION_TITLES.items():
            self.query_one(f"#{widget_id}", Static).border_title = title
        self.action_reload()

    def action_reload(self) -> None:
        try:
            orders = list(self._load_orders())
            menu_items = list(self._load_menu())
        except Exception as exc:
            # A broken record store should leave the last report on screen.
            logger.exception("report reload failed")
            self.system_status = f"Reload failed: {exc}"
        else:
            self.orders, self.menu_items = orders, menu_items
            today = self._report_clock().date()
            due = sum(1 for order in orders if not order.is_completed and order.is_due_on(today))
            self.system_status = f"Loaded {len(orders)} orders, {due} pending due today"
            logger.info("report reload orders=%d menu_items=%d due=%d", len(orders), len(menu_items), due)
        self._recompute()

    def action_select_range(self, value: str) -> None:
        report_range = ReportRange.coerce(value)
        if report_range == self.report_range and self.snapshot is not None:
            return
        self.report_range = report_range
        self.category_cursor = 0
        self._recompute()

    def action_move_cursor(self, delta: int) -> None:
        categories = self._categories()
        if not categories:
            return
        self.category_cursor = (self.category_cursor + delta) % len(categories)
        self._refresh_categories()

    def action_toggle_category(self) -> None:
        categories = self._categories()
        if not categories:
            return
        name = categories[self.category_cursor].category
        if name in self.expanded:
            self.expanded.discard(name)
        else:
            self.expanded.add(name)
        self._refresh_categories()

    def _categories(self) -> list[CategoryBreakdown]:
        if self.snapshot is None:
            return []
        return self.snapshot.metrics.by_category

    def _recompute(self) -> None:
        self.snapshot = build_report(
            self.orders,
            self.report_range,
            self._report_clock(),
            category_lookup(self.menu_items),
        )
        metrics = self.snapshot.metrics
        self.expanded = {name for name in self.expanded if metrics.category(name) is not None}
        categories = self._categories()
        if self.category_cursor >= len(categories):
            self.category_cursor = 0
        self._refresh_all()

    def _refresh_all(self) -> None:
        if self.snapshot is None:
            return
        try:
            status_bar = self.query_one("#status-bar", Static)
        except NoMatches:
            return

        status = render_range_header(self.snapshot)
        status.append("\n")
        status.append("D/W/M/A range  J/K move  Enter expand  R reload", style="dim")
        if self.system_status:
            status.append(f"  {self.system_status}", style="italic")
        status_bar.update(status)

        metrics = self.snapshot.metrics
        self.query_one("#summary", Static).update(render_metric_cards(metrics, self.currency))
        self.query_one("#trend", Static).update(render_trend_section(self.snapshot, self.currency))
        self.query_one("#top-selling", Static).update(render_top_selling(metrics.top_selling_items))
        self.query_one("#top-earning", Static).update(render_top_earning(metrics.top_earning_items, self.currency))
        self.query_one("#by-source", Static).update(render_by_source(metrics, self.currency))
        self._refresh_categories()

    def _refresh_categories(self) -> None:
        if self.snapshot is None:
            return
        try:
            widget = self.query_one("#by-category", Static)
        except NoMatches:
            return
        cursor = self.category_cursor if self._categories() else None
        rendered: Text = render_by_category(self.snapshot.metrics, self.currency, self.expanded, cursor)
        widget.update(rendered)
