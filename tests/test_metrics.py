from __future__ import annotations

import copy
import math
from datetime import datetime, timezone

import pytest

from order_taker.data import category_lookup
from order_taker.models import Order
from order_taker.reports import (
    ReportRange,
    SourceSort,
    SourceStat,
    build_report,
    compute_metrics,
)


def test_no_orders_gives_zeroes():
    metrics = compute_metrics([])
    assert metrics.total_orders == 0
    assert metrics.total_revenue == 0
    assert metrics.average_order_value == 0
    assert metrics.top_selling_items == []
    assert metrics.top_earning_items == []
    assert metrics.by_source == []
    assert metrics.by_category == []


def test_totals_and_single_source(make_order):
    orders = [
        make_order("a", total=100),
        make_order("b", total=200),
        make_order("c", total=300),
    ]
    metrics = compute_metrics(orders)
    assert metrics.total_orders == 3
    assert metrics.total_revenue == 600
    assert metrics.average_order_value == 200
    assert metrics.by_source == [SourceStat("Walk-in", 3, 600)]


def test_average_is_rounded_to_cents(make_order):
    orders = [make_order(str(idx), total=total) for idx, total in enumerate([100, 100, 100, 100, 100, 100, 33])]
    assert compute_metrics(orders).average_order_value == 90.43


def test_top_selling_and_top_earning(make_order, make_item):
    orders = [
        make_order("a", items=[make_item("Cookie", base_price=10, quantity=50)]),
        make_order("b", items=[make_item("Cake", base_price=200, quantity=2)]),
    ]
    metrics = compute_metrics(orders)
    assert metrics.top_selling_items[0].name == "Cookie"
    assert metrics.top_selling_items[0].total_quantity == 50
    assert metrics.top_earning_items[0].name == "Cookie"
    assert metrics.top_earning_items[0].total_revenue == 500
    assert metrics.top_earning_items[1].total_revenue == 400


def test_rankings_can_diverge(make_order, make_item):
    order = make_order(
        items=[
            make_item("Cookie", base_price=10, quantity=50),
            make_item("Cake", base_price=300, quantity=2),
        ]
    )
    metrics = compute_metrics([order])
    assert [item.name for item in metrics.top_selling_items] == ["Cookie", "Cake"]
    assert [item.name for item in metrics.top_earning_items] == ["Cake", "Cookie"]


def test_percentages_relative_to_leader(make_order, make_item):
    order = make_order(
        items=[
            make_item("Cookie", base_price=10, quantity=50),
            make_item("Cake", base_price=200, quantity=2),
        ]
    )
    metrics = compute_metrics([order])
    assert metrics.top_selling_items[0].percentage == 100
    assert metrics.top_selling_items[1].percentage == 4
    assert metrics.top_earning_items[1].percentage == 80
    for item in metrics.top_selling_items + metrics.top_earning_items:
        assert 0 <= item.percentage <= 100


def test_zero_priced_leader_still_reads_full(make_order, make_item):
    order = make_order(
        items=[
            make_item("Sample", base_price=0, quantity=3),
            make_item("Tasting", base_price=0, quantity=1, menu_item_id="i2"),
        ]
    )
    metrics = compute_metrics([order])
    assert [item.percentage for item in metrics.top_earning_items] == [100, 100]
    assert [item.percentage for item in metrics.top_selling_items] == [100, pytest.approx(100 / 3)]


def test_top_lists_are_capped(make_order, make_item):
    items = [make_item(f"Item {idx}", base_price=10, quantity=idx + 1, menu_item_id=f"i{idx}") for idx in range(12)]
    metrics = compute_metrics([make_order(items=items)])
    assert len(metrics.top_selling_items) == 10
    assert len(metrics.top_earning_items) == 10
    assert metrics.top_selling_items[0].name == "Item 11"


def test_ties_keep_first_seen_order(make_order, make_item):
    orders = [
        make_order("a", items=[make_item("Bread", base_price=5, quantity=2)]),
        make_order("b", items=[make_item("Apple", base_price=5, quantity=2)]),
    ]
    metrics = compute_metrics(orders)
    assert [item.name for item in metrics.top_selling_items] == ["Bread", "Apple"]


def test_items_are_grouped_by_name_across_orders(make_order, make_item):
    orders = [
        make_order("a", items=[make_item("Latte", quantity=2, menu_item_id="m1")]),
        make_order("b", items=[make_item("Latte", quantity=1, menu_item_id="custom-1")]),
    ]
    metrics = compute_metrics(orders)
    assert len(metrics.top_selling_items) == 1
    assert metrics.top_selling_items[0].total_quantity == 3
    assert metrics.top_selling_items[0].total_revenue == 360


def test_blank_source_is_reported_as_unknown(make_order):
    metrics = compute_metrics([make_order(source="")])
    assert metrics.by_source[0].source == "Unknown"


def test_source_sort_options(make_order):
    orders = [
        make_order("a1", total=10, source="Walk-in"),
        make_order("a2", total=10, source="Walk-in"),
        make_order("a3", total=10, source="Walk-in"),
        make_order("b1", total=100, source="Facebook"),
    ]
    by_count = compute_metrics(orders).by_source
    by_revenue = compute_metrics(orders, source_sort=SourceSort.REVENUE).by_source
    assert [stat.source for stat in by_count] == ["Walk-in", "Facebook"]
    assert [stat.source for stat in by_revenue] == ["Facebook", "Walk-in"]
    assert compute_metrics(orders, source_sort="revenue").by_source == by_revenue
    with pytest.raises(ValueError, match="Unknown source sort"):
        compute_metrics(orders, source_sort="name")


def test_source_counts_add_up(make_order):
    orders = [make_order(str(idx), source=source) for idx, source in enumerate(["A", "B", "A", "", "C", "A"])]
    metrics = compute_metrics(orders)
    assert sum(stat.count for stat in metrics.by_source) == metrics.total_orders
    assert sum(stat.revenue for stat in metrics.by_source) == metrics.total_revenue


def test_categories_from_menu(make_order, make_item, menu):
    order = make_order(
        items=[
            make_item("Latte", base_price=120, quantity=2, menu_item_id="m1"),
            make_item("Iced Tea", base_price=90, quantity=3, menu_item_id="m2"),
            make_item("Cookie", base_price=10, quantity=5, menu_item_id="m3"),
            make_item("Birthday Banner", base_price=75, quantity=1, menu_item_id="custom-17"),
            make_item("Retired Item", base_price=40, quantity=1, menu_item_id="gone"),
        ]
    )
    metrics = compute_metrics([order], category_lookup(menu))

    assert [breakdown.category for breakdown in metrics.by_category] == [
        "Drinks",
        "Custom",
        "Dessert",
        "Uncategorized",
    ]
    drinks = metrics.category("Drinks")
    assert drinks.total_quantity == 5
    assert drinks.total_revenue == 510
    assert [(item.name, item.quantity, item.percentage) for item in drinks.items] == [
        ("Iced Tea", 3, 100),
        ("Latte", 2, pytest.approx(200 / 3)),
    ]
    assert metrics.category("Custom").items[0].name == "Birthday Banner"
    assert metrics.category("Uncategorized").items[0].name == "Retired Item"
    assert metrics.category("Seasonal") is None


def test_custom_lines_win_over_lookup(make_order, make_item):
    order = make_order(items=[make_item("Latte", menu_item_id="custom-3")])
    metrics = compute_metrics([order], lambda name, menu_item_id: "Drinks")
    assert [breakdown.category for breakdown in metrics.by_category] == ["Custom"]


def test_blank_lookup_result_is_uncategorized(make_order, make_item, menu):
    order = make_order(items=[make_item("Mystery Box", base_price=50, menu_item_id="m5")])
    assert compute_metrics([order], lambda name, menu_item_id: "").by_category[0].category == "Uncategorized"
    assert compute_metrics([order], category_lookup(menu)).by_category[0].category == "Uncategorized"


def test_without_lookup_everything_is_uncategorized(make_order, make_item):
    order = make_order(items=[make_item("Latte"), make_item("Scone", menu_item_id="custom-1")])
    categories = {breakdown.category for breakdown in compute_metrics([order]).by_category}
    assert categories == {"Uncategorized", "Custom"}


def test_category_revenue_matches_item_revenue(make_order, make_item, menu):
    orders = [
        make_order("a", items=[make_item("Latte", quantity=2), make_item("Cake", base_price=200)]),
        make_order("b", items=[make_item("Cookie", base_price=10, quantity=7), make_item("Odd", menu_item_id="custom-9")]),
    ]
    metrics = compute_metrics(orders, category_lookup(menu))
    assert sum(b.total_revenue for b in metrics.by_category) == sum(i.total_revenue for i in metrics.top_earning_items)
    assert sum(b.total_revenue for b in metrics.by_category) == metrics.total_revenue


def test_metrics_are_repeatable_and_leave_input_alone(make_order, make_item, menu):
    orders = [
        make_order("a", items=[make_item("Latte", quantity=2)], source="Walk-in"),
        make_order("b", items=[make_item("Cake", base_price=200)], source="Facebook"),
    ]
    snapshot = copy.deepcopy(orders)
    first = compute_metrics(orders, category_lookup(menu))
    second = compute_metrics(orders, category_lookup(menu))
    assert first == second
    assert orders == snapshot


def test_unreadable_total_propagates_as_nan(make_order):
    broken = Order.from_record({"customerName": "X", "source": "Walk-in", "status": "completed", "total": "abc"})
    metrics = compute_metrics([make_order(total=100), broken])
    assert math.isnan(metrics.total_revenue)
    assert math.isnan(metrics.average_order_value)
    assert metrics.total_orders == 2


def test_build_report_ties_filter_trend_and_metrics(make_order, make_item, menu):
    now = datetime(2026, 2, 22, 14, 0, tzinfo=timezone.utc)
    orders = [
        make_order("today", items=[make_item("Latte", quantity=2)], timestamp="2026-02-22T10:00:00Z"),
        make_order("old", items=[make_item("Cake", base_price=200)], timestamp="2026-01-02T10:00:00Z"),
    ]
    snapshot = build_report(orders, "daily", now, category_lookup(menu))
    assert snapshot.report_range == ReportRange.DAILY
    assert [order.id for order in snapshot.orders] == ["today"]
    assert snapshot.metrics.total_revenue == 240
    assert snapshot.trend[10].revenue == 240
    assert snapshot.has_revenue

    payload = snapshot.to_dict()
    assert payload["range"] == "daily"
    assert len(payload["trend"]) == 24
    assert payload["metrics"]["by_category"][0]["category"] == "Drinks"
    assert [record["id"] for record in payload["orders"]] == ["today"]
    assert payload["orders"][0]["status"] == "completed"


def test_empty_report_has_no_revenue():
    now = datetime(2026, 2, 22, 14, 0, tzinfo=timezone.utc)
    snapshot = build_report([], ReportRange.WEEKLY, now)
    assert not snapshot.has_revenue
    assert snapshot.metrics.total_orders == 0
