from __future__ import annotations

import logging

import pytest

from order_taker.logger import LOGGER_NAME
from order_taker.models import MenuItem, Order, OrderItem, OrderStatus


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def make_item():
    def _make(name: str = "Latte", base_price: float = 120, quantity: int = 1, menu_item_id: str = "i1", note: str = "") -> OrderItem:
        return OrderItem(menu_item_id=menu_item_id, name=name, base_price=base_price, quantity=quantity, note=note)

    return _make


@pytest.fixture
def make_order(make_item):
    def _make(
        order_id: str = "o1",
        *,
        items: list[OrderItem] | None = None,
        total: float | None = None,
        source: str = "Walk-in",
        status: OrderStatus = OrderStatus.COMPLETED,
        timestamp: str = "2026-02-22T10:00:00Z",
        **overrides,
    ) -> Order:
        items = items if items is not None else [make_item()]
        if total is None:
            total = sum(item.base_price * item.quantity for item in items)
        return Order(
            id=order_id,
            customer_name=overrides.pop("customer_name", "Test Customer"),
            items=items,
            source=source,
            status=status,
            total=total,
            timestamp=timestamp,
            completed_at=overrides.pop("completed_at", "2026-02-22T14:00:00.000Z" if status == OrderStatus.COMPLETED else None),
            **overrides,
        )

    return _make


@pytest.fixture
def menu() -> list[MenuItem]:
    return [
        MenuItem(id="m1", name="Latte", base_price=120, category="Drinks"),
        MenuItem(id="m2", name="Iced Tea", base_price=90, category="Drinks"),
        MenuItem(id="m3", name="Cookie", base_price=10, category="Dessert"),
        MenuItem(id="m4", name="Cake", base_price=200, category="Dessert"),
        MenuItem(id="m5", name="Mystery Box", base_price=50, category=""),
    ]
