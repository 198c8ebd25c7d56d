"""Domain models for order-taker."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping

from order_taker.constant import CUSTOM_ITEM_PREFIX, UNCATEGORIZED


class OrderStatus(str, Enum):
    """Pipeline state of an order."""

    PENDING = "pending"
    COMPLETED = "completed"


def utc_iso(moment: datetime) -> str:
    """Serialize an instant the way the record store keeps timestamps."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_number(value: Any) -> float:
    """Missing numbers count as zero; unreadable ones become NaN so they show up in totals."""
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _as_quantity(value: Any) -> int | float:
    number = _as_number(value)
    if math.isfinite(number) and number == int(number):
        return int(number)
    return number


def _as_status(value: Any) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        return OrderStatus.PENDING


@dataclass(frozen=True)
class OrderItem:
    """One order line. The price is the one charged when the order was taken."""

    menu_item_id: str
    name: str
    base_price: float
    quantity: int
    note: str = ""

    @property
    def line_total(self) -> float:
        return self.base_price * self.quantity

    @property
    def is_custom(self) -> bool:
        """Ad hoc lines typed in at the counter rather than picked from the menu."""
        return self.menu_item_id.startswith(CUSTOM_ITEM_PREFIX)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> OrderItem:
        return cls(
            menu_item_id=_as_text(record.get("menuItemId")),
            name=_as_text(record.get("name")),
            base_price=_as_number(record.get("basePrice")),
            quantity=_as_quantity(record.get("quantity")),
            note=_as_text(record.get("note")),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "menuItemId": self.menu_item_id,
            "name": self.name,
            "basePrice": self.base_price,
            "quantity": self.quantity,
            "note": self.note,
        }


def compute_total(items: Iterable[OrderItem]) -> float:
    """Sum of unit price times quantity across order lines."""
    return sum((item.line_total for item in items), 0.0)


@dataclass
class Order:
    """A customer order as kept by the record store.

    Lifecycle helpers return new instances and leave the receiver untouched,
    so report inputs can be shared freely.
    """

    id: str = ""
    customer_name: str = ""
    items: list[OrderItem] = field(default_factory=list)
    notes: str = ""
    pickup_date: str = ""
    pickup_time: str = ""
    source: str = ""
    status: OrderStatus = OrderStatus.PENDING
    total: float = 0.0
    timestamp: str = ""
    completed_at: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == OrderStatus.COMPLETED

    def complete(self, now: datetime) -> Order:
        return replace(self, status=OrderStatus.COMPLETED, completed_at=utc_iso(now))

    def return_to_pending(self) -> Order:
        return replace(self, status=OrderStatus.PENDING, completed_at=None)

    def with_items(self, items: Iterable[OrderItem]) -> Order:
        """Replace the order lines; lines with no quantity left are dropped."""
        kept = [item for item in items if item.quantity > 0]
        return replace(self, items=kept, total=compute_total(kept))

    def duplicate(self, now: datetime) -> Order:
        """Seed a fresh pending order from this one, without a pickup slot."""
        return Order(
            customer_name=self.customer_name,
            items=list(self.items),
            notes=self.notes,
            source=self.source,
            status=OrderStatus.PENDING,
            total=self.total,
            timestamp=utc_iso(now),
        )

    def is_due_on(self, day: date) -> bool:
        # Orders are often taken days ahead, so the pickup date decides, not the timestamp.
        return self.pickup_date == day.isoformat()

    @classmethod
    def from_record(cls, record: Mapping[str, Any], order_id: str | None = None) -> Order:
        """Build an order from a raw stored record, defaulting anything missing."""
        raw_items = record.get("items")
        if raw_items is None and record.get("itemName"):
            # Legacy records held a single item inline.
            quantity = _as_quantity(record.get("quantity")) or 1
            items = [
                OrderItem(
                    menu_item_id="",
                    name=_as_text(record.get("itemName")),
                    base_price=_as_number(record.get("total")) / quantity,
                    quantity=quantity,
                    note=_as_text(record.get("notes")),
                )
            ]
        else:
            if not isinstance(raw_items, (list, tuple)):
                raw_items = []
            items = [OrderItem.from_record(item) for item in raw_items if isinstance(item, Mapping)]

        completed_at = record.get("completedAt")
        return cls(
            id=order_id if order_id is not None else _as_text(record.get("id")),
            customer_name=_as_text(record.get("customerName")),
            items=items,
            notes=_as_text(record.get("notes")),
            pickup_date=_as_text(record.get("pickupDate")),
            pickup_time=_as_text(record.get("pickupTime")),
            source=_as_text(record.get("source")),
            status=_as_status(record.get("status")),
            total=_as_number(record.get("total")),
            timestamp=_as_text(record.get("timestamp")),
            completed_at=_as_text(completed_at) if completed_at else None,
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "items": [item.to_record() for item in self.items],
            "notes": self.notes,
            "pickupDate": self.pickup_date,
            "pickupTime": self.pickup_time,
            "source": self.source,
            "status": self.status.value,
            "total": self.total,
            "timestamp": self.timestamp,
            "completedAt": self.completed_at,
        }


@dataclass(frozen=True)
class MenuItem:
    """A catalog entry. Reports only use it to attribute categories."""

    id: str
    name: str
    base_price: float
    category: str = UNCATEGORIZED
    available: bool = True

    @classmethod
    def from_record(cls, record: Mapping[str, Any], item_id: str | None = None) -> MenuItem:
        return cls(
            id=item_id if item_id is not None else _as_text(record.get("id")),
            name=_as_text(record.get("name")),
            base_price=_as_number(record.get("basePrice")),
            category=_as_text(record.get("category")) or UNCATEGORIZED,
            available=bool(record.get("available", True)),
        )
