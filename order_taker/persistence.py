"""SQLite record store for orders and the menu catalog."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Mapping
from uuid import uuid4

from order_taker.config import DB_PATH, ORDERS_LIMIT
from order_taker.models import MenuItem, Order, OrderItem, OrderStatus, utc_iso

logger = logging.getLogger(__name__)

_ORDER_COLUMNS = (
    "id, customer_name, notes, pickup_date, pickup_time, source, status, total, timestamp, completed_at"
)


def _utc_now_iso() -> str:
    return utc_iso(datetime.now(timezone.utc))


@contextmanager
def _connect(db_path: str | Path | None = None) -> Iterator[sqlite3.Connection]:
    db_file = Path(db_path if db_path is not None else DB_PATH)
    db_file.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_file)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def bootstrap_schema(db_path: str | Path | None = None) -> None:
    """Create persistence schema if it does not already exist."""
    with _connect(db_path) as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS orders (
                id TEXT PRIMARY KEY,
                customer_name TEXT NOT NULL,
                notes TEXT NOT NULL DEFAULT '',
                pickup_date TEXT NOT NULL DEFAULT '',
                pickup_time TEXT NOT NULL DEFAULT '',
                source TEXT NOT NULL,
                status TEXT NOT NULL,
                total REAL NOT NULL,
                timestamp TEXT NOT NULL,
                completed_at TEXT
            );

            CREATE TABLE IF NOT EXISTS order_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                order_id TEXT NOT NULL,
                line_index INTEGER NOT NULL,
                menu_item_id TEXT NOT NULL,
                name TEXT NOT NULL,
                base_price REAL NOT NULL,
                quantity INTEGER NOT NULL,
                note TEXT NOT NULL DEFAULT '',
                FOREIGN KEY(order_id) REFERENCES orders(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS menu_items (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                base_price REAL NOT NULL,
                category TEXT NOT NULL,
                available INTEGER NOT NULL DEFAULT 1
            );

            CREATE INDEX IF NOT EXISTS idx_order_items_order_id_line
                ON order_items(order_id, line_index);

            CREATE INDEX IF NOT EXISTS idx_orders_timestamp
                ON orders(timestamp);
            """
        )


def _checked(order: Order) -> Order:
    """Drop emptied lines, refresh the total and enforce required fields.

    ``completed_at`` is kept only on completed orders; a completed order
    without one is stamped with the current time.
    """
    order = order.with_items(order.items)
    if not order.customer_name.strip():
        raise ValueError("Customer name is required")
    if not order.source.strip():
        raise ValueError("Source is required")
    if not order.items:
        raise ValueError("At least one item is required")
    if not order.is_completed:
        return replace(order, status=OrderStatus.PENDING, completed_at=None)
    if not order.completed_at:
        return replace(order, completed_at=_utc_now_iso())
    return order


def _insert_items(conn: sqlite3.Connection, order_id: str, items: list[OrderItem]) -> None:
    for idx, item in enumerate(items):
        conn.execute(
            """
            INSERT INTO order_items (order_id, line_index, menu_item_id, name, base_price, quantity, note)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (order_id, idx, item.menu_item_id, item.name, item.base_price, item.quantity, item.note),
        )


def _order_from_row(row: sqlite3.Row, items: list[OrderItem]) -> Order:
    return Order(
        id=row["id"],
        customer_name=row["customer_name"],
        items=items,
        notes=row["notes"],
        pickup_date=row["pickup_date"],
        pickup_time=row["pickup_time"],
        source=row["source"],
        status=OrderStatus(row["status"]),
        total=row["total"],
        timestamp=row["timestamp"],
        completed_at=row["completed_at"],
    )


def _item_from_row(row: sqlite3.Row) -> OrderItem:
    return OrderItem(
        menu_item_id=row["menu_item_id"],
        name=row["name"],
        base_price=row["base_price"],
        quantity=row["quantity"],
        note=row["note"],
    )


def _items_by_order(conn: sqlite3.Connection, order_ids: list[str]) -> dict[str, list[OrderItem]]:
    items: dict[str, list[OrderItem]] = {order_id: [] for order_id in order_ids}
    if not order_ids:
        return items
    placeholders = ", ".join("?" for _ in order_ids)
    rows = conn.execute(
        f"SELECT * FROM order_items WHERE order_id IN ({placeholders}) ORDER BY order_id, line_index",
        order_ids,
    )
    for row in rows:
        items[row["order_id"]].append(_item_from_row(row))
    return items


def save_order(order: Order, db_path: str | Path | None = None) -> Order:
    """Persist a new order and return it with its assigned id and total."""
    order = _checked(order)
    order = replace(order, id=uuid4().hex, timestamp=order.timestamp or _utc_now_iso())

    with _connect(db_path) as conn:
        with conn:
            conn.execute(
                f"INSERT INTO orders ({_ORDER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    order.id,
                    order.customer_name,
                    order.notes,
                    order.pickup_date,
                    order.pickup_time,
                    order.source,
                    OrderStatus(order.status).value,
                    order.total,
                    order.timestamp,
                    order.completed_at,
                ),
            )
            _insert_items(conn, order.id, order.items)

    logger.info("order saved id=%s items=%d total=%.2f", order.id, len(order.items), order.total)
    return order


def load_orders(limit: int = ORDERS_LIMIT, db_path: str | Path | None = None) -> list[Order]:
    """Load the most recent orders, newest first."""
    with _connect(db_path) as conn:
        rows = conn.execute(
            f"SELECT {_ORDER_COLUMNS} FROM orders ORDER BY timestamp DESC LIMIT ?",
            (limit,),
        ).fetchall()
        items = _items_by_order(conn, [row["id"] for row in rows])
    return [_order_from_row(row, items[row["id"]]) for row in rows]


def get_order(order_id: str, db_path: str | Path | None = None) -> Order:
    with _connect(db_path) as conn:
        row = conn.execute(f"SELECT {_ORDER_COLUMNS} FROM orders WHERE id = ?", (order_id,)).fetchone()
        if row is None:
            raise LookupError(f"Order {order_id!r} not found")
        items = _items_by_order(conn, [order_id])
    return _order_from_row(row, items[order_id])


def update_order(order: Order, db_path: str | Path | None = None) -> Order:
    """Overwrite an existing order's fields and lines."""
    order = _checked(order)
    with _connect(db_path) as conn:
        with conn:
            cur = conn.execute(
                """
                UPDATE orders
                SET customer_name = ?, notes = ?, pickup_date = ?, pickup_time = ?, source = ?,
                    status = ?, total = ?, completed_at = ?
                WHERE id = ?
                """,
                (
                    order.customer_name,
                    order.notes,
                    order.pickup_date,
                    order.pickup_time,
                    order.source,
                    OrderStatus(order.status).value,
                    order.total,
                    order.completed_at,
                    order.id,
                ),
            )
            if cur.rowcount == 0:
                raise LookupError(f"Order {order.id!r} not found")
            conn.execute("DELETE FROM order_items WHERE order_id = ?", (order.id,))
            _insert_items(conn, order.id, order.items)

    logger.info("order updated id=%s total=%.2f", order.id, order.total)
    return order


def _update_status(order: Order, db_path: str | Path | None) -> Order:
    with _connect(db_path) as conn:
        with conn:
            conn.execute(
                "UPDATE orders SET status = ?, completed_at = ? WHERE id = ?",
                (order.status.value, order.completed_at, order.id),
            )
    logger.info("order status id=%s status=%s", order.id, order.status.value)
    return order


def complete_order(order_id: str, now: datetime | None = None, db_path: str | Path | None = None) -> Order:
    """Move an order to completed, stamping the completion time."""
    order = get_order(order_id, db_path)
    return _update_status(order.complete(now or datetime.now(timezone.utc)), db_path)


def return_to_pending(order_id: str, db_path: str | Path | None = None) -> Order:
    order = get_order(order_id, db_path)
    return _update_status(order.return_to_pending(), db_path)


def duplicate_order(order_id: str, now: datetime | None = None, db_path: str | Path | None = None) -> Order:
    """Save a fresh pending copy of an existing order."""
    order = get_order(order_id, db_path)
    return save_order(order.duplicate(now or datetime.now(timezone.utc)), db_path)


def delete_order(order_id: str, db_path: str | Path | None = None) -> None:
    with _connect(db_path) as conn:
        with conn:
            cur = conn.execute("DELETE FROM orders WHERE id = ?", (order_id,))
            if cur.rowcount == 0:
                raise LookupError(f"Order {order_id!r} not found")
    logger.info("order deleted id=%s", order_id)


def save_menu_item(item: MenuItem, db_path: str | Path | None = None) -> MenuItem:
    """Insert or replace a catalog entry, assigning an id when it has none."""
    if not item.id:
        item = replace(item, id=uuid4().hex)
    with _connect(db_path) as conn:
        with conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO menu_items (id, name, base_price, category, available)
                VALUES (?, ?, ?, ?, ?)
                """,
                (item.id, item.name, item.base_price, item.category, int(item.available)),
            )
    return item


def import_records(
    records: Mapping[str, Any],
    db_path: str | Path | None = None,
) -> tuple[int, int]:
    """Load a raw export (``{"orders": [...], "menuItems": [...]}``) into the store.

    Orders go through the same checks as ``save_order`` and get fresh ids;
    records that fail those checks are logged and skipped. Returns the
    number of orders and menu items written.
    """
    menu_count = 0
    for raw in records.get("menuItems") or []:
        if isinstance(raw, Mapping):
            save_menu_item(MenuItem.from_record(raw), db_path)
            menu_count += 1

    order_count = 0
    for idx, raw in enumerate(records.get("orders") or []):
        if not isinstance(raw, Mapping):
            logger.warning("import skipped order #%d: not a record", idx)
            continue
        try:
            save_order(Order.from_record(raw), db_path)
        except (ValueError, sqlite3.IntegrityError) as exc:
            logger.warning("import skipped order #%d: %s", idx, exc)
            continue
        order_count += 1

    logger.info("import done orders=%d menu_items=%d", order_count, menu_count)
    return order_count, menu_count


def load_menu_items(db_path: str | Path | None = None) -> list[MenuItem]:
    with _connect(db_path) as conn:
        rows = conn.execute("SELECT * FROM menu_items ORDER BY name").fetchall()
    return [
        MenuItem(
            id=row["id"],
            name=row["name"],
            base_price=row["base_price"],
            category=row["category"],
            available=bool(row["available"]),
        )
        for row in rows
    ]
