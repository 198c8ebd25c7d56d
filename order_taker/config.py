"""Runtime configuration defaults for persistence, logging and reporting."""

from __future__ import annotations

import os

DB_PATH = os.environ.get("ORDER_TAKER_DB_PATH", "data/orders.db")

LOG_DIR = os.environ.get("ORDER_TAKER_LOG_DIR", "data/logs")
LOG_LEVEL = os.environ.get("ORDER_TAKER_LOG_LEVEL", "INFO")

# Display currency code, one of constant.CURRENCIES.
CURRENCY = os.environ.get("ORDER_TAKER_CURRENCY", "PHP")

# Newest-first cap applied when loading orders from the record store.
ORDERS_LIMIT = 200
TOP_ITEMS_LIMIT = 10
