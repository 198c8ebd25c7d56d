"""Editable static vocabularies used by reports and formatting."""

from __future__ import annotations

# Indexed by date.weekday() (Monday == 0).
DAY_NAMES: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# Indexed by month - 1.
MONTH_NAMES: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

# Canonical currency values consumed by order_taker.data (which wraps these into CurrencyConfig instances).
CURRENCIES: dict[str, dict[str, str]] = {
    "PHP": {"symbol": "₱", "name": "Philippine Peso"},
    "USD": {"symbol": "$", "name": "US Dollar"},
}

CUSTOM_ITEM_PREFIX = "custom-"
CUSTOM_CATEGORY = "Custom"
UNCATEGORIZED = "Uncategorized"
UNKNOWN_SOURCE = "Unknown"
