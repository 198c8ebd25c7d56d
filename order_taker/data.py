"""Static currency data and menu catalog lookups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from order_taker.constant import (
    CURRENCIES as _CURRENCIES_RAW,
    CUSTOM_CATEGORY,
    CUSTOM_ITEM_PREFIX,
    UNCATEGORIZED,
)
from order_taker.models import MenuItem

CategoryLookup = Callable[[str, str | None], str]


@dataclass(frozen=True)
class CurrencyConfig:
    """Display metadata for a supported currency."""

    code: str
    symbol: str
    name: str


CURRENCIES: dict[str, CurrencyConfig] = {
    code: CurrencyConfig(code=code, symbol=meta["symbol"], name=meta["name"])
    for code, meta in _CURRENCIES_RAW.items()
}


def currency_config(code: str) -> CurrencyConfig:
    """Get currency metadata, raising ValueError for unsupported codes."""
    try:
        return CURRENCIES[code]
    except KeyError:
        raise ValueError(f"Unsupported currency: {code!r}") from None


def category_lookup(menu_items: Iterable[MenuItem]) -> CategoryLookup:
    """Build a ``category_of(name, menu_item_id)`` function over a menu snapshot.

    Historical order lines are matched by display name, since the price and
    id of a menu entry may have changed since the order was taken.
    """
    categories = {item.name: item.category or UNCATEGORIZED for item in menu_items}

    def category_of(name: str, menu_item_id: str | None = None) -> str:
        if menu_item_id and menu_item_id.startswith(CUSTOM_ITEM_PREFIX):
            return CUSTOM_CATEGORY
        return categories.get(name) or UNCATEGORIZED

    return category_of
