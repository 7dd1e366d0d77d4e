# Overview: Dashboard projections over the catalog (low stock, category totals).

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from ..models import Product


def low_stock(products: Iterable[Product]) -> list[Product]:
    """
    Products at or below their reorder level, in catalog order.

    Recomputed on every call so it always reflects the latest catalog.
    """
    return [p for p in products if p.is_low_stock]


def aggregate_by_category(products: Iterable[Product]) -> dict[str, int]:
    totals: dict[str, int] = {}
    for p in products:
        totals[p.category] = totals.get(p.category, 0) + p.stock
    return totals


def inventory_stats(products: Iterable[Product]) -> dict:
    products = list(products)
    return {
        "total_products": len(products),
        "low_stock_count": len(low_stock(products)),
        "inventory_value": sum((p.price * p.stock for p in products), Decimal("0")),
        "category_count": len({p.category for p in products}),
    }
