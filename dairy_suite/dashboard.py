"""Dashboard helpers summarising today's deliveries."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Sequence

import pandas as pd

from .models import Customer, Order, Product, to_utc_day


@dataclass(frozen=True)
class DailyOverview:
    pending_deliveries: int
    delivered_today: int
    todays_collection: float
    total_products: int
    total_customers: int
    total_orders_today: int


def orders_for_day(orders: Sequence[Order], day: date) -> list[Order]:
    return [order for order in orders if to_utc_day(order.date) == day]


def today_overview(
    orders: Sequence[Order],
    products: Sequence[Product],
    customers: Sequence[Customer],
    today: date,
) -> DailyOverview:
    todays = orders_for_day(orders, today)
    delivered = [order for order in todays if order.status == "delivered"]
    return DailyOverview(
        pending_deliveries=sum(1 for order in todays if order.status == "pending"),
        delivered_today=len(delivered),
        todays_collection=round(sum(order.total_amount for order in delivered), 2),
        total_products=len(products),
        total_customers=len(customers),
        total_orders_today=len(todays),
    )


def product_summary(orders: Sequence[Order], products: Sequence[Product]) -> pd.DataFrame:
    """Total quantity ordered per product, alphabetically by product name.

    Line items pointing at products that no longer exist are skipped.
    """

    names = {product.id: product.name for product in products}
    totals: Dict[str, float] = {}
    for order in orders:
        for item in order.items:
            if item.product_id not in names:
                continue
            totals[item.product_id] = totals.get(item.product_id, 0.0) + item.quantity

    frame = pd.DataFrame(
        [(names[product_id], quantity) for product_id, quantity in totals.items()],
        columns=["Product", "Total"],
    )
    if frame.empty:
        return frame
    return frame.sort_values("Product", key=lambda col: col.str.lower(), kind="stable").reset_index(drop=True)
