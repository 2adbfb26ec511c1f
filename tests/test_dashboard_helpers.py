from datetime import date

import pytest

from dairy_suite import Customer, Order, OrderItem, Product
from dairy_suite.dashboard import orders_for_day, product_summary, today_overview
from dairy_suite.models import calculate_order_total

TODAY = date(2024, 3, 10)

PRODUCTS = [
    Product(id="p1", name="cow milk", price=56, unit="litre"),
    Product(id="p2", name="Buffalo milk", price=70, unit="litre"),
    Product(id="p3", name="Curd", price=40, unit="cup"),
]


def _order(order_id, day, status, total, items):
    return Order(
        id=order_id,
        date=day,
        customer_id="c1",
        customer_name="Asha",
        items=[OrderItem(pid, qty) for pid, qty in items],
        total_amount=total,
        status=status,
    )


ORDERS = [
    _order("o1", TODAY, "delivered", 112, [("p1", 2)]),
    _order("o2", TODAY, "pending", 140, [("p2", 2), ("gone", 5)]),
    _order("o3", TODAY, "delivered", 96, [("p1", 1), ("p3", 1)]),
    _order("o4", date(2024, 3, 9), "delivered", 500, [("p2", 7)]),
]


def test_today_overview_counts_only_today():
    overview = today_overview(ORDERS, PRODUCTS, [Customer(id="c1", name="Asha")], TODAY)

    assert overview.pending_deliveries == 1
    assert overview.delivered_today == 2
    assert overview.todays_collection == pytest.approx(208)
    assert overview.total_products == 3
    assert overview.total_customers == 1
    assert overview.total_orders_today == 3


def test_product_summary_groups_and_sorts_by_name():
    summary = product_summary(orders_for_day(ORDERS, TODAY), PRODUCTS)

    assert list(summary.columns) == ["Product", "Total"]
    assert list(summary["Product"]) == ["Buffalo milk", "cow milk", "Curd"]
    assert list(summary["Total"]) == [2, 3, 1]


def test_product_summary_empty_when_nothing_ordered():
    summary = product_summary([], PRODUCTS)

    assert summary.empty
    assert list(summary.columns) == ["Product", "Total"]


def test_calculate_order_total_ignores_unknown_products():
    items = [OrderItem("p1", 1.5), OrderItem("p3", 2), OrderItem("gone", 4)]

    assert calculate_order_total(items, PRODUCTS) == pytest.approx(164.0)
