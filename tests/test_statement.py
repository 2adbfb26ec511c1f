from datetime import date, datetime, timedelta, timezone

import pytest

from dairy_suite import ALL_CUSTOMERS, Customer, generate_statement, statement_filename
from dairy_suite.statement import resolve_customer_display_name


def test_statement_totals_for_worked_example(order_factory):
    orders = [
        order_factory("o1", "2024-01-01", 100, paid=100, status="delivered"),
        order_factory("o2", "2024-01-02", 50, paid=0, status="pending"),
    ]

    result = generate_statement(orders, date(2024, 1, 1), date(2024, 1, 2), ALL_CUSTOMERS)

    assert result.total_amount == 150
    assert result.total_paid == 100
    assert result.pending_amount == 50
    assert result.total_orders == 2
    assert result.delivered_orders == 1
    assert result.pending_orders == 1
    assert [order.id for order in result.orders] == ["o2", "o1"]


def test_range_is_inclusive_on_both_ends(order_factory):
    orders = [
        order_factory("before", "2024-02-29", 10),
        order_factory("first", "2024-03-01", 20),
        order_factory("middle", "2024-03-15", 30),
        order_factory("last", "2024-03-31", 40),
        order_factory("after", "2024-04-01", 50),
    ]

    result = generate_statement(orders, "2024-03-01", "2024-03-31")

    assert [order.id for order in result.orders] == ["last", "middle", "first"]
    assert result.total_amount == 90


def test_customer_filter_keeps_only_that_customer(order_factory):
    orders = [
        order_factory("a1", "2024-05-01", 10, customer_id="c1"),
        order_factory("b1", "2024-05-01", 20, customer_id="c2", customer_name="Bharat"),
        order_factory("a2", "2024-05-02", 30, customer_id="c1"),
    ]

    only_c1 = generate_statement(orders, "2024-05-01", "2024-05-31", "c1")
    everyone = generate_statement(orders, "2024-05-01", "2024-05-31", ALL_CUSTOMERS)
    no_filter = generate_statement(orders, "2024-05-01", "2024-05-31", None)

    assert {order.customer_id for order in only_c1.orders} == {"c1"}
    assert only_c1.total_orders == 2
    assert everyone.total_orders == 3
    assert no_filter.total_orders == 3


def test_no_matches_gives_zeroed_statement(order_factory):
    orders = [order_factory("o1", "2024-01-01", 100, paid=20)]

    result = generate_statement(orders, "2025-01-01", "2025-01-31")

    assert result.orders == []
    assert result.total_amount == 0
    assert result.total_paid == 0
    assert result.pending_amount == 0
    assert (result.total_orders, result.delivered_orders, result.pending_orders) == (0, 0, 0)


def test_start_after_end_matches_nothing(order_factory):
    orders = [order_factory("o1", "2024-01-10", 100)]

    result = generate_statement(orders, "2024-01-20", "2024-01-01")

    assert result.total_orders == 0


def test_overpayment_leaves_negative_pending_amount(order_factory):
    orders = [order_factory("o1", "2024-01-01", 40, paid=55, status="delivered")]

    result = generate_statement(orders, "2024-01-01", "2024-01-01")

    assert result.pending_amount == pytest.approx(-15)
    assert round(result.total_paid + result.pending_amount, 2) == result.total_amount


def test_missing_payment_counts_as_zero(order_factory):
    order = order_factory("o1", "2024-01-01", 25)
    order.amount_paid = None

    result = generate_statement([order], "2024-01-01", "2024-01-01")

    assert result.total_paid == 0
    assert result.pending_amount == 25


def test_datetime_bounds_are_normalised_to_utc_day(order_factory):
    orders = [order_factory("o1", "2024-06-10", 10)]
    # 03:00 on the 11th in UTC+05:30 is still the 10th in UTC
    ist = timezone(timedelta(hours=5, minutes=30))
    end = datetime(2024, 6, 11, 3, 0, tzinfo=ist)

    result = generate_statement(orders, "2024-06-10T00:00:00Z", end)

    assert result.total_orders == 1


def test_invariants_hold_over_mixed_orders(order_factory):
    orders = []
    for idx in range(30):
        day = date(2024, 1, 1) + timedelta(days=idx % 10)
        orders.append(
            order_factory(
                f"o{idx}",
                day,
                round(10 + idx * 1.35, 2),
                paid=round(idx * 0.9, 2),
                status="delivered" if idx % 3 else "pending",
                customer_id=f"c{idx % 4}",
            )
        )
    start, end = date(2024, 1, 3), date(2024, 1, 7)

    for customer in (ALL_CUSTOMERS, "c0", "c1", "c3"):
        result = generate_statement(orders, start, end, customer)
        expected = [
            o for o in orders
            if start <= o.date <= end and (customer == ALL_CUSTOMERS or o.customer_id == customer)
        ]
        assert {o.id for o in result.orders} == {o.id for o in expected}
        assert all(start <= o.date <= end for o in result.orders)
        assert round(result.total_paid + result.pending_amount, 2) == result.total_amount
        assert result.delivered_orders + result.pending_orders == result.total_orders
        dates = [o.date for o in result.orders]
        assert dates == sorted(dates, reverse=True)


def test_reported_totals_balance_exactly_after_rounding(order_factory):
    orders = [order_factory("o1", "2024-01-01", 1.006, paid=0.004)]

    result = generate_statement(orders, date(2024, 1, 1), date(2024, 1, 1))

    assert result.total_amount == 1.01
    assert result.total_paid == 0.0
    assert result.pending_amount == 1.01
    assert result.total_paid + result.pending_amount == result.total_amount


def test_statement_does_not_touch_input(order_factory):
    orders = [
        order_factory("o1", "2024-01-01", 10),
        order_factory("o2", "2024-01-03", 10),
    ]

    generate_statement(orders, "2024-01-01", "2024-01-31")

    assert [order.id for order in orders] == ["o1", "o2"]


def test_statement_filename_variants():
    customers = [Customer(id="c1", name="Ram  Lal\tDairy")]

    assert (
        statement_filename(ALL_CUSTOMERS, customers, date(2024, 1, 1), date(2024, 1, 31), "pdf")
        == "Statement_All_Customers_2024-01-01_to_2024-01-31.pdf"
    )
    assert (
        statement_filename("c1", customers, date(2024, 1, 1), date(2024, 1, 31), ".xlsx")
        == "Statement_Ram__Lal_Dairy_2024-01-01_to_2024-01-31.xlsx"
    )
    assert (
        statement_filename("missing", customers, date(2024, 1, 1), date(2024, 1, 2), "pdf")
        == "Statement_Customer_2024-01-01_to_2024-01-02.pdf"
    )


def test_resolve_customer_display_name():
    customers = [Customer(id="c1", name="Asha Patel")]

    assert resolve_customer_display_name(ALL_CUSTOMERS, customers) == "All Customers"
    assert resolve_customer_display_name("c1", customers) == "Asha Patel"
    assert resolve_customer_display_name("c9", customers) == "Customer"
