"""Billing statements over a date range of orders."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from .models import ALL_CUSTOMERS, Customer, Order, to_utc_day

ALL_CUSTOMERS_LABEL = "All Customers"
UNKNOWN_CUSTOMER_LABEL = "Customer"


@dataclass(frozen=True)
class StatementResult:
    orders: list[Order] = field(default_factory=list)
    total_amount: float = 0.0
    total_paid: float = 0.0
    pending_amount: float = 0.0
    total_orders: int = 0
    delivered_orders: int = 0
    pending_orders: int = 0


def generate_statement(
    orders: Iterable[Order],
    start: Any,
    end: Any,
    customer_id: Optional[str] = ALL_CUSTOMERS,
) -> StatementResult:
    """Filter ``orders`` to ``[start, end]`` and one customer, then total them.

    Both bounds are inclusive calendar days compared at UTC midnight.
    ``customer_id`` of ``None`` or ``"all"`` keeps every customer. Orders come
    back newest first. ``pending_amount`` is left negative on overpayment.
    """

    start_day = to_utc_day(start)
    end_day = to_utc_day(end)
    everyone = customer_id in (None, ALL_CUSTOMERS)

    matched = [
        order
        for order in orders
        if start_day <= to_utc_day(order.date) <= end_day
        and (everyone or order.customer_id == customer_id)
    ]
    matched.sort(key=lambda order: to_utc_day(order.date), reverse=True)

    total_amount = round(sum(order.total_amount for order in matched), 2)
    total_paid = round(sum(order.amount_paid or 0 for order in matched), 2)
    delivered = sum(1 for order in matched if order.status == "delivered")

    return StatementResult(
        orders=matched,
        total_amount=total_amount,
        total_paid=total_paid,
        pending_amount=round(total_amount - total_paid, 2),
        total_orders=len(matched),
        delivered_orders=delivered,
        pending_orders=len(matched) - delivered,
    )


def resolve_customer_display_name(customer_id: Optional[str], customers: Sequence[Customer]) -> str:
    if customer_id in (None, ALL_CUSTOMERS):
        return ALL_CUSTOMERS_LABEL
    for customer in customers:
        if customer.id == customer_id:
            return customer.name
    return UNKNOWN_CUSTOMER_LABEL


def statement_filename(
    customer_id: Optional[str],
    customers: Sequence[Customer],
    start: date,
    end: date,
    extension: str,
) -> str:
    """Return ``Statement_<Customer>_<start>_to_<end>.<ext>``."""

    if customer_id in (None, ALL_CUSTOMERS):
        label = "All_Customers"
    else:
        label = UNKNOWN_CUSTOMER_LABEL
        for customer in customers:
            if customer.id == customer_id:
                label = re.sub(r"\s", "_", customer.name) or UNKNOWN_CUSTOMER_LABEL
                break
    ext = extension.lstrip(".")
    return f"Statement_{label}_{to_utc_day(start).isoformat()}_to_{to_utc_day(end).isoformat()}.{ext}"
