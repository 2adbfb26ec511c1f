"""Domain records for products, customers and daily orders."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from .exceptions import ValidationError

ORDER_STATUSES: tuple[str, ...] = ("pending", "delivered")
ALL_CUSTOMERS = "all"


def to_utc_day(value: Any) -> date:
    """Return the calendar day of ``value`` as seen at UTC midnight.

    Plain ``date`` objects and ``YYYY-MM-DD`` strings are already calendar
    days. Aware datetimes are converted to UTC first; naive ones are read as
    UTC so the local timezone never shifts a day across a range boundary.
    """

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return to_utc_day(datetime.fromisoformat(text))
    raise ValidationError(f"Unsupported date value: {value!r}")


def _money(value: Any) -> float:
    if value in (None, ""):
        return 0.0
    try:
        return round(float(value), 2)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid amount: {value!r}") from exc


@dataclass(slots=True)
class Product:
    id: str
    name: str
    price: float = 0.0
    unit: str = ""
    created_at: Optional[str] = None
    user_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Product":
        return cls(
            id=row["id"],
            name=row["name"],
            price=_money(row.get("price")),
            unit=row.get("unit") or "",
            created_at=row.get("created_at"),
            user_id=row.get("user_id"),
        )

    def to_values(self) -> dict[str, Any]:
        return {"name": self.name, "price": self.price, "unit": self.unit}


@dataclass(slots=True)
class Customer:
    id: str
    name: str
    phone: str = ""
    address: str = ""
    created_at: Optional[str] = None
    user_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Customer":
        return cls(
            id=row["id"],
            name=row["name"],
            phone=row.get("phone") or "",
            address=row.get("address") or "",
            created_at=row.get("created_at"),
            user_id=row.get("user_id"),
        )

    def to_values(self) -> dict[str, Any]:
        return {"name": self.name, "phone": self.phone, "address": self.address}


@dataclass(slots=True)
class OrderItem:
    product_id: str
    quantity: float

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValidationError("Quantity cannot be negative")


@dataclass(slots=True)
class Order:
    id: str
    date: date
    customer_id: str
    customer_name: str
    items: list[OrderItem] = field(default_factory=list)
    total_amount: float = 0.0
    amount_paid: float = 0.0
    status: str = "pending"
    created_at: Optional[str] = None
    user_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {self.status!r}")

    @property
    def remaining(self) -> float:
        return round(self.total_amount - self.amount_paid, 2)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Order":
        raw_items = row.get("items") or "[]"
        if isinstance(raw_items, str):
            raw_items = json.loads(raw_items)
        return cls(
            id=row["id"],
            date=to_utc_day(row["date"]),
            customer_id=row["customer_id"],
            customer_name=row.get("customer_name") or "",
            items=[
                OrderItem(product_id=item["product_id"], quantity=float(item["quantity"]))
                for item in raw_items
            ],
            total_amount=_money(row.get("total_amount")),
            amount_paid=_money(row.get("amount_paid")),
            status=row.get("status") or "pending",
            created_at=row.get("created_at"),
            user_id=row.get("user_id"),
        )

    def to_values(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "items": json.dumps([asdict(item) for item in self.items]),
            "total_amount": self.total_amount,
            "amount_paid": self.amount_paid,
            "status": self.status,
        }


def order_values(
    *,
    order_date: date,
    customer: Customer,
    items: Sequence[OrderItem],
    total_amount: float,
    amount_paid: Optional[float] = None,
    status: str = "pending",
) -> dict[str, Any]:
    """Build the insert payload for a new order placed for ``customer``."""

    draft = Order(
        id="",
        date=to_utc_day(order_date),
        customer_id=customer.id,
        customer_name=customer.name,
        items=list(items),
        total_amount=_money(total_amount),
        amount_paid=_money(amount_paid),
        status=status,
    )
    return draft.to_values()


def calculate_order_total(items: Sequence[OrderItem], products: Sequence[Product]) -> float:
    prices = {product.id: product.price for product in products}
    total = sum(prices.get(item.product_id, 0.0) * item.quantity for item in items)
    return round(total, 2)
