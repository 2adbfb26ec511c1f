"""Per-account cache of products, customers and orders."""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, TypeVar

from .auth import AuthService, SessionUser, Subscription
from .exceptions import DataAccessError
from .models import Customer, Order, Product
from .repositories import (
    CollectionRepository,
    Database,
    customer_repository,
    order_repository,
    product_repository,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", Product, Customer, Order)


class DataStore:
    """Local mirror of the signed-in account's collections.

    Mutations go to the database first and then patch the cached lists with
    the row the database returned, so the cache never needs a full reload
    after an add, update or delete.
    """

    def __init__(
        self,
        products: CollectionRepository,
        customers: CollectionRepository,
        orders: CollectionRepository,
    ):
        self._product_repo = products
        self._customer_repo = customers
        self._order_repo = orders
        self.user: Optional[SessionUser] = None
        self.products: list[Product] = []
        self.customers: list[Customer] = []
        self.orders: list[Order] = []
        self.is_loading = True
        self._loaded_owner: Optional[str] = None
        self._subscription: Optional[Subscription] = None

    @classmethod
    def from_database(cls, db: Database) -> "DataStore":
        return cls(product_repository(db), customer_repository(db), order_repository(db))

    def bind(self, auth: AuthService) -> None:
        """Follow the auth session: reload whenever the account changes."""

        self.close()
        self._subscription = auth.on_auth_state_change(self._on_session_change)
        self._on_session_change(auth.get_session())

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_session_change(self, user: Optional[SessionUser]) -> None:
        previous = self.user.id if self.user else None
        current = user.id if user else None
        self.user = user
        if previous != current or self.is_loading:
            self.fetch_data()

    def fetch_data(self) -> None:
        if self.user is None:
            self.products, self.customers, self.orders = [], [], []
            self._loaded_owner = None
            self.is_loading = False
            return

        self.is_loading = True
        owner = self.user.id
        if self._loaded_owner != owner:
            # never show one account the rows of another
            self.products, self.customers, self.orders = [], [], []
            self._loaded_owner = None
        try:
            products = [Product.from_row(row) for row in self._product_repo.list_by_owner(owner)]
            customers = [Customer.from_row(row) for row in self._customer_repo.list_by_owner(owner)]
            orders = [Order.from_row(row) for row in self._order_repo.list_by_owner(owner)]
        except DataAccessError:
            logger.exception("Error fetching data for account %s", owner)
        else:
            self.products, self.customers, self.orders = products, customers, orders
            self._loaded_owner = owner
        finally:
            self.is_loading = False

    refetch_data = fetch_data

    # products -------------------------------------------------------------

    def add_product(self, values: Mapping[str, Any]) -> Optional[Product]:
        return self._add(self._product_repo, values, Product.from_row, "products")

    def update_product(self, product: Product) -> Product:
        return self._update(self._product_repo, product.id, product.to_values(), Product.from_row, "products")

    def delete_product(self, product_id: str) -> None:
        self._delete(self._product_repo, product_id, "products")

    # customers ------------------------------------------------------------

    def add_customer(self, values: Mapping[str, Any]) -> Optional[Customer]:
        return self._add(self._customer_repo, values, Customer.from_row, "customers")

    def update_customer(self, customer: Customer) -> Customer:
        return self._update(self._customer_repo, customer.id, customer.to_values(), Customer.from_row, "customers")

    def delete_customer(self, customer_id: str) -> None:
        self._delete(self._customer_repo, customer_id, "customers")

    # orders ---------------------------------------------------------------

    def add_order(self, values: Mapping[str, Any]) -> Optional[Order]:
        order = self._add(self._order_repo, values, Order.from_row, "orders")
        if order is not None:
            # newest day first; stable so same-day orders keep newest-insert first
            self.orders.sort(key=lambda item: item.date, reverse=True)
        return order

    def update_order(self, order: Order) -> Order:
        return self._update(self._order_repo, order.id, order.to_values(), Order.from_row, "orders")

    def delete_order(self, order_id: str) -> None:
        self._delete(self._order_repo, order_id, "orders")

    def find_customer(self, customer_id: str) -> Optional[Customer]:
        return next((c for c in self.customers if c.id == customer_id), None)

    # shared ---------------------------------------------------------------

    def _add(
        self,
        repo: CollectionRepository,
        values: Mapping[str, Any],
        build: Callable[[Mapping[str, Any]], T],
        attr: str,
    ) -> Optional[T]:
        if self.user is None:
            return None
        record = build(repo.insert(self.user.id, values))
        setattr(self, attr, [record, *getattr(self, attr)])
        return record

    def _update(
        self,
        repo: CollectionRepository,
        record_id: str,
        values: Mapping[str, Any],
        build: Callable[[Mapping[str, Any]], T],
        attr: str,
    ) -> T:
        owner = self.user.id if self.user else ""
        record = build(repo.update(owner, record_id, values))
        setattr(
            self,
            attr,
            [record if item.id == record_id else item for item in getattr(self, attr)],
        )
        return record

    def _delete(self, repo: CollectionRepository, record_id: str, attr: str) -> None:
        owner = self.user.id if self.user else ""
        repo.delete(owner, record_id)
        setattr(self, attr, [item for item in getattr(self, attr) if item.id != record_id])
