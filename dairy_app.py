"""Streamlit-based dairy delivery management application."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from dairy_suite import (
    ALL_CUSTOMERS,
    AccountLockoutService,
    AuthService,
    DataAccessError,
    DataStore,
    Database,
    OrderItem,
    PasswordService,
    StatementResult,
    UserRepository,
    ValidationError,
    configure_logging,
    generate_statement,
    load_config,
    statement_filename,
)
from dairy_suite.dashboard import product_summary, orders_for_day, today_overview
from dairy_suite.exports import build_statement_pdf, build_statement_workbook, format_statement_date
from dairy_suite.models import ORDER_STATUSES, calculate_order_total, order_values
from dairy_suite.statement import resolve_customer_display_name


# ---------------------------------------------------------------------------
# Global application services
# ---------------------------------------------------------------------------


CONFIG = load_config()
configure_logging(CONFIG.log_level)
DATABASE = Database.from_config(CONFIG)
USER_REPOSITORY = UserRepository(DATABASE)
PASSWORD_SERVICE = PasswordService.default()
LOCKOUT_SERVICE = AccountLockoutService(CONFIG, USER_REPOSITORY)

logger = logging.getLogger("dairy_app")

PAGES: Dict[str, str] = {
    "Dashboard": "dashboard",
    "Products": "products",
    "Customers": "customers",
    "Daily Orders": "orders",
    "Statement": "statement",
}


def init_db() -> None:
    DATABASE.init_schema()


def rerun() -> None:
    """Trigger a Streamlit rerun across supported versions."""

    if hasattr(st, "rerun"):
        st.rerun()
        return
    if hasattr(st, "experimental_rerun"):
        st.experimental_rerun()
        return
    raise RuntimeError("Streamlit rerun function not available")


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def format_money(value: Optional[float]) -> str:
    return f"{CONFIG.currency} {float(value or 0):,.2f}"


def build_services() -> tuple[AuthService, DataStore]:
    auth = AuthService(USER_REPOSITORY, PASSWORD_SERVICE, LOCKOUT_SERVICE)
    store = DataStore.from_database(DATABASE)
    store.bind(auth)
    return auth, store


def get_services() -> tuple[AuthService, DataStore]:
    """Return this browser session's auth service and collection cache."""

    if "auth" not in st.session_state or "data_store" not in st.session_state:
        auth, store = build_services()
        st.session_state["auth"] = auth
        st.session_state["data_store"] = store
    return st.session_state["auth"], st.session_state["data_store"]


def statement_downloads(
    statement: StatementResult,
    store: DataStore,
    *,
    start: date,
    end: date,
    customer_id: str,
) -> Dict[str, Dict[str, Any]]:
    """Render both export formats for the generated statement."""

    customer_name = resolve_customer_display_name(customer_id, store.customers)
    params = {
        "start": start,
        "end": end,
        "customer_name": customer_name,
        "business_name": CONFIG.business_name,
        "currency": CONFIG.currency,
    }
    return {
        "pdf": {
            "data": build_statement_pdf(statement, **params),
            "file_name": statement_filename(customer_id, store.customers, start, end, "pdf"),
            "mime": "application/pdf",
        },
        "xlsx": {
            "data": build_statement_workbook(statement, **params),
            "file_name": statement_filename(customer_id, store.customers, start, end, "xlsx"),
            "mime": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        },
    }


# ---------------------------------------------------------------------------
# UI helpers
# ---------------------------------------------------------------------------


def login_screen(auth: AuthService) -> None:
    st.title(CONFIG.business_name)
    st.caption("Daily delivery, customer and billing management")
    sign_in_tab, sign_up_tab = st.tabs(["Sign in", "Create account"])
    with sign_in_tab:
        with st.form("login_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", use_container_width=True)
        if submitted:
            result = auth.sign_in(email, password)
            if result.success:
                rerun()
            else:
                st.error(result.error or "Invalid login credentials")
    with sign_up_tab:
        with st.form("register_form"):
            email = st.text_input("Email", key="register_email")
            username = st.text_input("Username", key="register_username")
            password = st.text_input("Password", type="password", key="register_password")
            submitted = st.form_submit_button("Create account", use_container_width=True)
        if submitted:
            result = auth.sign_up(email, username, password)
            if result.success:
                rerun()
            else:
                st.error(result.error or "Registration failed")


def sidebar(auth: AuthService) -> str:
    user = auth.get_session()
    st.sidebar.title("Navigation")
    choice = st.sidebar.radio("Go to", list(PAGES.keys()), key="navigation_choice")
    st.sidebar.write("---")
    if user:
        st.sidebar.write(f"Logged in as **{user.username}**")
    if st.sidebar.button("Logout"):
        auth.sign_out()
        st.session_state.pop("statement", None)
        rerun()
    return PAGES.get(choice, "dashboard")


def _run_mutation(action, success_message: str) -> bool:
    try:
        action()
    except (DataAccessError, ValidationError) as exc:
        logger.warning("Change rejected: %s", exc)
        st.error(str(exc))
        return False
    st.success(success_message)
    return True


def render_dashboard(store: DataStore) -> None:
    today = utc_today()
    st.header("Today's Overview")
    st.caption(today.strftime("%A, %d %B %Y"))
    overview = today_overview(store.orders, store.products, store.customers, today)
    cols = st.columns(3)
    cols[0].metric("Pending Deliveries", overview.pending_deliveries)
    cols[1].metric("Delivered Today", overview.delivered_today)
    cols[2].metric("Today's Collection", format_money(overview.todays_collection))
    cols = st.columns(3)
    cols[0].metric("Total Products", overview.total_products)
    cols[1].metric("Total Customers", overview.total_customers)
    cols[2].metric("Total Orders Today", overview.total_orders_today)

    st.subheader("Today's Product Summary")
    summary = product_summary(orders_for_day(store.orders, today), store.products)
    if summary.empty:
        st.info("No products ordered today.")
    else:
        st.dataframe(summary, use_container_width=True, hide_index=True)


def render_products(store: DataStore) -> None:
    st.header("Products")
    with st.form("product_form", clear_on_submit=True):
        cols = st.columns(3)
        name = cols[0].text_input("Name")
        price = cols[1].number_input("Price", min_value=0.0, step=0.5, format="%.2f")
        unit = cols[2].text_input("Unit", placeholder="litre, packet ...")
        submitted = st.form_submit_button("Add product")
    if submitted:
        if not name.strip():
            st.error("Product name is required.")
        else:
            _run_mutation(
                lambda: store.add_product({"name": name.strip(), "price": price, "unit": unit.strip()}),
                "Product added.",
            )

    if not store.products:
        st.info("No products yet.")
        return
    for product in store.products:
        with st.expander(f"{product.name} ({format_money(product.price)} / {product.unit or 'unit'})"):
            with st.form(f"edit_product_{product.id}"):
                new_name = st.text_input("Name", value=product.name)
                new_price = st.number_input("Price", min_value=0.0, value=float(product.price), format="%.2f")
                new_unit = st.text_input("Unit", value=product.unit)
                cols = st.columns(2)
                save = cols[0].form_submit_button("Save")
                remove = cols[1].form_submit_button("Delete")
            if save:
                edited = replace(product, name=new_name.strip(), price=round(new_price, 2), unit=new_unit.strip())
                _run_mutation(lambda: store.update_product(edited), "Product updated.")
            if remove:
                if _run_mutation(lambda: store.delete_product(product.id), "Product deleted."):
                    rerun()


def render_customers(store: DataStore) -> None:
    st.header("Customers")
    with st.form("customer_form", clear_on_submit=True):
        cols = st.columns(3)
        name = cols[0].text_input("Name")
        phone = cols[1].text_input("Phone")
        address = cols[2].text_input("Address")
        submitted = st.form_submit_button("Add customer")
    if submitted:
        if not name.strip():
            st.error("Customer name is required.")
        else:
            _run_mutation(
                lambda: store.add_customer(
                    {"name": name.strip(), "phone": phone.strip(), "address": address.strip()}
                ),
                "Customer added.",
            )

    if not store.customers:
        st.info("No customers yet.")
        return
    for customer in store.customers:
        with st.expander(customer.name):
            with st.form(f"edit_customer_{customer.id}"):
                new_name = st.text_input("Name", value=customer.name)
                new_phone = st.text_input("Phone", value=customer.phone)
                new_address = st.text_input("Address", value=customer.address)
                cols = st.columns(2)
                save = cols[0].form_submit_button("Save")
                remove = cols[1].form_submit_button("Delete")
            if save:
                edited = replace(
                    customer,
                    name=new_name.strip(),
                    phone=new_phone.strip(),
                    address=new_address.strip(),
                )
                _run_mutation(lambda: store.update_customer(edited), "Customer updated.")
            if remove:
                if _run_mutation(lambda: store.delete_customer(customer.id), "Customer deleted."):
                    rerun()


def render_orders(store: DataStore) -> None:
    st.header("Daily Orders")
    if not store.customers or not store.products:
        st.info("Add at least one customer and one product before taking orders.")
    else:
        customer_lookup = {customer.id: customer for customer in store.customers}
        with st.form("order_form", clear_on_submit=True):
            order_date = st.date_input("Date", value=utc_today())
            customer_id = st.selectbox(
                "Customer",
                list(customer_lookup.keys()),
                format_func=lambda cid: customer_lookup[cid].name,
            )
            quantities: Dict[str, float] = {}
            for product in store.products:
                quantities[product.id] = st.number_input(
                    f"{product.name} ({product.unit or 'unit'})",
                    min_value=0.0,
                    step=0.5,
                    key=f"qty_{product.id}",
                )
            amount_paid = st.number_input("Amount paid", min_value=0.0, step=1.0, format="%.2f")
            status = st.selectbox("Status", ORDER_STATUSES)
            submitted = st.form_submit_button("Save order")
        if submitted:
            items = [OrderItem(pid, qty) for pid, qty in quantities.items() if qty > 0]
            if not items:
                st.error("Enter a quantity for at least one product.")
            else:
                total = calculate_order_total(items, store.products)
                _run_mutation(
                    lambda: store.add_order(
                        order_values(
                            order_date=order_date,
                            customer=customer_lookup[customer_id],
                            items=items,
                            total_amount=total,
                            amount_paid=amount_paid,
                            status=status,
                        )
                    ),
                    f"Order saved: {format_money(total)}",
                )

    if not store.orders:
        st.info("No orders recorded yet.")
        return
    for order in store.orders:
        label = (
            f"{format_statement_date(order.date)} · {order.customer_name} · "
            f"{format_money(order.total_amount)} · {order.status}"
        )
        with st.expander(label):
            with st.form(f"edit_order_{order.id}"):
                new_paid = st.number_input(
                    "Amount paid", min_value=0.0, value=float(order.amount_paid), format="%.2f"
                )
                new_status = st.selectbox(
                    "Status", ORDER_STATUSES, index=ORDER_STATUSES.index(order.status)
                )
                cols = st.columns(2)
                save = cols[0].form_submit_button("Save")
                remove = cols[1].form_submit_button("Delete")
            if save:
                edited = replace(order, amount_paid=round(new_paid, 2), status=new_status)
                _run_mutation(lambda: store.update_order(edited), "Order updated.")
            if remove:
                if _run_mutation(lambda: store.delete_order(order.id), "Order deleted."):
                    rerun()


def render_statement(store: DataStore) -> None:
    st.header("Generate Statement")
    today = utc_today()
    cols = st.columns(2)
    start = cols[0].date_input("Start Date", value=today, key="statement_start")
    end = cols[1].date_input("End Date", value=today, key="statement_end")
    options: List[str] = [ALL_CUSTOMERS, *[customer.id for customer in store.customers]]
    customer_id = st.selectbox(
        "Customer",
        options,
        format_func=lambda cid: resolve_customer_display_name(cid, store.customers),
        key="statement_customer",
    )

    if st.button("Generate Statement", type="primary"):
        st.session_state["statement"] = {
            "result": generate_statement(store.orders, start, end, customer_id),
            "start": start,
            "end": end,
            "customer_id": customer_id,
        }

    generated = st.session_state.get("statement")
    if not generated:
        return
    statement: StatementResult = generated["result"]

    cols = st.columns(4)
    cols[0].metric("Total Order Value", format_money(statement.total_amount))
    cols[1].metric("Total Paid", format_money(statement.total_paid))
    cols[2].metric("Pending Amount", format_money(statement.pending_amount))
    cols[3].metric("Total Orders", statement.total_orders)

    downloads = statement_downloads(
        statement,
        store,
        start=generated["start"],
        end=generated["end"],
        customer_id=generated["customer_id"],
    )
    cols = st.columns(2)
    cols[0].download_button("Download as PDF", key="statement_pdf", use_container_width=True, **downloads["pdf"])
    cols[1].download_button("Download as Excel", key="statement_xlsx", use_container_width=True, **downloads["xlsx"])

    st.subheader("Order Details")
    if not statement.orders:
        st.info("No orders found for the selected criteria.")
        return
    st.dataframe(
        pd.DataFrame(
            [
                {
                    "Date": format_statement_date(order.date),
                    "Customer": order.customer_name,
                    "Status": order.status,
                    "Total": order.total_amount,
                    "Paid": order.amount_paid,
                    "Remaining": order.remaining,
                }
                for order in statement.orders
            ]
        ),
        use_container_width=True,
        hide_index=True,
    )


def main() -> None:
    st.set_page_config(page_title=CONFIG.business_name, layout="wide")
    auth, store = get_services()
    if auth.get_session() is None:
        login_screen(auth)
        return

    page = sidebar(auth)
    if page == "dashboard":
        render_dashboard(store)
    elif page == "products":
        render_products(store)
    elif page == "customers":
        render_customers(store)
    elif page == "orders":
        render_orders(store)
    elif page == "statement":
        render_statement(store)


if __name__ == "__main__":
    init_db()
    main()
