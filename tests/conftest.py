import importlib.util
from datetime import date
from pathlib import Path

import pytest

from dairy_suite import (
    AccountLockoutService,
    AppConfig,
    AuthService,
    Database,
    DataStore,
    Order,
    OrderItem,
    PasswordService,
    UserRepository,
)


def build_config(tmp_path: Path, **overrides) -> AppConfig:
    values = dict(
        data_dir=tmp_path,
        db_url=f"sqlite:///{tmp_path / 'test.db'}",
        business_name="Jay Goga Milk",
        currency="Rs",
        login_max_attempts=3,
        login_lockout_minutes=1,
    )
    values.update(overrides)
    return AppConfig(**values)


def make_order(order_id, day, total, paid=0.0, status="pending", customer_id="c1", customer_name="Asha"):
    return Order(
        id=order_id,
        date=day if isinstance(day, date) else date.fromisoformat(day),
        customer_id=customer_id,
        customer_name=customer_name,
        items=[OrderItem("p1", 1)],
        total_amount=total,
        amount_paid=paid,
        status=status,
    )


@pytest.fixture()
def config(tmp_path):
    return build_config(tmp_path)


@pytest.fixture()
def database(config):
    db = Database.from_config(config)
    db.init_schema()
    return db


@pytest.fixture()
def auth(config, database):
    users = UserRepository(database)
    return AuthService(users, PasswordService(iterations=1_000), AccountLockoutService(config, users))


@pytest.fixture()
def signed_in(auth):
    result = auth.sign_up("owner@example.com", "owner", "secret123")
    assert result.success
    return auth


@pytest.fixture()
def store(database, signed_in):
    data_store = DataStore.from_database(database)
    data_store.bind(signed_in)
    try:
        yield data_store
    finally:
        data_store.close()


@pytest.fixture(scope="session")
def app_module(tmp_path_factory):
    data_dir = tmp_path_factory.mktemp("dairy_app")
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("DAIRY_SUITE_DATA_DIR", str(data_dir))
        mp.delenv("DAIRY_SUITE_DB_URL", raising=False)
        module = _load_app_module()
    # the module captured its config at import; the environment goes back untouched
    module.init_db()
    return module


def _load_app_module():
    repo_root = Path(__file__).resolve().parents[1]
    app_path = repo_root / "dairy_app.py"
    spec = importlib.util.spec_from_file_location("dairy_app_for_tests", app_path)
    module = importlib.util.module_from_spec(spec)
    loader = spec.loader
    if loader is None:
        raise RuntimeError("Unable to load app module for tests")
    loader.exec_module(module)
    return module


@pytest.fixture()
def order_factory():
    return make_order
