"""Database abstractions using SQLite."""
from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional

from .config import AppConfig
from .exceptions import DataAccessError, RecordNotFoundError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id          TEXT PRIMARY KEY,
    email       TEXT NOT NULL UNIQUE,
    username    TEXT NOT NULL,
    pass_hash   TEXT NOT NULL,
    created_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
);

CREATE TABLE IF NOT EXISTS login_events (
    event_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    email       TEXT NOT NULL,
    success     INTEGER NOT NULL,
    occurred_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS products (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    name        TEXT NOT NULL,
    price       REAL NOT NULL DEFAULT 0,
    unit        TEXT,
    created_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS customers (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    name        TEXT NOT NULL,
    phone       TEXT,
    address     TEXT,
    created_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS daily_orders (
    id            TEXT PRIMARY KEY,
    user_id       TEXT NOT NULL,
    date          TEXT NOT NULL,
    customer_id   TEXT NOT NULL,
    customer_name TEXT NOT NULL,
    items         TEXT NOT NULL DEFAULT '[]',
    total_amount  REAL NOT NULL DEFAULT 0,
    amount_paid   REAL DEFAULT 0,
    status        TEXT NOT NULL CHECK(status IN ('pending', 'delivered')) DEFAULT 'pending',
    created_at    TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_products_owner ON products(user_id, created_at);
CREATE INDEX IF NOT EXISTS idx_customers_owner ON customers(user_id, created_at);
CREATE INDEX IF NOT EXISTS idx_orders_owner ON daily_orders(user_id, date);
"""


@dataclass
class Database:
    config: AppConfig
    db_path: Path

    @classmethod
    def from_config(cls, config: AppConfig) -> "Database":
        if not config.db_is_sqlite:
            raise ValueError("Only SQLite URLs are supported in the bundled runtime.")
        path_str = config.db_url.split("sqlite:///")[-1]
        db_path = Path(path_str).expanduser()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return cls(config=config, db_path=db_path)

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def begin(self) -> Iterator[sqlite3.Connection]:
        with self.connect() as conn:
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def init_schema(self) -> None:
        with self.begin() as conn:
            conn.executescript(SCHEMA)


class CollectionRepository:
    """Owner-scoped CRUD for one table.

    Every write returns the canonical row as stored so callers can patch a
    local cache without re-listing the table.
    """

    def __init__(
        self,
        db: Database,
        table: str,
        columns: tuple[str, ...],
        order_by: str = "created_at",
    ):
        self._db = db
        self.table = table
        self.columns = columns
        self.order_by = order_by

    def list_by_owner(self, owner_id: str) -> list[dict]:
        order_clause = f"{self.order_by} DESC"
        if self.order_by != "created_at":
            order_clause += ", created_at DESC"
        order_clause += ", rowid DESC"
        query = f"SELECT * FROM {self.table} WHERE user_id=? ORDER BY {order_clause}"
        try:
            with self._db.connect() as conn:
                rows = conn.execute(query, (owner_id,)).fetchall()
        except sqlite3.Error as exc:
            raise DataAccessError(f"Could not list {self.table}: {exc}") from exc
        return [dict(row) for row in rows]

    def get(self, owner_id: str, record_id: str) -> Optional[dict]:
        try:
            with self._db.connect() as conn:
                row = conn.execute(
                    f"SELECT * FROM {self.table} WHERE id=? AND user_id=?",
                    (record_id, owner_id),
                ).fetchone()
        except sqlite3.Error as exc:
            raise DataAccessError(f"Could not read {self.table}: {exc}") from exc
        return dict(row) if row else None

    def insert(self, owner_id: str, values: Mapping[str, Any]) -> dict:
        payload = self._clean(values)
        record_id = str(uuid.uuid4())
        names = ["id", "user_id", *payload.keys()]
        placeholders = ", ".join("?" for _ in names)
        try:
            with self._db.begin() as conn:
                conn.execute(
                    f"INSERT INTO {self.table} ({', '.join(names)}) VALUES ({placeholders})",
                    (record_id, owner_id, *payload.values()),
                )
                row = conn.execute(
                    f"SELECT * FROM {self.table} WHERE id=?", (record_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise DataAccessError(f"Could not insert into {self.table}: {exc}") from exc
        logger.info("Inserted %s row id=%s", self.table, record_id)
        return dict(row)

    def update(self, owner_id: str, record_id: str, values: Mapping[str, Any]) -> dict:
        payload = self._clean(values)
        if not payload:
            existing = self.get(owner_id, record_id)
            if existing is None:
                raise RecordNotFoundError(self.table, record_id)
            return existing
        assignments = ", ".join(f"{name}=?" for name in payload)
        try:
            with self._db.begin() as conn:
                cur = conn.execute(
                    f"UPDATE {self.table} SET {assignments} WHERE id=? AND user_id=?",
                    (*payload.values(), record_id, owner_id),
                )
                if cur.rowcount == 0:
                    raise RecordNotFoundError(self.table, record_id)
                row = conn.execute(
                    f"SELECT * FROM {self.table} WHERE id=?", (record_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise DataAccessError(f"Could not update {self.table}: {exc}") from exc
        logger.info("Updated %s row id=%s", self.table, record_id)
        return dict(row)

    def delete(self, owner_id: str, record_id: str) -> None:
        try:
            with self._db.begin() as conn:
                cur = conn.execute(
                    f"DELETE FROM {self.table} WHERE id=? AND user_id=?",
                    (record_id, owner_id),
                )
        except sqlite3.Error as exc:
            raise DataAccessError(f"Could not delete from {self.table}: {exc}") from exc
        if cur.rowcount == 0:
            raise RecordNotFoundError(self.table, record_id)
        logger.info("Deleted %s row id=%s", self.table, record_id)

    def _clean(self, values: Mapping[str, Any]) -> dict[str, Any]:
        # id, owner and timestamps are never client-writable
        return {name: values[name] for name in self.columns if name in values}


def product_repository(db: Database) -> CollectionRepository:
    return CollectionRepository(db, "products", ("name", "price", "unit"))


def customer_repository(db: Database) -> CollectionRepository:
    return CollectionRepository(db, "customers", ("name", "phone", "address"))


def order_repository(db: Database) -> CollectionRepository:
    return CollectionRepository(
        db,
        "daily_orders",
        (
            "date",
            "customer_id",
            "customer_name",
            "items",
            "total_amount",
            "amount_paid",
            "status",
        ),
        order_by="date",
    )


class UserRepository:
    """Encapsulate account lookups and login history."""

    def __init__(self, db: Database):
        self._db = db

    def fetch_by_email(self, email: str) -> Optional[dict]:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT id, email, username, pass_hash, created_at FROM users WHERE email=?",
                (email,),
            ).fetchone()
            return dict(row) if row else None

    def fetch_by_id(self, user_id: str) -> Optional[dict]:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT id, email, username, pass_hash, created_at FROM users WHERE id=?",
                (user_id,),
            ).fetchone()
            return dict(row) if row else None

    def create_user(self, email: str, username: str, pass_hash: str) -> dict:
        user_id = str(uuid.uuid4())
        with self._db.begin() as conn:
            conn.execute(
                "INSERT INTO users(id, email, username, pass_hash) VALUES (?, ?, ?, ?)",
                (user_id, email, username, pass_hash),
            )
        return {"id": user_id, "email": email, "username": username}

    def update_password_hash(self, user_id: str, new_hash: str) -> None:
        with self._db.begin() as conn:
            conn.execute(
                "UPDATE users SET pass_hash=? WHERE id=?",
                (new_hash, user_id),
            )

    def create_login_event(self, email: str, success: bool) -> None:
        with self._db.begin() as conn:
            conn.execute(
                """
                INSERT INTO login_events(email, success, occurred_at)
                VALUES (?, ?, datetime('now'))
                """,
                (email, int(success)),
            )

    def count_recent_failures(self, email: str, minutes: int) -> int:
        with self._db.connect() as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS failures
                FROM login_events
                WHERE email=? AND success=0
                  AND occurred_at >= datetime('now', ?)
                """,
                (email, f"-{minutes} minutes"),
            ).fetchone()
            return row[0] if row else 0

    def latest_failure_time(self, email: str) -> Optional[str]:
        with self._db.connect() as conn:
            row = conn.execute(
                """
                SELECT occurred_at
                FROM login_events
                WHERE email=? AND success=0
                ORDER BY occurred_at DESC
                LIMIT 1
                """,
                (email,),
            ).fetchone()
            return row[0] if row else None

    def purge_login_history(self, minutes: int) -> None:
        with self._db.begin() as conn:
            conn.execute(
                "DELETE FROM login_events WHERE occurred_at < datetime('now', ?)",
                (f"-{minutes} minutes",),
            )

    def clear_login_events(self, email: str) -> None:
        with self._db.begin() as conn:
            conn.execute("DELETE FROM login_events WHERE email=?", (email,))
