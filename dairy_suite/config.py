"""Application configuration helpers."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    """Hold runtime configuration options for the application."""

    data_dir: Path
    db_url: str
    business_name: str
    currency: str
    login_max_attempts: int
    login_lockout_minutes: int
    log_level: str = "INFO"

    @property
    def db_is_sqlite(self) -> bool:
        return self.db_url.startswith("sqlite:")


DEFAULT_BUSINESS_NAME = "Jay Goga Milk"
DEFAULT_CURRENCY = "Rs"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def load_config() -> AppConfig:
    """Load settings from environment variables with sane defaults."""

    data_dir = Path(
        os.environ.get("DAIRY_SUITE_DATA_DIR", _default_data_dir())
    ).expanduser()
    data_dir.mkdir(parents=True, exist_ok=True)

    db_url = os.environ.get("DAIRY_SUITE_DB_URL")
    if not db_url:
        db_path = data_dir / "dairy_suite.db"
        db_url = f"sqlite:///{db_path}" if os.name != "nt" else f"sqlite:///{db_path.as_posix()}"

    business_name = os.environ.get("DAIRY_SUITE_BUSINESS_NAME", "").strip() or DEFAULT_BUSINESS_NAME
    currency = os.environ.get("DAIRY_SUITE_CURRENCY", "").strip() or DEFAULT_CURRENCY

    return AppConfig(
        data_dir=data_dir,
        db_url=db_url,
        business_name=business_name,
        currency=currency,
        login_max_attempts=_int_env("DAIRY_SUITE_LOGIN_MAX_ATTEMPTS", 5),
        login_lockout_minutes=_int_env("DAIRY_SUITE_LOGIN_LOCKOUT_MINUTES", 15),
        log_level=os.environ.get("DAIRY_SUITE_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler once; later calls only adjust the level."""

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    resolved = getattr(logging, level.upper(), None)
    root.setLevel(resolved if isinstance(resolved, int) else logging.INFO)


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, ""))
    except ValueError:
        return default


def _default_data_dir() -> Path:
    if os.name == "nt":
        root = Path(os.environ.get("APPDATA", Path.home()))
    else:
        if os.environ.get("RENDER"):
            root = Path.cwd()
        else:
            root = Path.home()
    return root / ".dairy_suite"
