"""Security helpers for password hashing and account lockout."""
from __future__ import annotations

import base64
import hashlib
import hmac
import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .config import AppConfig
from .repositories import UserRepository


@dataclass
class PasswordService:
    """Manage password hashing and upgrades using PBKDF2."""

    iterations: int = 260_000
    algorithm: str = "sha256"

    @classmethod
    def default(cls) -> "PasswordService":
        return cls()

    def hash(self, password: str) -> str:
        salt = os.urandom(16)
        derived = hashlib.pbkdf2_hmac(
            self.algorithm, password.encode("utf-8"), salt, self.iterations
        )
        encoded_salt = base64.b64encode(salt).decode("ascii")
        encoded_hash = base64.b64encode(derived).decode("ascii")
        return f"pbkdf2${self.algorithm}${self.iterations}${encoded_salt}${encoded_hash}"

    @staticmethod
    def _parse(stored_hash: str) -> Optional[tuple[str, int, bytes, bytes]]:
        if not stored_hash or not stored_hash.startswith("pbkdf2$"):
            return None
        try:
            _, algorithm, iteration_str, salt_b64, hash_b64 = stored_hash.split("$")
            return (
                algorithm,
                int(iteration_str),
                base64.b64decode(salt_b64, validate=True),
                base64.b64decode(hash_b64, validate=True),
            )
        except (ValueError, TypeError):
            return None

    def verify(self, password: str, stored_hash: str) -> bool:
        parsed = self._parse(stored_hash)
        if parsed is None:
            return False
        algorithm, iterations, salt, expected = parsed
        try:
            derived = hashlib.pbkdf2_hmac(algorithm, password.encode("utf-8"), salt, iterations)
        except (ValueError, TypeError):
            # unknown digest name or non-positive iteration count in the stored hash
            return False
        return hmac.compare_digest(derived, expected)

    def needs_update(self, stored_hash: str) -> bool:
        parsed = self._parse(stored_hash)
        return parsed is None or parsed[0] != self.algorithm or parsed[1] < self.iterations


@dataclass
class AccountLockoutService:
    """Handle sign-in throttling based on repeated failed attempts."""

    config: AppConfig
    users: UserRepository

    def is_locked(self, email: str) -> Optional[str]:
        failures = self.users.count_recent_failures(
            email, self.config.login_lockout_minutes
        )
        if failures >= self.config.login_max_attempts:
            return self.users.latest_failure_time(email)
        return None

    def record_attempt(self, email: str, success: bool) -> None:
        self.users.create_login_event(email, success)
        self.users.purge_login_history(self.config.login_lockout_minutes)
        if success:
            self.users.clear_login_events(email)

    def lockout_message(self, email: str) -> str:
        last_failure = self.users.latest_failure_time(email)
        if not last_failure:
            return "Too many failed attempts. Please try again later."
        try:
            timestamp = datetime.fromisoformat(last_failure)
        except ValueError:
            return "Account locked due to repeated failures."
        unlock_time = timestamp + timedelta(minutes=self.config.login_lockout_minutes)
        return f"Account locked due to repeated failures. Try again after {unlock_time:%Y-%m-%d %H:%M} UTC."
