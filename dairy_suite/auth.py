"""Account sign-in and session-change notifications.

``AuthService`` is the identity provider for the app. Sign-in and sign-up
never raise for user-facing problems; they return an ``AuthResult`` with a
message instead. Anything interested in the signed-in account (the data
store, the Streamlit shell) subscribes to the ``SessionManager`` and gets
called with the current ``SessionUser`` or ``None`` on every change.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from .repositories import UserRepository
from .security import AccountLockoutService, PasswordService

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: str
    username: str


@dataclass(frozen=True)
class AuthResult:
    success: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "AuthResult":
        return cls(True, None)

    @classmethod
    def failed(cls, message: str) -> "AuthResult":
        return cls(False, message)


SessionListener = Callable[[Optional[SessionUser]], None]


class Subscription:
    """Handle returned by ``SessionManager.subscribe``."""

    def __init__(self, manager: "SessionManager", listener: SessionListener):
        self._manager = manager
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._manager._remove(self._listener)


class SessionManager:
    """Hold the current account and fan out changes to listeners."""

    def __init__(self) -> None:
        self._user: Optional[SessionUser] = None
        self._listeners: list[SessionListener] = []

    @property
    def user(self) -> Optional[SessionUser]:
        return self._user

    def subscribe(self, listener: SessionListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def set_user(self, user: Optional[SessionUser]) -> None:
        self._user = user
        for listener in list(self._listeners):
            listener(user)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _remove(self, listener: SessionListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        passwords: PasswordService,
        lockout: AccountLockoutService,
        session: Optional[SessionManager] = None,
    ):
        self.users = users
        self.passwords = passwords
        self.lockout = lockout
        self.session = session or SessionManager()

    def get_session(self) -> Optional[SessionUser]:
        return self.session.user

    def on_auth_state_change(self, listener: SessionListener) -> Subscription:
        return self.session.subscribe(listener)

    def sign_in(self, email: str, password: str) -> AuthResult:
        email = _normalize_email(email)
        if not email or not password:
            return AuthResult.failed("Email and password are required.")

        if self.lockout.is_locked(email):
            logger.warning("Sign-in blocked for locked account %s", email)
            return AuthResult.failed(self.lockout.lockout_message(email))

        user = self.users.fetch_by_email(email)
        if not user or not self.passwords.verify(password, user["pass_hash"]):
            self.lockout.record_attempt(email, False)
            logger.warning("Failed sign-in for %s", email)
            return AuthResult.failed("Invalid login credentials")

        self.lockout.record_attempt(email, True)
        if self.passwords.needs_update(user["pass_hash"]):
            self.users.update_password_hash(user["id"], self.passwords.hash(password))
        logger.info("Signed in %s", email)
        self.session.set_user(
            SessionUser(id=user["id"], email=user["email"], username=user["username"] or user["email"])
        )
        return AuthResult.ok()

    def sign_up(self, email: str, username: str, password: str) -> AuthResult:
        email = _normalize_email(email)
        username = (username or "").strip()
        if not EMAIL_PATTERN.match(email):
            return AuthResult.failed("Unable to validate email address: invalid format")
        if not username:
            return AuthResult.failed("Username is required.")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            return AuthResult.failed(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters."
            )
        if self.users.fetch_by_email(email):
            return AuthResult.failed("User already registered")

        created = self.users.create_user(email, username, self.passwords.hash(password))
        logger.info("Registered %s", email)
        self.session.set_user(
            SessionUser(id=created["id"], email=created["email"], username=created["username"])
        )
        return AuthResult.ok()

    def sign_out(self) -> None:
        current = self.session.user
        if current is not None:
            logger.info("Signed out %s", current.email)
        self.session.set_user(None)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()
