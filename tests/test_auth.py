from dairy_suite import SessionManager


def test_sign_up_then_sign_in(auth):
    assert auth.sign_up("Milk@Example.com ", "ravi", "secret123").success
    auth.sign_out()
    assert auth.get_session() is None

    result = auth.sign_in("milk@example.com", "secret123")

    assert result.success and result.error is None
    user = auth.get_session()
    assert user.email == "milk@example.com"
    assert user.username == "ravi"


def test_sign_in_failure_returns_error_instead_of_raising(auth):
    auth.sign_up("ravi@example.com", "ravi", "secret123")
    auth.sign_out()

    result = auth.sign_in("ravi@example.com", "wrong-password")

    assert not result.success
    assert result.error == "Invalid login credentials"
    assert auth.get_session() is None


def test_sign_in_with_corrupt_stored_hash_fails_cleanly(auth):
    auth.sign_up("ravi@example.com", "ravi", "secret123")
    auth.sign_out()
    user = auth.users.fetch_by_email("ravi@example.com")
    auth.users.update_password_hash(user["id"], "pbkdf2$not-a-digest$1000$c2FsdA==$aGFzaA==")

    result = auth.sign_in("ravi@example.com", "secret123")

    assert not result.success
    assert result.error == "Invalid login credentials"
    assert auth.get_session() is None


def test_sign_up_validation_errors(auth):
    assert auth.sign_up("not-an-email", "ravi", "secret123").error.startswith("Unable to validate")
    assert auth.sign_up("ravi@example.com", " ", "secret123").error == "Username is required."
    assert "at least 6" in auth.sign_up("ravi@example.com", "ravi", "123").error

    assert auth.sign_up("ravi@example.com", "ravi", "secret123").success
    duplicate = auth.sign_up("ravi@example.com", "ravi2", "secret123")
    assert not duplicate.success
    assert duplicate.error == "User already registered"


def test_repeated_failures_lock_the_account(auth, config):
    auth.sign_up("ravi@example.com", "ravi", "secret123")
    auth.sign_out()
    for _ in range(config.login_max_attempts):
        auth.sign_in("ravi@example.com", "nope")

    result = auth.sign_in("ravi@example.com", "secret123")

    assert not result.success
    assert "locked" in result.error.lower()


def test_listeners_receive_session_changes_until_unsubscribed(auth):
    seen = []
    subscription = auth.on_auth_state_change(seen.append)

    auth.sign_up("ravi@example.com", "ravi", "secret123")
    auth.sign_out()
    subscription.unsubscribe()
    subscription.unsubscribe()
    auth.sign_in("ravi@example.com", "secret123")

    assert len(seen) == 2
    assert seen[0].email == "ravi@example.com"
    assert seen[1] is None
    assert auth.session.listener_count == 0


def test_listener_may_unsubscribe_during_notification():
    manager = SessionManager()
    calls = []
    holder = {}

    def once(user):
        calls.append(user)
        holder["sub"].unsubscribe()

    holder["sub"] = manager.subscribe(once)
    other = manager.subscribe(lambda user: calls.append(("other", user)))

    manager.set_user(None)
    manager.set_user(None)

    assert calls == [None, ("other", None), ("other", None)]
    other.unsubscribe()
