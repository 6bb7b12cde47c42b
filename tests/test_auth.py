from unittest import mock

import pytest

from loginlab.auth import AdminCredentials, SessionUser, authenticate
from loginlab.errors import InvalidCredentials, LockedError

T0 = 1_000_000.0
ADMIN = AdminCredentials("root", "hunter2")


@pytest.fixture
def login(accounts, throttle):
    def _login(username, password, now=T0):
        return authenticate(username, password, accounts, throttle, ADMIN, now=now)
    return _login


def test_alice_scenario(accounts, throttle, login):
    accounts.register("alice", "pw1", "pw1")
    assert login("alice", "pw1") == SessionUser("alice", "user")

    for i in range(5):
        with pytest.raises(InvalidCredentials):
            login("alice", "wrong", now=T0 + i)
    # 5th failure happened at T0 + 4
    with pytest.raises(LockedError) as exc:
        login("alice", "pw1", now=T0 + 30)
    assert 0 < exc.value.seconds_remaining <= 120
    assert exc.value.seconds_remaining == 94


def test_success_after_failures_restarts_count(accounts, throttle, login):
    accounts.register("alice", "pw1", "pw1")
    for _ in range(4):
        with pytest.raises(InvalidCredentials):
            login("alice", "wrong")
    login("alice", "pw1")
    with pytest.raises(InvalidCredentials):
        login("alice", "wrong")
    assert throttle.get("alice").failure_count == 1


def test_unknown_user_locks_like_known_one(throttle, login):
    for _ in range(5):
        with pytest.raises(InvalidCredentials):
            login("ghost", "pw")
    with pytest.raises(LockedError):
        login("ghost", "pw")


def test_locked_user_skips_password_check(accounts, throttle, login):
    accounts.register("alice", "pw1", "pw1")
    for _ in range(5):
        throttle.record_failure("alice", T0)
    with mock.patch.object(accounts, "verify") as verify:
        with pytest.raises(LockedError):
            login("alice", "pw1")
    verify.assert_not_called()
    # blocked attempts are not counted
    assert throttle.get("alice").failure_count == 5


def test_admin_never_touches_store_or_throttle(accounts, throttle, login):
    with mock.patch.object(accounts, "verify") as verify, \
            mock.patch.object(throttle, "check_lock") as check_lock, \
            mock.patch.object(throttle, "record_success") as record_success:
        user = login("root", "hunter2")
    assert user == SessionUser("root", "admin")
    assert user.is_admin
    verify.assert_not_called()
    check_lock.assert_not_called()
    record_success.assert_not_called()


def test_wrong_admin_password_counts_as_failure(throttle, login):
    with pytest.raises(InvalidCredentials):
        login("root", "nope")
    assert throttle.get("root").failure_count == 1


def test_admin_with_empty_credentials_never_matches():
    assert not AdminCredentials("", "").matches("", "")


@pytest.mark.parametrize("data", [
    None,
    "alice",
    {},
    {"username": "alice"},
    {"username": "alice", "role": "superuser"},
    {"username": "", "role": "user"},
])
def test_session_user_rejects_bad_shapes(data):
    assert SessionUser.from_session(data) is None


def test_session_user_round_trip():
    user = SessionUser("alice", "user")
    assert user.to_session() == {"username": "alice", "role": "user"}
    assert SessionUser.from_session(user.to_session()) == user


def test_lock_is_logged_once_threshold_is_reached(login, caplog):
    caplog.set_level("WARNING", logger="loginlab.auth")
    for i in range(4):
        with pytest.raises(InvalidCredentials):
            login("alice", "wrong", now=T0 + i)
    assert not caplog.records

    with pytest.raises(InvalidCredentials):
        login("alice", "wrong", now=T0 + 4)
    assert len(caplog.records) == 1
    assert "locked" in caplog.records[0].getMessage()
    assert "'alice'" in caplog.records[0].getMessage()
