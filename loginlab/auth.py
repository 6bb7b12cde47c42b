# auth.py
import hmac
import logging
from dataclasses import asdict, dataclass

from loginlab.accounts import VerifyResult
from loginlab.errors import InvalidCredentials, LockedError
from loginlab.throttle import Blocked

log = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class AdminCredentials:
    username: str
    password: str

    def matches(self, username, password):
        if not self.username or not self.password:
            return False
        user_ok = hmac.compare_digest(username.encode("utf-8"), self.username.encode("utf-8"))
        pass_ok = hmac.compare_digest(password.encode("utf-8"), self.password.encode("utf-8"))
        return user_ok and pass_ok


@dataclass(frozen=True)
class SessionUser:
    username: str
    role: str

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def to_session(self):
        return asdict(self)

    @classmethod
    def from_session(cls, data):
        if not isinstance(data, dict):
            return None
        username, role = data.get("username"), data.get("role")
        if not username or role not in (ROLE_USER, ROLE_ADMIN):
            return None
        return cls(username, role)


def authenticate(username, password, accounts, throttle, admin, now=None) -> SessionUser:
    """Check a login attempt and return the user to store in the session.

    Admin credentials short-circuit everything else. For regular users the
    lock is checked before the password is verified, so a locked username
    never reaches bcrypt.

    Raises LockedError while the username is locked and InvalidCredentials
    for an unknown username or a wrong password.
    """
    username = username or ""
    password = password or ""

    if admin.matches(username, password):
        log.info("admin login for %r", username)
        return SessionUser(username, ROLE_ADMIN)

    status = throttle.check_lock(username, now)
    if isinstance(status, Blocked):
        raise LockedError(status.seconds_remaining)

    if accounts.verify(username, password) is VerifyResult.MATCHED:
        throttle.record_success(username)
        return SessionUser(username, ROLE_USER)

    result = throttle.record_failure(username, now)
    if result.locked:
        log.warning("username %r locked until %s after %d failed logins",
                    username, result.lock_until, result.failure_count)
    raise InvalidCredentials("Invalid username or password.")
