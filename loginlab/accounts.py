# accounts.py
"""In-memory account store.

Usernames are unique, case-sensitive keys. Passwords are kept only as
bcrypt hashes; accounts live as long as the process and are never updated
or removed.
"""

import enum
import logging
import threading
from dataclasses import dataclass

from flask_bcrypt import Bcrypt

from loginlab.errors import DuplicateError, ValidationError

log = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10
# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class Account:
    username: str
    password_hash: str


class VerifyResult(enum.Enum):
    MATCHED = "matched"
    NOT_FOUND = "not_found"
    MISMATCH = "mismatch"


class AccountStore:
    def __init__(self, bcrypt=None, rounds=None, reserved=()):
        if bcrypt is None:
            bcrypt = Bcrypt()
            rounds = rounds or DEFAULT_ROUNDS
        self.bcrypt = bcrypt
        # None defers to the extension's BCRYPT_LOG_ROUNDS
        self.rounds = rounds
        self._reserved = frozenset(reserved)
        self._lock = threading.Lock()
        self._accounts: dict[str, Account] = {}

    def __len__(self):
        with self._lock:
            return len(self._accounts)

    def __contains__(self, username):
        with self._lock:
            return username in self._accounts

    def _taken(self, username):
        return username in self._reserved or username in self._accounts

    def register(self, username, password, confirm_password) -> Account:
        if not username or not password or not confirm_password:
            raise ValidationError("All fields are required.")
        if password != confirm_password:
            raise ValidationError("Passwords do not match.")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")

        with self._lock:
            if self._taken(username):
                raise DuplicateError("Username is already taken.")

        # hash outside the lock
        password_hash = self.bcrypt.generate_password_hash(password, self.rounds).decode("utf-8")
        account = Account(username=username, password_hash=password_hash)

        with self._lock:
            # another request may have won the race while we were hashing
            if self._taken(username):
                raise DuplicateError("Username is already taken.")
            self._accounts[username] = account

        log.info("registered account %r", username)
        return account

    def get(self, username):
        with self._lock:
            return self._accounts.get(username)

    def verify(self, username, password) -> VerifyResult:
        account = self.get(username)
        if account is None:
            return VerifyResult.NOT_FOUND
        if not password or len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return VerifyResult.MISMATCH
        if self.bcrypt.check_password_hash(account.password_hash, password):
            return VerifyResult.MATCHED
        return VerifyResult.MISMATCH

    def list_accounts(self) -> list[Account]:
        with self._lock:
            return sorted(self._accounts.values(), key=lambda a: a.username)
