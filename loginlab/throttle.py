# throttle.py
"""Per-username failed-login counter with a temporary lock.

A username moves Clear -> Accumulating(n) -> Locked(until). Reaching
``max_attempts`` failures locks it for ``lock_seconds`` measured from the
failure that crossed the threshold. The counter survives the lock, so once
it expires the next failure locks again. A success drops the record.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Optional, Union

log = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
LOCK_SECONDS = 120


@dataclass
class AttemptRecord:
    username: str
    failure_count: int = 0
    lock_until: Optional[float] = None


@dataclass(frozen=True)
class Allowed:
    pass


@dataclass(frozen=True)
class Blocked:
    seconds_remaining: int


@dataclass(frozen=True)
class Recorded:
    failure_count: int
    lock_until: Optional[float]

    @property
    def locked(self):
        return self.lock_until is not None


LockStatus = Union[Allowed, Blocked]


class AttemptThrottle:
    def __init__(self, max_attempts=MAX_ATTEMPTS, lock_seconds=LOCK_SECONDS):
        self.max_attempts = max_attempts
        self.lock_seconds = lock_seconds
        self._lock = threading.Lock()
        self._records: dict[str, AttemptRecord] = {}

    def get(self, username):
        with self._lock:
            record = self._records.get(username)
            if record is None:
                return None
            return AttemptRecord(record.username, record.failure_count, record.lock_until)

    def check_lock(self, username, now=None) -> LockStatus:
        now = time.time() if now is None else now
        with self._lock:
            record = self._records.get(username)
            if record is None or record.lock_until is None or now >= record.lock_until:
                return Allowed()
            return Blocked(math.ceil(record.lock_until - now))

    def record_failure(self, username, now=None) -> Recorded:
        now = time.time() if now is None else now
        with self._lock:
            record = self._records.get(username)
            if record is None:
                record = self._records[username] = AttemptRecord(username)
            record.failure_count += 1

            still_locked = record.lock_until is not None and now < record.lock_until
            if record.failure_count >= self.max_attempts and not still_locked:
                record.lock_until = now + self.lock_seconds
            log.debug("failed login %d for %r", record.failure_count, username)

            return Recorded(record.failure_count, record.lock_until)

    def record_success(self, username):
        with self._lock:
            self._records.pop(username, None)
