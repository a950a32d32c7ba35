"""
In-memory OTP store.

One record per (aadhaar, mobile) key moves through
NONE -> ISSUED -> VERIFIED, or ends as EXPIRED / LOCKED (record removed).
Expiry is checked lazily when the record is verified; nothing sweeps the map
except ``prune()``, which the housekeeping thread calls.

Each key has its own lock so concurrent verify calls for the same key cannot
lose an attempt increment, while unrelated keys never wait on each other.
Issuance also takes a per-mobile lock because the rate-limit window is
shared by every aadhaar that uses the same mobile number.
"""

import enum
import logging
import secrets
import threading
from collections import deque
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Deque, Dict, Optional, Tuple

from core.config import (
    OTP_LENGTH, OTP_EXPIRY_MINUTES, OTP_MAX_ATTEMPTS, OTP_RATE_LIMIT_MAX,
    OTP_RATE_LIMIT_WINDOW_MINUTES, OTP_RECORD_RETENTION_HOURS,
)
from core.exceptions import (
    OTPRateLimited, OTPNotFound, OTPExpired, OTPAlreadyVerified,
    OTPAttemptsExceeded, OTPInvalidCode,
)

logger = logging.getLogger(__name__)


class OTPState(str, enum.Enum):
    NONE = "NONE"
    ISSUED = "ISSUED"
    VERIFIED = "VERIFIED"
    EXPIRED = "EXPIRED"
    LOCKED = "LOCKED"


@dataclass
class OTPRecord:
    code: str
    aadhaar: str
    mobile: str
    entrepreneur_name: str
    created_at: datetime
    expires_at: datetime
    attempts: int = 0
    verified: bool = False


def generate_otp() -> str:
    lowest = 10 ** (OTP_LENGTH - 1)
    return str(lowest + secrets.randbelow(9 * lowest))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OTPStore:

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        expiry_minutes: int = OTP_EXPIRY_MINUTES,
        max_attempts: int = OTP_MAX_ATTEMPTS,
        rate_limit_max: int = OTP_RATE_LIMIT_MAX,
        rate_limit_window_minutes: int = OTP_RATE_LIMIT_WINDOW_MINUTES,
    ):
        self._clock = clock
        self.expiry = timedelta(minutes=expiry_minutes)
        self.max_attempts = max_attempts
        self.rate_limit_max = rate_limit_max
        self.rate_limit_window = timedelta(minutes=rate_limit_window_minutes)

        self._records: Dict[Tuple[str, str], OTPRecord] = {}
        self._issuances: Dict[str, Deque[datetime]] = {}
        self._key_locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._mobile_locks: Dict[str, threading.Lock] = {}
        self._table_lock = threading.Lock()

    def _lock_for_key(self, key: Tuple[str, str]) -> threading.Lock:
        with self._table_lock:
            return self._key_locks.setdefault(key, threading.Lock())

    def _existing_key_lock(self, key: Tuple[str, str]) -> Optional[threading.Lock]:
        # lookups on keys that were never issued must not allocate a lock
        with self._table_lock:
            if key not in self._records:
                return None
            return self._key_locks.setdefault(key, threading.Lock())

    def _lock_for_mobile(self, mobile: str) -> threading.Lock:
        with self._table_lock:
            return self._mobile_locks.setdefault(mobile, threading.Lock())

    def _recent_issuances(self, mobile: str, now: datetime) -> Deque[datetime]:
        window = self._issuances.setdefault(mobile, deque())
        cutoff = now - self.rate_limit_window
        while window and window[0] <= cutoff:
            window.popleft()
        return window

    def issue(self, aadhaar: str, entrepreneur_name: str, mobile: str) -> OTPRecord:
        """Issue a fresh code for the key, replacing any earlier record."""
        key = (aadhaar, mobile)
        with self._lock_for_mobile(mobile):
            now = self._clock()
            window = self._recent_issuances(mobile, now)
            if len(window) >= self.rate_limit_max:
                logger.warning(f"OTP rate limit hit for mobile ending {mobile[-4:]}")
                raise OTPRateLimited(details={"issued_in_window": len(window)})

            with self._lock_for_key(key):
                record = OTPRecord(
                    code=generate_otp(),
                    aadhaar=aadhaar,
                    mobile=mobile,
                    entrepreneur_name=entrepreneur_name,
                    created_at=now,
                    expires_at=now + self.expiry,
                )
                self._records[key] = record
                window.append(now)

        logger.info(f"OTP issued for aadhaar ending {aadhaar[-4:]} ({len(window)}/{self.rate_limit_max} this window)")
        return replace(record)

    def verify(self, aadhaar: str, mobile: str, code: str) -> OTPRecord:
        key = (aadhaar, mobile)
        lock = self._existing_key_lock(key)
        if lock is None:
            raise OTPNotFound()

        with lock:
            record = self._records.get(key)
            if record is None:
                raise OTPNotFound()

            if self._clock() > record.expires_at:
                del self._records[key]
                raise OTPExpired()

            if record.verified:
                raise OTPAlreadyVerified()

            if record.attempts >= self.max_attempts:
                del self._records[key]
                raise OTPAttemptsExceeded()

            if record.code != code:
                record.attempts += 1
                raise OTPInvalidCode(
                    remaining=self.max_attempts - record.attempts,
                    details={"attempts": record.attempts},
                )

            record.verified = True
            return replace(record)

    def get(self, aadhaar: str, mobile: str) -> Optional[OTPRecord]:
        key = (aadhaar, mobile)
        lock = self._existing_key_lock(key)
        if lock is None:
            return None
        with lock:
            record = self._records.get(key)
            return replace(record) if record else None

    def state(self, aadhaar: str, mobile: str) -> OTPState:
        record = self.get(aadhaar, mobile)
        if record is None:
            return OTPState.NONE
        if record.verified:
            return OTPState.VERIFIED
        if self._clock() > record.expires_at:
            return OTPState.EXPIRED
        if record.attempts >= self.max_attempts:
            return OTPState.LOCKED
        return OTPState.ISSUED

    def is_expired(self, record: OTPRecord) -> bool:
        return self._clock() > record.expires_at

    def issuances_in_window(self, mobile: str) -> int:
        with self._table_lock:
            lock = self._mobile_locks.get(mobile)
        if lock is None:
            return 0
        with lock:
            window = self._issuances.get(mobile)
            if window is None:
                return 0
            return len(self._recent_issuances(mobile, self._clock()))

    def tracked_lock_count(self) -> int:
        with self._table_lock:
            return len(self._key_locks) + len(self._mobile_locks)

    def prune(self, retention_hours: int = OTP_RECORD_RETENTION_HOURS) -> int:
        """Drop records expired for longer than ``retention_hours``, empty rate windows,
        and the locks of keys and mobiles that no longer hold state."""
        now = self._clock()
        cutoff = now - timedelta(hours=retention_hours)
        removed = 0

        for key in list(self._records):
            lock = self._existing_key_lock(key)
            if lock is None:
                continue
            with lock:
                record = self._records.get(key)
                if record and record.expires_at < cutoff:
                    del self._records[key]
                    removed += 1

        for mobile in list(self._issuances):
            with self._lock_for_mobile(mobile):
                if not self._recent_issuances(mobile, now):
                    del self._issuances[mobile]

        with self._table_lock:
            for key in [k for k, lock in self._key_locks.items() if k not in self._records and not lock.locked()]:
                del self._key_locks[key]
            for mobile in [m for m, lock in self._mobile_locks.items() if m not in self._issuances and not lock.locked()]:
                del self._mobile_locks[mobile]

        return removed

    def clear(self) -> None:
        with self._table_lock:
            self._records.clear()
            self._issuances.clear()
            self._key_locks.clear()
            self._mobile_locks.clear()
