"""One-time password lifecycle.

Synopsis:
Issues, stores, rate-limits and verifies short-lived numeric codes used to
confirm control of an email address or phone number during registration.
Every failure is returned as a structured result so route handlers can show
the message without special-casing exceptions.

Glossary:
- Identifier: Email address or phone number key for an OTP record.
- Record: Code, absolute expiry, attempt counter and attempt budget.
- Eviction worker: Background thread that drops records once they expire.
"""

from __future__ import annotations

import heapq
import hmac
import itertools
import logging
import random
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from flask import current_app

from ..utils.timezone_utils import TimezoneUtils

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_MINUTES = 10
DEFAULT_MAX_ATTEMPTS = 5

MESSAGE_NOT_FOUND = "OTP not found or expired. Please request a new OTP."
MESSAGE_EXPIRED = "OTP has expired. Please request a new OTP."
MESSAGE_ATTEMPTS_EXHAUSTED = "Maximum attempts exceeded. Please request a new OTP."
MESSAGE_VERIFIED = "OTP verified successfully."

REASON_NOT_FOUND = "not_found"
REASON_EXPIRED = "expired"
REASON_ATTEMPTS_EXHAUSTED = "attempts_exhausted"
REASON_MISMATCH = "mismatch"
REASON_VERIFIED = "verified"


# --- OTPRecord ---
# Purpose: Hold one identifier's code, expiry and attempt counter.
@dataclass(eq=False)
class OTPRecord:
    otp: str
    expires_at: datetime
    attempts: int = 0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


# --- OTPVerificationResult ---
# Purpose: Tagged outcome of a verification attempt.
@dataclass(frozen=True)
class OTPVerificationResult:
    valid: bool
    message: str
    reason: str
    remaining_attempts: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"valid": self.valid, "message": self.message, "reason": self.reason}
        if self.remaining_attempts is not None:
            payload["remaining_attempts"] = self.remaining_attempts
        return payload


class OTPStore:
    """
    Thread-safe identifier -> OTPRecord map.

    Expired records are dropped by one background eviction worker per store.
    The worker sleeps until the earliest pending expiry, so the number of
    threads does not grow with the number of stored codes. Each deadline
    names the record instance it was scheduled for; deleting or overwriting
    a record leaves its deadline stale and the worker skips it.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        schedule_eviction: bool = True,
    ) -> None:
        self._records: Dict[str, OTPRecord] = {}
        self._lock = threading.Lock()
        self._wakeup = threading.Condition(self._lock)
        self._clock = clock or TimezoneUtils.utc_now
        self._schedule_eviction = schedule_eviction
        self._deadlines: list[tuple[datetime, int, str, OTPRecord]] = []
        self._sequence = itertools.count()
        self._worker: Optional[threading.Thread] = None

    def now(self) -> datetime:
        return self._clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def put(self, identifier: str, record: OTPRecord) -> None:
        """Insert or overwrite the record for `identifier`."""
        with self._lock:
            self._records.pop(identifier, None)
            self._purge_expired_locked()
            self._records[identifier] = record
            self._schedule_locked(identifier, record)

    def get(self, identifier: str) -> Optional[OTPRecord]:
        with self._lock:
            return self._records.get(identifier)

    def delete(self, identifier: str, record: OTPRecord | None = None) -> bool:
        """Remove the record for `identifier`; with `record`, only if it is still current."""
        with self._lock:
            return self._delete_locked(identifier, record)

    def attempt(self, identifier: str, candidate: str) -> tuple[str, Optional[OTPRecord]]:
        """
        Check `candidate` against the stored code and consume one attempt.

        The expiry check, attempt increment and any resulting deletion happen
        under one lock, so two concurrent attempts can never both see a
        counter below the budget.
        """
        with self._lock:
            record = self._records.get(identifier)
            if record is None:
                return REASON_NOT_FOUND, None

            if record.is_expired(self.now()):
                self._delete_locked(identifier, record)
                return REASON_EXPIRED, record

            if record.attempts >= record.max_attempts:
                self._delete_locked(identifier, record)
                return REASON_ATTEMPTS_EXHAUSTED, record

            record.attempts += 1

            if not _codes_match(record.otp, candidate):
                if record.attempts >= record.max_attempts:
                    self._delete_locked(identifier, record)
                return REASON_MISMATCH, record

            self._delete_locked(identifier, record)
            return REASON_VERIFIED, record

    def snapshot(self, identifier: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(identifier)
            if record is None:
                return None
            return {
                "expires_at": record.expires_at,
                "attempts": record.attempts,
                "max_attempts": record.max_attempts,
                "is_expired": record.is_expired(self.now()),
            }

    def pending_evictions(self) -> int:
        """Number of scheduled expiries whose record is still stored."""
        with self._lock:
            return sum(1 for _, _, key, record in self._deadlines if self._records.get(key) is record)

    def clear(self) -> None:
        """Drop every record and every scheduled expiry."""
        with self._lock:
            self._records.clear()
            self._deadlines.clear()
            self._wakeup.notify_all()

    def close(self, timeout: float = 1.0) -> None:
        """Clear the store and stop the eviction worker."""
        with self._lock:
            self._records.clear()
            self._deadlines.clear()
            worker = self._worker
            self._worker = None
            self._wakeup.notify_all()
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)

    def _delete_locked(self, identifier: str, record: OTPRecord | None) -> bool:
        current = self._records.get(identifier)
        if current is None or (record is not None and current is not record):
            return False
        del self._records[identifier]
        return True

    def _purge_expired_locked(self) -> None:
        now = self.now()
        expired = [key for key, record in self._records.items() if record.is_expired(now)]
        for key in expired:
            del self._records[key]

    def _schedule_locked(self, identifier: str, record: OTPRecord) -> None:
        if not self._schedule_eviction:
            return
        if record.expires_at <= self.now():
            # Already expired; the lazy check in attempt() handles it
            return
        self._compact_deadlines_locked()
        heapq.heappush(self._deadlines, (record.expires_at, next(self._sequence), identifier, record))
        if self._worker is None or not self._worker.is_alive():
            self._worker = threading.Thread(
                target=self._run_evictions,
                name="otp-eviction",
                daemon=True,
            )
            self._worker.start()
        else:
            self._wakeup.notify()

    def _compact_deadlines_locked(self) -> None:
        # Resends and verifications leave stale deadlines behind
        if len(self._deadlines) <= 2 * len(self._records) + 64:
            return
        self._deadlines = [
            entry for entry in self._deadlines
            if self._records.get(entry[2]) is entry[3]
        ]
        heapq.heapify(self._deadlines)

    def _run_evictions(self) -> None:
        with self._wakeup:
            while self._worker is threading.current_thread():
                if not self._deadlines:
                    self._wakeup.wait()
                    continue
                expires_at, _, identifier, record = self._deadlines[0]
                if self._records.get(identifier) is not record:
                    heapq.heappop(self._deadlines)
                    continue
                delay = (expires_at - self.now()).total_seconds()
                if delay > 0:
                    self._wakeup.wait(delay)
                    continue
                heapq.heappop(self._deadlines)
                self._evict_locked(identifier, record)

    def _evict(self, identifier: str, record: OTPRecord) -> None:
        with self._lock:
            self._evict_locked(identifier, record)

    def _evict_locked(self, identifier: str, record: OTPRecord) -> None:
        if self._records.get(identifier) is record:
            del self._records[identifier]
            logger.debug("Evicted expired OTP for %s", identifier)


def _codes_match(expected: str, candidate: Any) -> bool:
    if candidate is None:
        return False
    return hmac.compare_digest(str(expected).encode("utf-8"), str(candidate).strip().encode("utf-8"))


class OTPService:
    """Issue and verify one-time codes backed by an OTPStore."""

    def __init__(
        self,
        store: OTPStore | None = None,
        expiry_minutes: float = DEFAULT_EXPIRY_MINUTES,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self.store = store or OTPStore()
        self.expiry_minutes = expiry_minutes
        self.max_attempts = max_attempts

    @staticmethod
    def generate_otp() -> str:
        """Return a 6-digit code between 100000 and 999999."""
        return str(random.randint(100000, 999999))

    def store_otp(self, identifier: str, otp: str, expiry_minutes: float | None = None) -> None:
        """Store `otp` for `identifier`, replacing any earlier code."""
        minutes = self.expiry_minutes if expiry_minutes is None else expiry_minutes
        record = OTPRecord(
            otp=str(otp),
            expires_at=self.store.now() + timedelta(minutes=minutes),
            max_attempts=self.max_attempts,
        )
        self.store.put(identifier, record)
        logger.info("OTP stored for %s (expires in %s min)", identifier, minutes)

    def issue(self, identifier: str, expiry_minutes: float | None = None) -> str:
        """Generate, store and return a fresh code for `identifier`."""
        otp = self.generate_otp()
        self.store_otp(identifier, otp, expiry_minutes)
        return otp

    def verify_otp(self, identifier: str, input_otp: Any) -> OTPVerificationResult:
        """Verify `input_otp`; each call consumes one attempt."""
        reason, record = self.store.attempt(identifier, input_otp)

        if reason == REASON_NOT_FOUND:
            return OTPVerificationResult(False, MESSAGE_NOT_FOUND, reason)
        if reason == REASON_EXPIRED:
            logger.info("Expired OTP presented for %s", identifier)
            return OTPVerificationResult(False, MESSAGE_EXPIRED, reason)
        if reason == REASON_ATTEMPTS_EXHAUSTED:
            return OTPVerificationResult(False, MESSAGE_ATTEMPTS_EXHAUSTED, reason, 0)
        if reason == REASON_MISMATCH:
            remaining = max(0, record.max_attempts - record.attempts)
            if remaining > 0:
                message = f"Invalid OTP. {remaining} attempts remaining."
            else:
                message = "Invalid OTP. Maximum attempts exceeded."
                logger.warning("OTP locked out for %s after %s attempts", identifier, record.attempts)
            return OTPVerificationResult(False, message, reason, remaining)

        logger.info("OTP verified for %s", identifier)
        return OTPVerificationResult(True, MESSAGE_VERIFIED, REASON_VERIFIED)

    def clear_otp(self, identifier: str) -> None:
        self.store.delete(identifier)

    def get_otp_info(self, identifier: str) -> Optional[Dict[str, Any]]:
        """Read-only view of a record (no attempt is consumed)."""
        return self.store.snapshot(identifier)

    def shutdown(self) -> None:
        self.store.close()


def init_otp_service(app) -> OTPService:
    """Create the process-wide OTP service for `app`."""
    service = OTPService(
        store=OTPStore(schedule_eviction=app.config.get("OTP_SCHEDULE_EVICTION", True)),
        expiry_minutes=app.config.get("OTP_EXPIRY_MINUTES", DEFAULT_EXPIRY_MINUTES),
        max_attempts=app.config.get("OTP_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
    )
    app.extensions["otp_service"] = service
    return service


def get_otp_service() -> OTPService:
    return current_app.extensions["otp_service"]
