"""RSVP credential handling.

Raw credentials are handed to the caller once and never stored; only their SHA-256 digest
is persisted on the guest row.
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from guestlist.config.settings import settings
from guestlist.errors import EventExpiredError

TOKEN_BYTES = 32


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True)
class IssuedToken:
    raw: str
    digest: str
    created_at: datetime
    expires_at: datetime


class TokenCodec:
    def __init__(
        self,
        ttl: timedelta | None = None,
        grace: timedelta | None = None,
        touch_interval: timedelta | None = None,
        clock=None,
    ) -> None:
        if ttl is None:
            ttl = timedelta(days=settings.rsvp_token_ttl_days)
        if grace is None:
            grace = timedelta(days=settings.rsvp_token_grace_days)
        if touch_interval is None:
            touch_interval = timedelta(minutes=settings.rsvp_token_touch_interval_minutes)
        self.ttl = ttl
        self.grace = grace
        self.touch_interval = touch_interval
        self._clock = clock or (lambda: datetime.now(UTC))

    def now(self) -> datetime:
        return self._clock()

    @staticmethod
    def issue() -> str:
        return secrets.token_hex(TOKEN_BYTES)

    @staticmethod
    def hash(raw: str) -> str:
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def verify(self, candidate: str, stored_digest: str) -> bool:
        # compare_digest on bytes never raises on length mismatch and does not short-circuit.
        return hmac.compare_digest(
            self.hash(candidate).encode("utf-8"), stored_digest.encode("utf-8")
        )

    def compute_expiry(self, event_date: datetime | None = None) -> datetime:
        """Expiry for a credential issued now.

        Capped at event date + grace when the event date is known. Raises
        EventExpiredError when that cap is already in the past.
        """
        now = self.now()
        default = now + self.ttl
        if event_date is None:
            return default

        capped = as_utc(event_date) + self.grace
        if capped <= now:
            raise EventExpiredError()
        return min(default, capped)

    def mint(self, event_date: datetime | None = None) -> IssuedToken:
        expires_at = self.compute_expiry(event_date)
        raw = self.issue()
        return IssuedToken(
            raw=raw,
            digest=self.hash(raw),
            created_at=self.now(),
            expires_at=expires_at,
        )

    def is_expired(self, expires_at: datetime | None) -> bool:
        if expires_at is None:
            return False
        return as_utc(expires_at) < self.now()

    def should_refresh_last_used(self, last_used_at: datetime | str | None) -> bool:
        if last_used_at is None:
            return True
        if isinstance(last_used_at, str):
            try:
                last_used_at = datetime.fromisoformat(last_used_at)
            except ValueError:
                return True
        return self.now() - as_utc(last_used_at) > self.touch_interval
