"""Quota Tracker: per-identity daily match counter gated by entitlement tier.

The day boundary is the calendar date of the injected clock in
``QUOTA_TIMEZONE``. A counter row exists per (identity, day); rows for earlier
days are simply not consulted, so the reset needs no sweep.
"""
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from soulsync.config import settings
from soulsync.errors import QuotaExceeded
from soulsync.middleware.monitoring import record_quota_consume
from soulsync.models.identity import TIER_FREE, TIER_PREMIUM
from soulsync.models.quota import QuotaCounter
from soulsync.utils.clock import Clock, local_day, next_midnight
from soulsync.utils.logger import logger
from soulsync.utils.retry import storage_retry


def tier_limit(tier: str) -> int:
    """Daily resolve limit for an entitlement tier; unknown tiers get the free limit."""
    limits = {
        TIER_FREE: settings.QUOTA_FREE_DAILY,
        TIER_PREMIUM: settings.QUOTA_PREMIUM_DAILY,
    }
    return limits.get(tier, settings.QUOTA_FREE_DAILY)


class QuotaTracker:
    def __init__(self, db: Session, clock: Clock, tz_name: Optional[str] = None):
        self.db = db
        self.clock = clock
        self.tz_name = tz_name or settings.QUOTA_TIMEZONE

    def today(self) -> date:
        return local_day(self.clock.now(), self.tz_name)

    def reset_at(self) -> datetime:
        """Start of the next calendar day in the reference timezone."""
        return next_midnight(self.clock.now(), self.tz_name)

    def limit(self, tier: str) -> int:
        return tier_limit(tier)

    def count_today(self, identity_id: str) -> int:
        row = (
            self.db.query(QuotaCounter.count)
            .filter(QuotaCounter.identity_id == identity_id, QuotaCounter.day == self.today())
            .first()
        )
        return row[0] if row else 0

    def remaining(self, identity_id: str, tier: str) -> int:
        return max(0, self.limit(tier) - self.count_today(identity_id))

    @storage_retry()
    def consume(self, identity_id: str, tier: str) -> bool:
        """Atomically take one slot for today; False when none is left.

        The increment is a single conditional UPDATE guarded by
        ``count < limit``, so concurrent callers can never push the counter
        past the tier limit.
        """
        day = self.today()
        limit = self.limit(tier)
        self._ensure_row(identity_id, day)

        result = self.db.execute(
            update(QuotaCounter)
            .where(
                QuotaCounter.identity_id == identity_id,
                QuotaCounter.day == day,
                QuotaCounter.count < limit,
            )
            .values(count=QuotaCounter.count + 1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

        granted = result.rowcount == 1
        record_quota_consume(tier, granted)
        if not granted:
            logger.info(
                "Daily quota exhausted",
                extra={"identity_id": identity_id, "action": "consume_quota", "outcome": "denied"},
            )
        return granted

    def acquire(self, identity_id: str, tier: str) -> int:
        """Take one slot and return what is left today.

        Raises:
            QuotaExceeded: no slot left; carries the reset time.
        """
        if not self.consume(identity_id, tier):
            raise QuotaExceeded(self.reset_at())
        return self.remaining(identity_id, tier)

    def _ensure_row(self, identity_id: str, day: date) -> None:
        exists = (
            self.db.query(QuotaCounter.id)
            .filter(QuotaCounter.identity_id == identity_id, QuotaCounter.day == day)
            .first()
        )
        if exists:
            return
        try:
            self.db.add(QuotaCounter(identity_id=identity_id, day=day, count=0))
            self.db.commit()
        except IntegrityError:
            # A concurrent request created today's row first
            self.db.rollback()

    @storage_retry()
    def prune(self, older_than_days: Optional[int] = None) -> int:
        """Delete counter rows older than the retention window; returns rows removed."""
        days = older_than_days if older_than_days is not None else settings.QUOTA_RETENTION_DAYS
        cutoff = self.today() - timedelta(days=days)
        result = self.db.execute(
            delete(QuotaCounter)
            .where(QuotaCounter.day < cutoff)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        logger.info(f"Pruned {result.rowcount} quota counters", extra={"action": "prune_quota"})
        return result.rowcount
