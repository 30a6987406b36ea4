"""RejectionSet: candidates an identity passed on today.

Rows are keyed by calendar day in the quota timezone, so the set empties by
itself when the quota resets.
"""
from datetime import date
from typing import Optional, Set

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from soulsync.config import settings
from soulsync.models.match import Rejection
from soulsync.utils.clock import Clock, local_day
from soulsync.utils.logger import logger
from soulsync.utils.retry import storage_retry


class RejectionSet:
    def __init__(self, db: Session, clock: Clock, tz_name: Optional[str] = None):
        self.db = db
        self.clock = clock
        self.tz_name = tz_name or settings.QUOTA_TIMEZONE

    def today(self) -> date:
        return local_day(self.clock.now(), self.tz_name)

    @storage_retry()
    def ids_today(self, identity_id: str) -> Set[str]:
        rows = (
            self.db.query(Rejection.candidate_id)
            .filter(Rejection.identity_id == identity_id, Rejection.day == self.today())
            .all()
        )
        return {candidate_id for (candidate_id,) in rows}

    @storage_retry()
    def add(self, identity_id: str, candidate_id: str) -> None:
        """Idempotent: rejecting the same candidate twice in a day is a no-op."""
        try:
            self.db.add(Rejection(identity_id=identity_id, candidate_id=candidate_id, day=self.today()))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()

    @storage_retry()
    def clear_today(self, identity_id: str) -> int:
        result = self.db.execute(
            delete(Rejection)
            .where(Rejection.identity_id == identity_id, Rejection.day == self.today())
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        logger.info(
            f"Cleared {result.rowcount} rejections for today",
            extra={"identity_id": identity_id, "action": "reset_rejections"},
        )
        return result.rowcount
