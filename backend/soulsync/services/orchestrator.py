"""Matching Orchestrator: the metered "find my match" operation.

    Authenticating -> QuotaChecking -> Selecting -> Scoring -> Resolved
                  \\-> Failed      \\-> Denied    \\-> Exhausted

A quota slot is taken in QuotaChecking and is never refunded, whatever happens
afterwards. Resolving is therefore not a free peek: calling it again before
accepting or rejecting spends another slot.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.orm import Session

from soulsync.config import settings
from soulsync.errors import AuthInvalid, CandidatesExhausted, MatchNotFound, QuotaExceeded
from soulsync.middleware.monitoring import record_match_outcome
from soulsync.models.identity import Identity
from soulsync.models.match import MATCH_ACCEPTED, MATCH_REJECTED, MATCH_RESOLVED, MatchRecord
from soulsync.services.candidates import CandidateRef, CandidateSelector, UserDirectory
from soulsync.services.questions import QuestionBank
from soulsync.services.quota import QuotaTracker
from soulsync.services.rejections import RejectionSet
from soulsync.services.scoring import rank, score
from soulsync.services.token_service import TokenService
from soulsync.utils.clock import Clock, to_naive_utc
from soulsync.utils.logger import logger
from soulsync.utils.retry import storage_retry

EXHAUSTED_REPORT = "report"
EXHAUSTED_RESET_AND_RETRY = "reset_and_retry"


class MatchState(str, enum.Enum):
    AUTHENTICATING = "authenticating"
    QUOTA_CHECKING = "quota_checking"
    SELECTING = "selecting"
    SCORING = "scoring"
    RESOLVED = "resolved"
    DENIED = "denied"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass(frozen=True)
class Resolved:
    candidate: CandidateRef
    score: float
    remaining_quota_today: int
    state: MatchState = MatchState.RESOLVED

    @property
    def candidate_id(self) -> str:
        return self.candidate.identity_id


@dataclass(frozen=True)
class Denied:
    reset_at: datetime
    remaining: int = 0
    state: MatchState = MatchState.DENIED


@dataclass(frozen=True)
class Exhausted:
    state: MatchState = MatchState.EXHAUSTED


@dataclass(frozen=True)
class Failed:
    reason: str = "reauthenticate"
    state: MatchState = MatchState.FAILED


MatchOutcome = Union[Resolved, Denied, Exhausted, Failed]


class MatchOrchestrator:
    def __init__(
        self,
        db: Session,
        clock: Clock,
        tokens: Optional[TokenService] = None,
        quota: Optional[QuotaTracker] = None,
        rejections: Optional[RejectionSet] = None,
        selector: Optional[CandidateSelector] = None,
        questions: Optional[QuestionBank] = None,
        exhausted_policy: Optional[str] = None,
    ):
        self.db = db
        self.clock = clock
        self.tokens = tokens or TokenService(db, clock)
        self.quota = quota or QuotaTracker(db, clock)
        self.rejections = rejections or RejectionSet(db, clock)
        self.selector = selector or CandidateSelector(UserDirectory(db))
        self.questions = questions or QuestionBank(db)
        self.exhausted_policy = exhausted_policy or settings.EXHAUSTED_POLICY

    def resolve(self, access_token: str) -> MatchOutcome:
        """Run one metered match resolution for the bearer of ``access_token``."""
        try:
            identity = self._authenticate(access_token)
        except AuthInvalid:
            return self._finish(Failed(), None)
        identity_id, tier = identity.identity_id, identity.tier

        self._trace(MatchState.QUOTA_CHECKING, identity_id)
        try:
            remaining = self.quota.acquire(identity_id, tier)
        except QuotaExceeded as e:
            return self._finish(Denied(reset_at=e.reset_at), identity_id)

        self._trace(MatchState.SELECTING, identity_id)
        try:
            pool = self.selector.select(identity_id, self.rejections.ids_today(identity_id))
        except CandidatesExhausted:
            if self.exhausted_policy != EXHAUSTED_RESET_AND_RETRY:
                return self._finish(Exhausted(), identity_id)
            self.rejections.clear_today(identity_id)
            try:
                pool = self.selector.select(identity_id, ())
            except CandidatesExhausted:
                return self._finish(Exhausted(), identity_id)

        self._trace(MatchState.SCORING, identity_id)
        own_answers = self.questions.answers_for(identity_id)
        question_map = self.questions.by_id()
        by_id = {candidate.identity_id: candidate for candidate in pool}
        ranked = rank(
            (candidate.identity_id, score(own_answers, candidate.answers, question_map))
            for candidate in pool
        )
        top_id, top_score = ranked[0]
        self._record_match(identity_id, top_id, top_score)

        outcome = Resolved(
            candidate=by_id[top_id],
            score=top_score,
            remaining_quota_today=remaining,
        )
        return self._finish(outcome, identity_id)

    @storage_retry()
    def _authenticate(self, access_token: str) -> Identity:
        identity = self.tokens.identity_for(access_token)
        identity.last_active_at = to_naive_utc(self.clock.now())
        self.db.commit()
        return identity

    @storage_retry()
    def _record_match(self, identity_id: str, candidate_id: str, match_score: float) -> None:
        self.db.add(
            MatchRecord(
                identity_id=identity_id,
                candidate_id=candidate_id,
                score=match_score,
                day=self.quota.today(),
                status=MATCH_RESOLVED,
                created_at=to_naive_utc(self.clock.now()),
            )
        )
        self.db.commit()

    # ------------------------------------------------------------------
    # Follow-up actions on a resolved match
    # ------------------------------------------------------------------

    def accept(self, identity: Identity, candidate_id: str) -> MatchRecord:
        return self._settle(identity, candidate_id, MATCH_ACCEPTED)

    def reject(self, identity: Identity, candidate_id: str) -> MatchRecord:
        """Pass on a resolved match; the candidate is left out of today's pools."""
        record = self._settle(identity, candidate_id, MATCH_REJECTED)
        self.rejections.add(identity.identity_id, candidate_id)
        return record

    def reset_rejections(self, identity: Identity) -> int:
        """Explicit "see everyone again today"; does not touch the quota."""
        return self.rejections.clear_today(identity.identity_id)

    @storage_retry()
    def _settle(self, identity: Identity, candidate_id: str, status: str) -> MatchRecord:
        record = (
            self.db.query(MatchRecord)
            .filter(
                MatchRecord.identity_id == identity.identity_id,
                MatchRecord.candidate_id == candidate_id,
                MatchRecord.status == MATCH_RESOLVED,
            )
            .order_by(MatchRecord.created_at.desc(), MatchRecord.id.desc())
            .first()
        )
        if record is None:
            raise MatchNotFound(f"no open match with {candidate_id}")

        record.status = status
        self.db.commit()
        logger.info(
            f"Match {status}",
            extra={"identity_id": identity.identity_id, "candidate_id": candidate_id, "action": "settle_match"},
        )
        return record

    # ------------------------------------------------------------------

    def _trace(self, state: MatchState, identity_id: str) -> None:
        logger.debug("Match resolution step", extra={"identity_id": identity_id, "state": state.value})

    def _finish(self, outcome: MatchOutcome, identity_id: Optional[str]) -> MatchOutcome:
        record_match_outcome(outcome.state.value)
        extra = {"action": "resolve_match", "outcome": outcome.state.value}
        if identity_id:
            extra["identity_id"] = identity_id
        if isinstance(outcome, Resolved):
            extra["candidate_id"] = outcome.candidate_id
        logger.info("Match resolution finished", extra=extra)
        return outcome
