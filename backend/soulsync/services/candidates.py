"""
Candidate selection.

Responsibilities:
- Stream active, verified identities from the directory, most recently active first.
- Apply hard filters (caller, today's rejections) and bound the pool size.

Non-Responsibilities:
- No scoring.
- No quota decisions.
"""
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional

from sqlalchemy.orm import Session

from soulsync.config import settings
from soulsync.errors import CandidatesExhausted
from soulsync.models.identity import Identity
from soulsync.services.questions import QuestionBank
from soulsync.services.scoring import AnswerSet
from soulsync.utils.retry import storage_retry


@dataclass
class CandidateRef:
    identity_id: str
    answers: AnswerSet = field(default_factory=dict)
    name: Optional[str] = None
    age: Optional[int] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    interests: List[str] = field(default_factory=list)


class UserDirectory:
    """Read-only view of matchable identities"""

    def __init__(self, db: Session, batch_size: int = 100):
        self.db = db
        self.batch_size = batch_size
        self.questions = QuestionBank(db)

    def list_active_verified(self, excluding: str) -> Iterator[CandidateRef]:
        """Yield matchable identities other than ``excluding``, most recently active first."""
        query = (
            self.db.query(Identity)
            .filter(
                Identity.is_active == True,  # noqa: E712
                Identity.is_verified == True,  # noqa: E712
                Identity.identity_id != excluding,
            )
            .order_by(Identity.last_active_at.desc(), Identity.identity_id)
        )

        offset = 0
        while True:
            batch = query.offset(offset).limit(self.batch_size).all()
            if not batch:
                return
            answers = self.questions.answers_for_many([row.identity_id for row in batch])
            for row in batch:
                yield CandidateRef(
                    identity_id=row.identity_id,
                    answers=answers.get(row.identity_id, {}),
                    name=row.name,
                    age=row.age,
                    bio=row.bio,
                    location=row.location,
                    interests=list(row.interests or []),
                )
            offset += len(batch)


class CandidateSelector:
    def __init__(self, directory: UserDirectory):
        self.directory = directory
        self.db = directory.db

    @storage_retry()
    def select(
        self,
        identity_id: str,
        exclude_ids: Iterable[str] = (),
        limit: Optional[int] = None,
    ) -> List[CandidateRef]:
        """Up to ``limit`` eligible candidates in directory order.

        Raises:
            CandidatesExhausted: nobody is left after filtering.
        """
        if limit is None:
            limit = settings.CANDIDATE_POOL_SIZE
        if limit <= 0:
            raise CandidatesExhausted("empty candidate pool requested")
        excluded = set(exclude_ids)

        pool: List[CandidateRef] = []
        for candidate in self.directory.list_active_verified(excluding=identity_id):
            if candidate.identity_id in excluded:
                continue
            pool.append(candidate)
            if len(pool) >= limit:
                break

        if not pool:
            raise CandidatesExhausted("no eligible candidates left today")
        return pool
