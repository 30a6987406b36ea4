"""Match history and same-day rejection models"""
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Float, Integer, String, UniqueConstraint

from soulsync.database import Base

MATCH_RESOLVED = "resolved"
MATCH_ACCEPTED = "accepted"
MATCH_REJECTED = "rejected"


class MatchRecord(Base):
    """A resolved match and what the member did with it"""

    __tablename__ = "match_records"

    id = Column(Integer, primary_key=True, index=True)
    identity_id = Column(String(50), nullable=False, index=True)
    candidate_id = Column(String(50), nullable=False, index=True)
    score = Column(Float, nullable=False)
    day = Column(Date, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=MATCH_RESOLVED)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Rejection(Base):
    """Candidate passed on by an identity on a given day"""

    __tablename__ = "rejections"
    __table_args__ = (
        UniqueConstraint("identity_id", "candidate_id", "day", name="uq_rejection_identity_candidate_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    identity_id = Column(String(50), nullable=False, index=True)
    candidate_id = Column(String(50), nullable=False)
    day = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
