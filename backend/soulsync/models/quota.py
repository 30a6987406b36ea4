"""QuotaCounter model - matches resolved per identity per calendar day"""
from sqlalchemy import Column, Date, Integer, String, UniqueConstraint

from soulsync.database import Base


class QuotaCounter(Base):
    """One row per (identity, day). Rows for earlier days are ignored, never decremented."""

    __tablename__ = "quota_counters"
    __table_args__ = (UniqueConstraint("identity_id", "day", name="uq_quota_identity_day"),)

    id = Column(Integer, primary_key=True, index=True)
    identity_id = Column(String(50), nullable=False, index=True)
    day = Column(Date, nullable=False, index=True)
    count = Column(Integer, nullable=False, default=0)
