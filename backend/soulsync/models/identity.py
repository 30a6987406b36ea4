"""Identity model - a member who can authenticate and be matched"""
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from soulsync.database import Base

TIER_FREE = "free"
TIER_PREMIUM = "premium"
TIERS = (TIER_FREE, TIER_PREMIUM)


class Identity(Base):
    """Credential hash, entitlement tier and gating flags plus opaque display attributes"""

    __tablename__ = "identities"

    id = Column(Integer, primary_key=True, index=True)
    identity_id = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    credential_hash = Column(String(255), nullable=False)

    # Display attributes (not interpreted by the core)
    name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=True)
    bio = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    interests = Column(JSON, nullable=False, default=list)

    tier = Column(String(20), nullable=False, default=TIER_FREE)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    is_verified = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_active_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
