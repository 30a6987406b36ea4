"""RefreshToken model - one link of a rotation chain"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from soulsync.database import Base


class RefreshToken(Base):
    """Stored refresh credential.

    Only the SHA-256 hash of the opaque token is kept. ``family_id`` groups
    every token minted from one login, so reuse of a rotated-away token can
    revoke the whole chain. ``replaced_by`` points at the successor's
    ``token_id`` once rotated.
    """

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token_id = Column(String(36), unique=True, nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    identity_id = Column(
        String(50), ForeignKey("identities.identity_id", ondelete="CASCADE"), nullable=False, index=True
    )
    family_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
    replaced_by = Column(String(36), nullable=True)
