"""Registration, password login and identity lookup"""
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from soulsync.errors import AuthInvalid, IdentityConflict
from soulsync.middleware.monitoring import record_auth_failure
from soulsync.models.identity import TIER_FREE, Identity
from soulsync.utils.auth import PasswordVerifier, generate_identity_id
from soulsync.utils.clock import Clock, to_naive_utc
from soulsync.utils.logger import logger


def normalize_email(email: str) -> str:
    return email.strip().lower()


def load_active_identity(db: Session, identity_id: str) -> Identity:
    """Return the identity behind a verified token, or raise AuthInvalid if it can no longer act."""
    identity = db.query(Identity).filter(Identity.identity_id == identity_id).first()
    if identity is None or not identity.is_active:
        record_auth_failure("inactive_identity")
        raise AuthInvalid("identity unavailable")
    return identity


class AccountService:
    def __init__(self, db: Session, clock: Clock, passwords: PasswordVerifier):
        self.db = db
        self.clock = clock
        self.passwords = passwords

    def register(
        self,
        email: str,
        password: str,
        name: str,
        age: Optional[int] = None,
        bio: Optional[str] = None,
        location: Optional[str] = None,
        interests: Optional[List[str]] = None,
    ) -> Identity:
        now = to_naive_utc(self.clock.now())
        identity = Identity(
            identity_id=generate_identity_id(),
            email=normalize_email(email),
            credential_hash=self.passwords.hash(password),
            name=name,
            age=age,
            bio=bio,
            location=location,
            interests=interests or [],
            tier=TIER_FREE,
            is_active=True,
            is_verified=False,
            created_at=now,
            last_active_at=now,
        )
        self.db.add(identity)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise IdentityConflict("email already registered")
        self.db.refresh(identity)

        logger.info("Registered identity", extra={"identity_id": identity.identity_id, "action": "register"})
        return identity

    def authenticate(self, email: str, password: str) -> Identity:
        """Check a password login; every failure is the same AuthInvalid."""
        identity = self.db.query(Identity).filter(Identity.email == normalize_email(email)).first()
        if identity is None or not self.passwords.verify(password, identity.credential_hash):
            record_auth_failure("password")
            raise AuthInvalid("invalid credentials")
        if not identity.is_active:
            record_auth_failure("inactive_identity")
            raise AuthInvalid("invalid credentials")

        identity.last_active_at = to_naive_utc(self.clock.now())
        self.db.commit()
        return identity
