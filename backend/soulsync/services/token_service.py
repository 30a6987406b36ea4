"""Token Service: issue, verify, rotate and revoke access/refresh pairs.

Access tokens are stateless RS256 JWTs. Refresh tokens are opaque random
strings stored as SHA-256 hashes, one row per link of a rotation chain
(``family_id``). Rotation revokes the presented row with a single conditional
UPDATE, so of two concurrent rotations of the same token exactly one wins and
the other is handled as reuse.
"""
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from soulsync.config import settings
from soulsync.errors import AuthInvalid, RefreshReuseDetected
from soulsync.middleware.monitoring import record_auth_failure, record_token_event
from soulsync.models.identity import Identity
from soulsync.models.refresh_token import RefreshToken
from soulsync.services.accounts import load_active_identity
from soulsync.utils.auth import generate_refresh_token, hash_token
from soulsync.utils.clock import Clock, to_naive_utc
from soulsync.utils.jwt_utils import create_access_token, decode_access_token
from soulsync.utils.logger import logger
from soulsync.utils.retry import storage_retry

REUSE_REVOKE_FAMILY = "revoke_family"
REUSE_REJECT = "reject"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    identity_id: str


class TokenService:
    """Single authority for the credential lifecycle; every entry point goes through here."""

    def __init__(
        self,
        db: Session,
        clock: Clock,
        access_ttl_seconds: Optional[int] = None,
        refresh_ttl_days: Optional[int] = None,
        reuse_policy: Optional[str] = None,
    ):
        self.db = db
        self.clock = clock
        if access_ttl_seconds is None:
            access_ttl_seconds = settings.ACCESS_TOKEN_EXPIRE_SECONDS
        if refresh_ttl_days is None:
            refresh_ttl_days = settings.REFRESH_TOKEN_EXPIRE_DAYS
        self.access_ttl_seconds = access_ttl_seconds
        self.refresh_ttl_days = refresh_ttl_days
        self.reuse_policy = reuse_policy or settings.REFRESH_REUSE_POLICY

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    @storage_retry()
    def issue(self, identity_id: str) -> TokenPair:
        """Mint a fresh pair in a new rotation family (login / registration)."""
        pair = self._mint(identity_id, family_id=str(uuid.uuid4()))
        self.db.commit()
        record_token_event("issue")
        logger.info("Issued token pair", extra={"identity_id": identity_id, "action": "issue_token"})
        return pair

    def _mint(self, identity_id: str, family_id: str, token_id: Optional[str] = None) -> TokenPair:
        now = self.clock.now()
        refresh = generate_refresh_token()
        self.db.add(
            RefreshToken(
                token_id=token_id or str(uuid.uuid4()),
                token_hash=hash_token(refresh),
                identity_id=identity_id,
                family_id=family_id,
                created_at=to_naive_utc(now),
                expires_at=to_naive_utc(now + timedelta(days=self.refresh_ttl_days)),
            )
        )
        access = create_access_token(identity_id, issued_at=now, expire_seconds=self.access_ttl_seconds)
        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            expires_in=self.access_ttl_seconds,
            identity_id=identity_id,
        )

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify_access(self, token: str) -> str:
        """Return the identity_id of a valid access token or raise AuthInvalid."""
        try:
            payload = decode_access_token(token, now=self.clock.now())
        except AuthInvalid:
            record_auth_failure("access")
            raise
        return payload["sub"]

    @storage_retry()
    def identity_for(self, token: str) -> Identity:
        """Verify an access token and load its identity, which must still be active."""
        return load_active_identity(self.db, self.verify_access(token))

    # ------------------------------------------------------------------
    # Rotate
    # ------------------------------------------------------------------

    @storage_retry()
    def rotate(self, refresh_token: str) -> TokenPair:
        """Exchange a live refresh token for a brand-new pair (rotation-on-use).

        Raises:
            AuthInvalid: token unknown or expired.
            RefreshReuseDetected: token already revoked or rotated away.
        """
        row = self._find(refresh_token)
        if row is None:
            record_auth_failure("refresh_unknown")
            logger.warning("Unknown refresh token presented", extra={"action": "rotate_token"})
            raise AuthInvalid("invalid refresh token")

        if row.revoked_at is not None:
            self._handle_reuse(row)

        now = self.clock.now()
        if to_naive_utc(now) >= row.expires_at:
            record_auth_failure("refresh_expired")
            raise AuthInvalid("invalid refresh token")

        successor_id = str(uuid.uuid4())
        claimed = self.db.execute(
            update(RefreshToken)
            .where(RefreshToken.id == row.id, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=to_naive_utc(now), replaced_by=successor_id)
        )
        if claimed.rowcount != 1:
            # Lost the race against a concurrent rotation of the same token
            self.db.rollback()
            self._handle_reuse(row)

        pair = self._mint(row.identity_id, family_id=row.family_id, token_id=successor_id)
        self.db.commit()

        record_token_event("rotate")
        logger.info(
            "Rotated refresh token",
            extra={"identity_id": row.identity_id, "family_id": row.family_id, "action": "rotate_token"},
        )
        return pair

    def _handle_reuse(self, row: RefreshToken) -> None:
        identity_id, family_id = row.identity_id, row.family_id
        if self.reuse_policy == REUSE_REVOKE_FAMILY:
            self.db.execute(
                update(RefreshToken)
                .where(RefreshToken.family_id == family_id, RefreshToken.revoked_at.is_(None))
                .values(revoked_at=to_naive_utc(self.clock.now()))
            )
            self.db.commit()

        record_auth_failure("refresh_reuse")
        record_token_event("reuse_detected")
        logger.warning(
            "Refresh token reuse detected",
            extra={
                "identity_id": identity_id,
                "family_id": family_id,
                "action": "rotate_token",
                "outcome": self.reuse_policy,
            },
        )
        raise RefreshReuseDetected(family_id=family_id)

    # ------------------------------------------------------------------
    # Revoke
    # ------------------------------------------------------------------

    @storage_retry()
    def revoke(self, refresh_token: str) -> None:
        """Idempotently revoke one refresh token; unknown tokens are a silent no-op."""
        result = self.db.execute(
            update(RefreshToken)
            .where(RefreshToken.token_hash == hash_token(refresh_token), RefreshToken.revoked_at.is_(None))
            .values(revoked_at=to_naive_utc(self.clock.now()))
        )
        self.db.commit()
        if result.rowcount:
            record_token_event("revoke")
            logger.info("Revoked refresh token", extra={"action": "revoke_token"})

    @storage_retry()
    def revoke_all(self, identity_id: str) -> int:
        """Revoke every live refresh token owned by the identity; returns how many were live."""
        result = self.db.execute(
            update(RefreshToken)
            .where(RefreshToken.identity_id == identity_id, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=to_naive_utc(self.clock.now()))
        )
        self.db.commit()
        record_token_event("revoke_all")
        logger.info(
            f"Revoked {result.rowcount} refresh tokens",
            extra={"identity_id": identity_id, "action": "revoke_all_tokens"},
        )
        return result.rowcount

    def _find(self, refresh_token: str) -> Optional[RefreshToken]:
        return (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token_hash == hash_token(refresh_token))
            .first()
        )
