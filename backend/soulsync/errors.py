"""Domain exceptions.

Every authentication failure (forged, expired, revoked, reused) is an
``AuthInvalid``; HTTP handlers collapse them to a single 401 so callers only
ever learn "reauthenticate".
"""
from datetime import datetime
from typing import Optional


class SoulSyncError(Exception):
    """Base class for domain errors"""

    code = "soulsync_error"


class AuthInvalid(SoulSyncError):
    """Bad, expired or revoked credential"""

    code = "reauthenticate"


class RefreshReuseDetected(AuthInvalid):
    """A revoked or rotated-away refresh token was presented"""

    def __init__(self, message: str = "refresh token reuse", family_id: Optional[str] = None):
        super().__init__(message)
        self.family_id = family_id


class QuotaExceeded(SoulSyncError):
    """No daily match slots left; recoverable after ``reset_at``"""

    code = "quota_exceeded"

    def __init__(self, reset_at: datetime):
        super().__init__(f"daily match quota exhausted until {reset_at.isoformat()}")
        self.reset_at = reset_at


class CandidatesExhausted(SoulSyncError):
    """Filtered candidate pool is empty"""

    code = "no_candidates"


class StorageUnavailable(SoulSyncError):
    """Storage failed after retry"""

    code = "storage_unavailable"


class InvalidAnswer(SoulSyncError):
    """Answer payload does not fit the question type"""

    code = "invalid_answer"


class IdentityConflict(SoulSyncError):
    """Email already registered"""

    code = "identity_conflict"


class MatchNotFound(SoulSyncError):
    """No open resolved match with that candidate"""

    code = "match_not_found"
