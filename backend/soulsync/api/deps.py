"""API dependencies for authentication and service wiring.

Every protected endpoint authenticates through :func:`require_identity`,
which hands the bearer token to the TokenService and then loads the identity.
Any failure on that path is an ``AuthInvalid`` and becomes the same 401.

The clock and password verifier are dependencies so tests can pin time and
swap in a cheaper hasher via ``app.dependency_overrides``.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from soulsync.database import get_db
from soulsync.errors import AuthInvalid
from soulsync.middleware.monitoring import record_auth_failure
from soulsync.models.identity import Identity
from soulsync.services.accounts import AccountService
from soulsync.services.orchestrator import MatchOrchestrator
from soulsync.services.questions import QuestionBank
from soulsync.services.token_service import TokenService
from soulsync.utils.auth import Argon2PasswordVerifier, PasswordVerifier
from soulsync.utils.clock import Clock, SystemClock

_bearer_scheme = HTTPBearer(auto_error=False)

_system_clock = SystemClock()
_password_verifier = Argon2PasswordVerifier()


def get_clock() -> Clock:
    return _system_clock


def get_password_verifier() -> PasswordVerifier:
    return _password_verifier


def get_token_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> TokenService:
    return TokenService(db, clock)


def get_account_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    passwords: PasswordVerifier = Depends(get_password_verifier),
) -> AccountService:
    return AccountService(db, clock, passwords)


def get_orchestrator(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> MatchOrchestrator:
    return MatchOrchestrator(db, clock)


def get_question_bank(db: Session = Depends(get_db)) -> QuestionBank:
    return QuestionBank(db)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[str]:
    """Raw bearer token, or None when the header is missing"""
    if credentials is None:
        return None
    return credentials.credentials


def require_identity(
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """
    Require a valid access token for an active identity

    Also stores the identity_id on ``request.state`` so the rate limiter can
    key on it.
    """
    if not token:
        record_auth_failure("missing")
        raise AuthInvalid("Authorization: Bearer <token> header required")

    identity = tokens.identity_for(token)
    request.state.identity_id = identity.identity_id
    return identity
