"""Registration, login and token lifecycle endpoints"""
from fastapi import APIRouter, Depends, HTTPException, Request, status

from soulsync.api.deps import get_account_service, get_token_service, require_identity
from soulsync.config import settings
from soulsync.middleware.rate_limit import get_rate_limit, limiter
from soulsync.models.identity import Identity
from soulsync.schemas.auth import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RevokeAllResponse,
    RevokeResponse,
    TokenResponse,
)
from soulsync.services.accounts import AccountService
from soulsync.services.token_service import TokenPair, TokenService

router = APIRouter(prefix="/auth", tags=["authentication"])


def _token_response(pair: TokenPair) -> TokenResponse:
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_in=pair.expires_in,
        identity_id=pair.identity_id,
    )


# ---------------------------------------------------------------------------
# POST /auth/register
# ---------------------------------------------------------------------------

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("register"))
def register(
    request: Request,
    payload: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
    tokens: TokenService = Depends(get_token_service),
) -> TokenResponse:
    """
    Create an identity on the free tier and return its first token pair

    New identities are not verified, so they can resolve matches but are not
    offered to others as candidates until verification.
    """
    if len(payload.password) < settings.PASSWORD_MIN_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters",
        )

    identity = accounts.register(
        email=payload.email,
        password=payload.password,
        name=payload.name,
        age=payload.age,
        bio=payload.bio,
        location=payload.location,
        interests=payload.interests,
    )
    return _token_response(tokens.issue(identity.identity_id))


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------

@router.post("/login", response_model=TokenResponse)
@limiter.limit(get_rate_limit("login"))
def login(
    request: Request,
    payload: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
    tokens: TokenService = Depends(get_token_service),
) -> TokenResponse:
    """Exchange email + password for a new token pair (starts a new rotation family)."""
    identity = accounts.authenticate(payload.email, payload.password)
    return _token_response(tokens.issue(identity.identity_id))


# ---------------------------------------------------------------------------
# POST /auth/refresh
# ---------------------------------------------------------------------------

@router.post("/refresh", response_model=TokenResponse)
@limiter.limit(get_rate_limit("refresh"))
def refresh(
    request: Request,
    payload: RefreshRequest,
    tokens: TokenService = Depends(get_token_service),
) -> TokenResponse:
    """Rotate a refresh token.

    The presented token is single-use: it is revoked and replaced by the one
    in the response. Presenting it again is treated as reuse and answered with
    401, same as an unknown or expired token.
    """
    return _token_response(tokens.rotate(payload.refresh_token))


# ---------------------------------------------------------------------------
# POST /auth/revoke
# ---------------------------------------------------------------------------

@router.post("/revoke", response_model=RevokeResponse)
@limiter.limit(get_rate_limit("revoke"))
def revoke(
    request: Request,
    payload: RefreshRequest,
    tokens: TokenService = Depends(get_token_service),
) -> RevokeResponse:
    """Log out one session. Idempotent: revoking twice, or an unknown token, still succeeds."""
    tokens.revoke(payload.refresh_token)
    return RevokeResponse(revoked=True)


@router.post("/revoke-all", response_model=RevokeAllResponse)
@limiter.limit(get_rate_limit("revoke"))
def revoke_all(
    request: Request,
    identity: Identity = Depends(require_identity),
    tokens: TokenService = Depends(get_token_service),
) -> RevokeAllResponse:
    """Log out every session of the caller; access tokens already issued run to expiry."""
    return RevokeAllResponse(revoked=tokens.revoke_all(identity.identity_id))
