"""Rate limiting for the credential endpoints"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from soulsync.config import settings


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Priority:
    1. Identity ID (set on request.state once a bearer token is verified)
    2. IP address (for unauthenticated requests such as login)
    """
    identity_id = getattr(request.state, "identity_id", None)
    if identity_id:
        return f"identity:{identity_id}"
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_identifier,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


RATE_LIMITS = {
    # Credential endpoints - brute-force and token-stuffing protection
    "register": "10/hour",
    "login": "20/minute",
    "refresh": "60/minute",
    "revoke": "60/minute",

    # Matching is already metered by the daily quota
    "resolve": "30/minute",
    "quiz": "120/minute",
}


def get_rate_limit(endpoint: str) -> str:
    """Get rate limit for specific endpoint"""
    return RATE_LIMITS.get(endpoint, settings.RATE_LIMIT_DEFAULT[0])
