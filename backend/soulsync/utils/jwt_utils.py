"""JWT utilities: RS256 keypair management, access-token signing and verification"""
import uuid
from datetime import datetime
from typing import Any, Dict

from jose import JWTError, jwt

from soulsync.config import settings
from soulsync.errors import AuthInvalid
from soulsync.utils.logger import logger

# ---------------------------------------------------------------------------
# Keypair management
# ---------------------------------------------------------------------------

_private_key: Any = None   # cryptography RSAPrivateKey object
_public_key: Any = None    # cryptography RSAPublicKey object

ACCESS_TOKEN_TYPE = "access"


def _load_keypair() -> None:
    """Load or auto-generate the RSA keypair.

    Reads JWT_PRIVATE_KEY from settings (PEM string).
    If absent, generates a fresh RSA-2048 keypair for this process; every
    access token is invalidated on restart, which only forces a refresh.
    """
    global _private_key, _public_key

    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    if settings.JWT_PRIVATE_KEY:
        pem = settings.JWT_PRIVATE_KEY.encode()
        _private_key = serialization.load_pem_private_key(pem, password=None)
        _public_key = _private_key.public_key()
        logger.info("JWT keypair loaded from JWT_PRIVATE_KEY setting")
    else:
        _private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        _public_key = _private_key.public_key()
        logger.warning(
            "JWT_PRIVATE_KEY not set, auto-generated RSA-2048 keypair for this process. "
            "Access tokens will not survive a restart."
        )


def get_private_key() -> Any:
    """Return the loaded private key, initialising on first call."""
    if _private_key is None:
        _load_keypair()
    return _private_key


def get_public_key() -> Any:
    """Return the loaded public key, initialising on first call."""
    if _public_key is None:
        _load_keypair()
    return _public_key


# ---------------------------------------------------------------------------
# Token creation
# ---------------------------------------------------------------------------

def create_access_token(subject: str, issued_at: datetime, expire_seconds: int) -> str:
    """Sign and return a JWT access token.

    Args:
        subject:        identity_id, stored as the 'sub' claim.
        issued_at:      timezone-aware issue time taken from the injected clock.
        expire_seconds: lifetime; 'exp' = 'iat' + expire_seconds.

    Returns:
        Signed JWT string.
    """
    iat = int(issued_at.timestamp())

    payload: Dict[str, Any] = {
        "sub": subject,
        "jti": str(uuid.uuid4()),
        "iat": iat,
        "exp": iat + expire_seconds,
        "type": ACCESS_TOKEN_TYPE,
    }

    headers = {"kid": settings.JWT_KEY_ID} if settings.JWT_KEY_ID else None
    return jwt.encode(payload, get_private_key(), algorithm=settings.JWT_ALGORITHM, headers=headers)


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------

def decode_access_token(token: str, now: datetime) -> Dict[str, Any]:
    """Verify a JWT and return its payload.

    Checks:
    1. Signature validity (RS256 with our public key)
    2. Token type is 'access'
    3. 'exp' is after ``now`` (the injected clock, not the wall clock)

    Raises:
        AuthInvalid: on any verification failure. Callers never learn which check failed.
    """
    try:
        payload = jwt.decode(
            token,
            get_public_key(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": False, "verify_iat": False},
        )
    except JWTError as exc:
        logger.debug(f"JWT decode failed: {exc}")
        raise AuthInvalid("invalid access token")

    if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
        raise AuthInvalid("invalid access token")

    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or now.timestamp() >= exp:
        raise AuthInvalid("invalid access token")

    return payload
