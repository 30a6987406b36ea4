"""Credential utilities"""
import hashlib
import secrets
from typing import Protocol

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from soulsync.config import settings

IDENTITY_ID_PREFIX = "usr_"


def generate_refresh_token() -> str:
    """Generate an opaque, unguessable refresh token"""
    return secrets.token_urlsafe(settings.REFRESH_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Hash a refresh token using SHA256; only the hash is stored"""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_identity_id() -> str:
    """Generate a unique identity ID"""
    return f"{IDENTITY_ID_PREFIX}{secrets.token_urlsafe(12)}"


class PasswordVerifier(Protocol):
    def hash(self, plaintext: str) -> str:
        ...

    def verify(self, plaintext: str, credential_hash: str) -> bool:
        ...


class Argon2PasswordVerifier:
    """Argon2id hashing behind the opaque verify(plaintext, hash) capability"""

    def __init__(self, hasher: PasswordHasher = None):
        self._hasher = hasher or PasswordHasher()

    def hash(self, plaintext: str) -> str:
        return self._hasher.hash(plaintext)

    def verify(self, plaintext: str, credential_hash: str) -> bool:
        try:
            return self._hasher.verify(credential_hash, plaintext)
        except (VerificationError, InvalidHashError):
            return False
