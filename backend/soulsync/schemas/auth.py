"""Credential schemas"""
from typing import List, Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Schema for creating a new identity"""

    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    age: Optional[int] = Field(None, ge=18, le=120)
    bio: Optional[str] = Field(None, max_length=2000)
    location: Optional[str] = Field(None, max_length=255)
    interests: List[str] = Field(default_factory=list, max_length=50)


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    """Refresh tokens travel only in the body of the refresh/revoke endpoints"""

    refresh_token: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int   # seconds until the access token expires
    identity_id: str


class RevokeResponse(BaseModel):
    revoked: bool


class RevokeAllResponse(BaseModel):
    revoked: int
