"""Match resolution schemas (outward result contract)"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel


class CandidateProfile(BaseModel):
    identity_id: str
    name: Optional[str] = None
    age: Optional[int] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    interests: List[str] = []


class MatchResolvedResponse(BaseModel):
    status: Literal["resolved"] = "resolved"
    candidate_id: str
    score: float
    remaining_quota_today: int
    candidate: CandidateProfile


class MatchDeniedResponse(BaseModel):
    status: Literal["denied"] = "denied"
    remaining: int = 0
    reset_at: datetime


class MatchExhaustedResponse(BaseModel):
    status: Literal["exhausted"] = "exhausted"


class MatchFailedResponse(BaseModel):
    status: Literal["failed"] = "failed"
    reason: Literal["reauthenticate"] = "reauthenticate"


class MatchRecordResponse(BaseModel):
    identity_id: str
    candidate_id: str
    score: float
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class QuotaResponse(BaseModel):
    tier: str
    limit: int
    used: int
    remaining: int
    reset_at: datetime


class RejectionResetResponse(BaseModel):
    cleared: int
