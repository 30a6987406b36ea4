"""Pydantic schemas for request/response validation"""
from soulsync.schemas.auth import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RevokeAllResponse,
    RevokeResponse,
    TokenResponse,
)
from soulsync.schemas.match import (
    CandidateProfile,
    MatchDeniedResponse,
    MatchExhaustedResponse,
    MatchFailedResponse,
    MatchRecordResponse,
    MatchResolvedResponse,
    QuotaResponse,
    RejectionResetResponse,
)
from soulsync.schemas.quiz import AnswerSetResponse, AnswerSubmission, QuestionResponse

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "TokenResponse",
    "RevokeResponse",
    "RevokeAllResponse",
    "CandidateProfile",
    "MatchResolvedResponse",
    "MatchDeniedResponse",
    "MatchExhaustedResponse",
    "MatchFailedResponse",
    "MatchRecordResponse",
    "QuotaResponse",
    "RejectionResetResponse",
    "QuestionResponse",
    "AnswerSubmission",
    "AnswerSetResponse",
]
