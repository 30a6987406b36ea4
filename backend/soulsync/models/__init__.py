"""Database models"""
from soulsync.models.identity import Identity
from soulsync.models.match import MatchRecord, Rejection
from soulsync.models.question import Answer, Question
from soulsync.models.quota import QuotaCounter
from soulsync.models.refresh_token import RefreshToken

__all__ = ["Answer", "Identity", "MatchRecord", "Question", "QuotaCounter", "RefreshToken", "Rejection"]
