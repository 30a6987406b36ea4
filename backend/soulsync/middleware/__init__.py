"""Middleware modules for production-ready features"""
from soulsync.middleware.monitoring import (
    MonitoringMiddleware,
    record_auth_failure,
    record_match_outcome,
    record_quota_consume,
    record_token_event,
)
from soulsync.middleware.rate_limit import get_rate_limit, limiter

__all__ = [
    "MonitoringMiddleware",
    "record_auth_failure",
    "record_match_outcome",
    "record_quota_consume",
    "record_token_event",
    "limiter",
    "get_rate_limit",
]
