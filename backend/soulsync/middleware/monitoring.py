"""Monitoring and observability middleware"""
import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from soulsync.utils.logger import logger


# ===== Prometheus Metrics =====

http_requests_total = Counter(
    "soulsync_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "soulsync_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

http_errors_total = Counter(
    "soulsync_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

# Domain metrics
match_resolutions_total = Counter(
    "soulsync_match_resolutions_total",
    "Match resolution outcomes",
    ["outcome"]  # resolved, denied, exhausted, failed
)

quota_consumptions_total = Counter(
    "soulsync_quota_consumptions_total",
    "Quota consume attempts",
    ["tier", "granted"]
)

token_events_total = Counter(
    "soulsync_token_events_total",
    "Token lifecycle events",
    ["event"]  # issue, rotate, revoke, revoke_all, reuse_detected
)

authentication_failures_total = Counter(
    "soulsync_authentication_failures_total",
    "Total authentication failures",
    ["type"]  # access, refresh_unknown, refresh_expired, refresh_reuse, password
)


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Middleware for monitoring and metrics collection"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and collect metrics"""
        start_time = time.time()

        method = request.method
        endpoint = request.url.path

        # Add request ID for tracing
        request_id = request.headers.get("x-request-id", f"req_{int(time.time() * 1000)}")
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            status = response.status_code

            duration = time.time() - start_time
            http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

            if duration > 1.0:
                logger.warning(
                    f"Slow request detected: {method} {endpoint}",
                    extra={"request_id": request_id, "method": method, "path": endpoint}
                )

            if status >= 400:
                http_errors_total.labels(method=method, endpoint=endpoint, status=status).inc()

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration:.3f}s"

            return response

        except Exception:
            http_errors_total.labels(method=method, endpoint=endpoint, status=500).inc()
            logger.error(
                f"Request failed: {method} {endpoint}",
                extra={"request_id": request_id, "method": method, "path": endpoint},
                exc_info=True
            )
            raise


def record_match_outcome(outcome: str):
    """Record the terminal state of a match resolution"""
    match_resolutions_total.labels(outcome=outcome).inc()


def record_quota_consume(tier: str, granted: bool):
    """Record a quota consume attempt"""
    quota_consumptions_total.labels(tier=tier, granted=str(granted)).inc()


def record_token_event(event: str):
    """Record a token lifecycle event"""
    token_events_total.labels(event=event).inc()


def record_auth_failure(auth_type: str):
    """Record authentication failure"""
    authentication_failures_total.labels(type=auth_type).inc()
