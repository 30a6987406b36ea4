"""FastAPI application entry point"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded

from soulsync import __version__
from soulsync.api import auth, health, matches, quiz
from soulsync.config import settings
from soulsync.database import close_db, init_db
from soulsync.errors import (
    AuthInvalid,
    IdentityConflict,
    InvalidAnswer,
    MatchNotFound,
    QuotaExceeded,
    StorageUnavailable,
)
from soulsync.middleware.monitoring import MonitoringMiddleware
from soulsync.middleware.rate_limit import limiter
from soulsync.utils.logger import logger, setup_logging

# Setup logging
setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    logger.info("SoulSync backend starting up", extra={
        "version": __version__,
        "log_level": settings.LOG_LEVEL,
        "rate_limiting": settings.RATE_LIMIT_ENABLED,
        "monitoring": settings.METRICS_ENABLED,
        "quota_timezone": settings.QUOTA_TIMEZONE,
    })
    if settings.DATABASE_AUTO_CREATE:
        init_db()
    yield
    # Shutdown
    close_db()
    logger.info("SoulSync backend shutting down")


# Create FastAPI app
app = FastAPI(
    title="SoulSync",
    description="Token lifecycle and quota-gated compatibility matching",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ===== Middleware Setup =====

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Monitoring middleware
if settings.METRICS_ENABLED:
    app.add_middleware(MonitoringMiddleware)

    # Prometheus metrics
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics", "/health", "/health/ready", "/health/live"],
        inprogress_name="soulsync_requests_inprogress",
        inprogress_labels=True
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# Rate limiting (the decorators are no-ops while the limiter is disabled)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(
        "Rate limit exceeded",
        extra={
            "path": request.url.path,
            "method": request.method,
        }
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please try again later.",
            "detail": str(exc.detail)
        }
    )

# ===== Route Setup =====

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(quiz.router)
app.include_router(matches.router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "service": "SoulSync",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None
    }


# ===== Error Handlers =====

@app.exception_handler(AuthInvalid)
async def auth_invalid_handler(request: Request, exc: AuthInvalid):
    """Every credential failure looks the same to the caller"""
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={
            "error": AuthInvalid.code,
            "message": "Authentication required. Please log in again."
        },
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(QuotaExceeded)
async def quota_exceeded_handler(request: Request, exc: QuotaExceeded):
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": exc.code,
            "remaining": 0,
            "reset_at": exc.reset_at.isoformat()
        }
    )


@app.exception_handler(InvalidAnswer)
async def invalid_answer_handler(request: Request, exc: InvalidAnswer):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": exc.code, "message": str(exc)}
    )


@app.exception_handler(IdentityConflict)
async def identity_conflict_handler(request: Request, exc: IdentityConflict):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"error": exc.code, "message": "Email already registered"}
    )


@app.exception_handler(MatchNotFound)
async def match_not_found_handler(request: Request, exc: MatchNotFound):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": exc.code, "message": str(exc)}
    )


@app.exception_handler(StorageUnavailable)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
    """Transient storage failure after retry; safe for the client to retry"""
    logger.error(
        "Storage unavailable",
        extra={
            "path": request.url.path,
            "method": request.method
        }
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": exc.code,
            "message": "Storage is temporarily unavailable. Please retry."
        },
        headers={"Retry-After": "1"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for uncaught errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method
        },
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please contact support."
        }
    )
