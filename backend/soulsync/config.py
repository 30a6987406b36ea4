"""Application configuration"""
from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite:///./soulsync.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour
    DATABASE_AUTO_CREATE: bool = False  # create_all on startup (dev only; use alembic otherwise)

    # Storage retry (one retry with backoff, then 503)
    STORAGE_RETRY_ATTEMPTS: int = 1
    STORAGE_RETRY_BASE_DELAY: float = 0.05

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: List[str] = ["100/minute", "1000/hour"]
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # Use redis:// for production

    # Monitoring
    METRICS_ENABLED: bool = True
    METRICS_PATH: str = "/metrics"

    # JWT access tokens
    JWT_PRIVATE_KEY: Optional[str] = None   # RSA-2048 PEM string; auto-generated on startup if absent
    JWT_ALGORITHM: str = "RS256"
    JWT_KEY_ID: Optional[str] = None        # kid claim for key rotation tracking
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 900  # 15 minutes

    # Refresh tokens
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    REFRESH_TOKEN_BYTES: int = 32           # 256 bits of entropy
    REFRESH_REUSE_POLICY: str = "reject"    # reject | revoke_family

    # Passwords
    PASSWORD_MIN_LENGTH: int = 6

    # Daily match quota
    QUOTA_FREE_DAILY: int = 2
    QUOTA_PREMIUM_DAILY: int = 10
    QUOTA_TIMEZONE: str = "UTC"             # calendar day boundary for quota and rejections
    QUOTA_RETENTION_DAYS: int = 30

    # Matching
    CANDIDATE_POOL_SIZE: int = 20
    EXHAUSTED_POLICY: str = "report"        # report | reset_and_retry

    # Quiz
    COMPATIBILITY_QUIZ_SIZE: int = 8

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
