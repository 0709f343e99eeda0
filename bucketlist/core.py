"""Application configuration and settings management.

This module defines the application settings loaded from environment
variables and provides a helper for accessing the cached settings.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Attributes:
        DATABASE_URL: Database connection string.
        SECRET_KEY: Secret key used for JWT signing.
        ALGORITHM: Algorithm used to encode JWT tokens.
        ACCESS_TOKEN_EXPIRE_MINUTES: Access token lifetime in minutes.
        ALLOWED_ORIGINS: Allowed origins for CORS.
        REDIS_URL: Redis connection URL for rate limiting.
        LOGIN_RATE_LIMIT_TIMES: Login attempts allowed per window.
        LOGIN_RATE_LIMIT_SECONDS: Length of the login rate limit window.
        LOG_LEVEL: Root logger level name.
        LOG_FILE: Optional path of a log file.
        API_BASE_URL: Base URL the API client talks to.
    """

    DATABASE_URL: str = "sqlite:///./bucketlist.db"
    SECRET_KEY: str = "dev-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    ALLOWED_ORIGINS: List[str] = ["*"]
    REDIS_URL: str = "redis://redis:6379"
    LOGIN_RATE_LIMIT_TIMES: int = 10
    LOGIN_RATE_LIMIT_SECONDS: int = 60
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None
    API_BASE_URL: str = "http://localhost:8000"

    class Config:
        """Pydantic configuration for loading environment variables."""

        env_file = ".env"
        extra = "allow"


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    The settings object is cached to prevent reloading environment
    variables multiple times during application lifetime.
    """

    return Settings()
