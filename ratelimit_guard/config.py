"""
Application Configuration Module

This module handles all rate limiting settings using Pydantic's BaseSettings.
Environment variables are automatically loaded from a .env file, so the same
code can run against a local Redis in development and a shared Redis/Valkey
cluster in production.
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator

from ratelimit_guard.exceptions import DEFAULT_ERROR_MESSAGE
from ratelimit_guard.policy import Policy


class Settings(BaseSettings):
    """
    Rate limiting settings loaded from environment variables.

    Pydantic automatically reads these values from:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values (if specified)

    The RATE_LIMIT_* values form the process-wide default Policy. They are
    read once at startup; routes override them individually with
    @limiter.limit(...).
    """

    # Redis (or Valkey) connection string for the shared counter store
    # Every server instance must point at the same store for limits to hold
    REDIS_URL: str = "redis://localhost:6379"

    # Length of the fixed window in seconds
    RATE_LIMIT_WINDOW_SECONDS: int = 30

    # Maximum number of counted requests per window
    RATE_LIMIT_LIMIT: int = 5

    # Message returned with HTTP 429 when a route does not set its own
    RATE_LIMIT_ERROR_MESSAGE: str = DEFAULT_ERROR_MESSAGE

    # True: every request counts. False: only successful responses count.
    RATE_LIMIT_COUNT_ALL_REQUESTS: bool = False

    # Environment mode: "development" or "production"
    ENVIRONMENT: str = "production"

    # Root log level applied by the demo application on startup
    LOG_LEVEL: str = "INFO"

    @field_validator("REDIS_URL")
    def validate_redis_url(cls, value):
        # redis-py only understands redis:// style schemes, but Valkey
        # deployments are often configured with valkey:// URLs.
        if value.startswith("valkeys://"):
            return value.replace("valkeys://", "rediss://", 1)
        if value.startswith("valkey://"):
            return value.replace("valkey://", "redis://", 1)
        return value

    @field_validator("RATE_LIMIT_WINDOW_SECONDS", "RATE_LIMIT_LIMIT")
    def validate_positive(cls, value):
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    def default_policy(self) -> Policy:
        """
        Build the immutable default Policy from these settings.

        Returns:
            Frozen Policy used whenever a route leaves a field unset
        """
        return Policy(
            window_seconds=self.RATE_LIMIT_WINDOW_SECONDS,
            limit=self.RATE_LIMIT_LIMIT,
            error_message=self.RATE_LIMIT_ERROR_MESSAGE,
            count_all_requests=self.RATE_LIMIT_COUNT_ALL_REQUESTS,
        )

    class Config:
        """
        Pydantic configuration class.

        Tells Pydantic to load settings from a .env file,
        which should be placed in the project root directory.
        """
        env_file = ".env"


# Global settings instance used throughout the application
# Import this instance to access configuration values
settings = Settings()
