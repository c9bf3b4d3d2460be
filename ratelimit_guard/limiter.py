"""
Rate Limiting Configuration

This module sets up the application's RateLimiter using Redis as the
storage backend. It provides a centralized limiter instance that can be
imported and used to protect routes throughout the application.
"""

from ratelimit_guard.config import settings
from ratelimit_guard.dependencies import get_remote_address
from ratelimit_guard.engine import RateLimiter
from ratelimit_guard.store import create_store


# Initialize Limiter
# key_func=get_remote_address: Uses the client's IP address as the unique identifier
# store: Redis (or Valkey) client shared by every server instance
limiter = RateLimiter.from_settings(
    settings,
    store=create_store(settings.REDIS_URL),
    key_func=get_remote_address,
)
