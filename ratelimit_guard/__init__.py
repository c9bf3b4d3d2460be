"""
Rate Limit Guard

Fixed-window rate limiting for FastAPI backed by Redis or Valkey. The
package is organized as follows:

- config.py: Settings loaded from the environment (default policy, Redis URL)
- policy.py: Policy models and per-route policy resolution
- engine.py: RateLimiter with the Decision and Settlement stages
- middleware.py: Runs the Settlement Stage after each response
- registry.py: Side table of per-route policies and exempt routes
- store.py: Counter store contract and the Redis adapter
- dependencies.py: Tracker functions (client address, Authorization header)
- exceptions.py: RateLimitException and StoreUnavailableError
- limiter.py: Application-wide limiter instance wired to Redis
- main.py: Demo FastAPI application

Subpackages:
- routes/: Demo endpoints
- utils/: Key derivation helpers
"""

from ratelimit_guard.dependencies import get_authorization_tracker, get_remote_address
from ratelimit_guard.engine import RateLimiter
from ratelimit_guard.exceptions import RateLimitException, StoreUnavailableError
from ratelimit_guard.policy import Policy, RoutePolicy, resolve_policy
from ratelimit_guard.store import RateLimitStore, RedisStore, create_store

__all__ = [
    "RateLimiter",
    "Policy",
    "RoutePolicy",
    "resolve_policy",
    "RateLimitStore",
    "RedisStore",
    "create_store",
    "RateLimitException",
    "StoreUnavailableError",
    "get_remote_address",
    "get_authorization_tracker",
]
