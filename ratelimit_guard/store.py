"""
Counter Store - Redis/Valkey Backend

The rate limiter needs only four commands from its backing store:

- GET key          -> current value or None
- INCR key         -> atomically increment (from 0 if missing), return new value
- EXPIRE key secs  -> set remaining lifetime (no-op if the key is missing)
- TTL key          -> remaining seconds, negative if no expiry / no key

RateLimitStore spells that contract out; anything with those four async
methods can be plugged into the limiter. RedisStore implements it on top of
redis.asyncio, which also works against Valkey since Valkey speaks the same
protocol.
"""

import logging
from typing import Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from ratelimit_guard.exceptions import StoreUnavailableError


logger = logging.getLogger(__name__)


class RateLimitStore(Protocol):
    """Key-value store contract used by the rate limiter."""

    async def get(self, key: str) -> str | None:
        ...

    async def incr(self, key: str) -> int:
        ...

    async def expire(self, key: str, seconds: int) -> None:
        ...

    async def ttl(self, key: str) -> int:
        ...


class RedisStore:
    """
    Adapter that exposes a redis.asyncio client as a RateLimitStore.

    Redis errors (connection refused, timeouts, ...) are logged and re-raised
    as StoreUnavailableError so callers only have one exception type to
    deal with. Nothing is retried here; timeouts are configured on the client.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    async def _execute(self, command: str, *args):
        try:
            return await getattr(self.client, command)(*args)
        except RedisError as e:
            logger.error(f"Redis {command.upper()} failed: {e}")
            raise StoreUnavailableError(f"Redis {command.upper()} failed: {e}") from e

    async def get(self, key: str) -> str | None:
        value = await self._execute("get", key)
        # Clients created without decode_responses=True hand back bytes
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def incr(self, key: str) -> int:
        return int(await self._execute("incr", key))

    async def expire(self, key: str, seconds: int) -> None:
        await self._execute("expire", key, seconds)

    async def ttl(self, key: str) -> int:
        return int(await self._execute("ttl", key))

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self.client.aclose()


def create_store(url: str) -> RedisStore:
    """
    Create a RedisStore from a connection URL.

    The client is created lazily; no connection is opened until the first
    command, so this is safe to call at import time.

    Args:
        url: redis://, rediss:// or unix:// URL (valkey:// is rewritten by Settings)

    Returns:
        RedisStore wrapping an async Redis client
    """
    # - encoding="utf-8": Decode bytes to strings automatically
    # - decode_responses=True: Return strings instead of bytes for easier handling
    client = redis.from_url(url, encoding="utf-8", decode_responses=True)
    return RedisStore(client)
