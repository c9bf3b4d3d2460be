"""
Rate Limit Engine

This module implements fixed-window rate limiting for FastAPI routes on top
of a shared counter store (Redis or Valkey). Limits hold across every server
instance that points at the same store.

Each request goes through two stages:

1. Decision Stage (RateLimiter.check, used as a FastAPI dependency)
   Runs before the route handler. Derives the counter key, reads or bumps
   the counter, and either lets the request through with X-RateLimit-*
   headers or raises RateLimitException (HTTP 429 + Retry-After).

2. Settlement Stage (RateLimiter.settle, driven by the settlement middleware)
   Runs after the handler has produced a response, but only for policies in
   success-only mode. Successful responses (status < 400) are counted;
   failures are not. It is spawned as a background task so the response is
   never held up by the store.

Two counting modes:
- count_all_requests=True: every request is counted up front with INCR, so
  the value read already includes the current request -> reject if > limit.
- count_all_requests=False: the counter is only read up front; it reflects
  previously settled successes, not the current request -> reject if >= limit.

Usage:
    limiter = RateLimiter(default_policy=settings.default_policy(), store=store)
    limiter.install(app)

    @router.get("/search", dependencies=[Depends(limiter)])
    @limiter.limit(limit=10, window_seconds=60)
    async def search():
        ...
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response

from ratelimit_guard.dependencies import get_remote_address
from ratelimit_guard.exceptions import RateLimitException
from ratelimit_guard.middleware import RateLimitSettlementMiddleware
from ratelimit_guard.policy import Policy, RoutePolicy, resolve_policy
from ratelimit_guard.registry import RouteTable
from ratelimit_guard.store import RateLimitStore
from ratelimit_guard.utils.hashing import make_rate_limit_key, route_identity


logger = logging.getLogger(__name__)

# Takes the request, returns the caller identifier (sync or async)
TrackerFunc = Callable[[Request], str | Awaitable[str]]


class RateLimiter:
    """
    Fixed-window rate limiter shared by all routes of an application.

    Args:
        default_policy: Process-wide policy, used for any field a route leaves unset
        store: Counter store (see ratelimit_guard.store.RateLimitStore)
        key_func: Default tracker function, the client address unless overridden
    """

    def __init__(
        self,
        default_policy: Policy,
        store: RateLimitStore,
        key_func: TrackerFunc = get_remote_address,
    ):
        self.default_policy = default_policy
        self.store = store
        self.key_func = key_func
        self.routes = RouteTable()
        # Strong references to in-flight settlement tasks; asyncio only
        # keeps weak ones, and wait_settled() needs to find them.
        self._pending: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings, store: RateLimitStore, key_func: TrackerFunc = get_remote_address):
        """
        Build a limiter whose default policy comes from application settings.

        Args:
            settings: ratelimit_guard.config.Settings instance
            store: Counter store
            key_func: Default tracker function

        Returns:
            Configured RateLimiter
        """
        return cls(default_policy=settings.default_policy(), store=store, key_func=key_func)

    # ------------------------------------------------------------------
    # Route configuration
    # ------------------------------------------------------------------

    def limit(
        self,
        limit: int | None = None,
        window_seconds: int | None = None,
        error_message: str | None = None,
        count_all_requests: bool | None = None,
    ):
        """
        Decorator registering a per-route policy override.

        Apply it beneath the router decorator so it sees the raw endpoint:

            @router.get("/", dependencies=[Depends(limiter)])
            @limiter.limit(limit=2, window_seconds=10)
            async def index(): ...

        Unset arguments fall back to the default policy.
        """
        policy = RoutePolicy(
            limit=limit,
            window_seconds=window_seconds,
            error_message=error_message,
            count_all_requests=count_all_requests,
        )

        def decorator(endpoint):
            self.routes.register(endpoint, policy)
            return endpoint

        return decorator

    def exempt(self, endpoint):
        """Decorator marking a route as never rate limited."""
        self.routes.exempt(endpoint)
        return endpoint

    def tracked_by(self, key_func: TrackerFunc):
        """
        Return a dependency that runs the Decision Stage with another tracker.

        Example:
            Depends(limiter.tracked_by(get_authorization_tracker))
        """
        async def dependency(request: Request, response: Response) -> None:
            await self.check(request, response, key_func=key_func)

        return dependency

    def install(self, app: FastAPI) -> None:
        """
        Wire the limiter into an application.

        Adds the middleware that drives the Settlement Stage and exposes the
        limiter as app.state.limiter. Must be called before the app starts.
        """
        app.state.limiter = self
        app.add_middleware(RateLimitSettlementMiddleware, limiter=self)

    # ------------------------------------------------------------------
    # Decision Stage
    # ------------------------------------------------------------------

    async def __call__(self, request: Request, response: Response) -> None:
        await self.check(request, response)

    async def check(
        self,
        request: Request,
        response: Response,
        key_func: TrackerFunc | None = None,
    ) -> None:
        """
        Decide whether the current request may reach its handler.

        Steps:
        1. Skip entirely (no store access) for exempt routes
        2. Resolve the effective policy for the route
        3. Derive the key and bind it to request.state for settlement
        4. Read the key's TTL (reset time); no expiry means a full window
        5. Count: INCR in count-all mode, GET in success-only mode
        6. Reject with 429 + Retry-After, or set X-RateLimit-* headers

        Args:
            request: Incoming request (route identity comes from its scope)
            response: Response whose headers FastAPI merges into the final one
            key_func: Tracker override, defaults to the limiter's key_func

        Raises:
            RateLimitException: The caller is over the limit
            StoreUnavailableError: The counter store failed
        """
        endpoint = request.scope.get("endpoint")
        if endpoint is None:
            raise RuntimeError("Rate limiting requires a routed endpoint")
        route_id = route_identity(endpoint)

        if self.routes.is_exempt(route_id):
            return

        policy = resolve_policy(self.routes.policy_for(route_id), self.default_policy)

        tracker = await self._get_tracker(request, key_func or self.key_func)
        key = make_rate_limit_key(route_id, tracker)

        # Request-scoped binding read by the settlement middleware
        request.state.rate_limit_key = key
        request.state.rate_limit_policy = policy

        ttl = await self.store.ttl(key)
        if ttl < 0:
            # No expiry yet: the window is about to start
            ttl = policy.window_seconds

        if policy.count_all_requests:
            count = await self._increment(key, policy.window_seconds)
            exceeded = count > policy.limit
        else:
            current = await self.store.get(key)
            count = int(current) if current else 0
            exceeded = count >= policy.limit

        if exceeded:
            logger.info(f"Rate limit exceeded for {route_id} ({count}/{policy.limit}), retry in {ttl}s")
            raise RateLimitException(policy.error_message, retry_after=ttl)

        remaining = max(policy.limit - count, 0)
        response.headers["X-RateLimit-Limit"] = str(policy.limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(ttl)

    # ------------------------------------------------------------------
    # Settlement Stage
    # ------------------------------------------------------------------

    async def settle(self, key: str | None, policy: Policy, status_code: int) -> None:
        """
        Count a finished request in success-only mode.

        No-op in count-all mode (the Decision Stage already counted it),
        when no key was bound (exempt route or the dependency never ran),
        or when the handler failed (status >= 400).
        """
        if policy.count_all_requests or not key:
            return
        if status_code >= 400:
            return
        await self._increment(key, policy.window_seconds)

    def schedule_settlement(self, key: str | None, policy: Policy, status_code: int) -> asyncio.Task:
        """
        Run settle() as a detached task.

        The caller does not await it; errors are only reported through logging.
        """
        task = asyncio.create_task(self.settle(key, policy, status_code))
        self._pending.add(task)
        task.add_done_callback(self._settlement_done)
        return task

    async def wait_settled(self) -> None:
        """Wait for every in-flight settlement task (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _settlement_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Rate limit settlement cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Rate limit settlement failed: {error}", exc_info=error)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _increment(self, key: str, window_seconds: int) -> int:
        # INCR is atomic in the store; the TTL is only set when this call
        # created the counter. EXPIRE is idempotent if two callers race here.
        count = await self.store.incr(key)
        if count == 1:
            await self.store.expire(key, window_seconds)
        return count

    @staticmethod
    async def _get_tracker(request: Request, key_func: TrackerFunc) -> str:
        tracker = key_func(request)
        if inspect.isawaitable(tracker):
            tracker = await tracker
        return tracker
