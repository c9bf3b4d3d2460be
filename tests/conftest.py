import math

import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from ratelimit_guard.engine import RateLimiter
from ratelimit_guard.exceptions import StoreUnavailableError
from ratelimit_guard.policy import Policy


class InMemoryStore:
    """Counter store double with Redis semantics and a manual clock."""

    def __init__(self):
        self.now = 0.0
        self.values: dict[str, int] = {}
        self.expires_at: dict[str, float] = {}
        self.calls: list[tuple] = []

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _evict(self, key):
        deadline = self.expires_at.get(key)
        if deadline is not None and deadline <= self.now:
            self.values.pop(key, None)
            self.expires_at.pop(key, None)

    async def get(self, key):
        self.calls.append(("get", key))
        self._evict(key)
        value = self.values.get(key)
        return None if value is None else str(value)

    async def incr(self, key):
        self.calls.append(("incr", key))
        self._evict(key)
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    async def expire(self, key, seconds):
        self.calls.append(("expire", key, seconds))
        self._evict(key)
        if key in self.values:
            self.expires_at[key] = self.now + seconds

    async def ttl(self, key):
        self.calls.append(("ttl", key))
        self._evict(key)
        if key not in self.values:
            return -2
        if key not in self.expires_at:
            return -1
        return math.ceil(self.expires_at[key] - self.now)

    def commands(self, name):
        return [call for call in self.calls if call[0] == name]


class BrokenStore(InMemoryStore):
    """Store whose listed commands always fail."""

    def __init__(self, failing=("get", "incr", "expire", "ttl")):
        super().__init__()
        self.failing = set(failing)

    def _maybe_fail(self, command):
        if command in self.failing:
            raise StoreUnavailableError(f"Redis {command.upper()} failed: connection refused")

    async def get(self, key):
        self._maybe_fail("get")
        return await super().get(key)

    async def incr(self, key):
        self._maybe_fail("incr")
        return await super().incr(key)

    async def expire(self, key, seconds):
        self._maybe_fail("expire")
        return await super().expire(key, seconds)

    async def ttl(self, key):
        self._maybe_fail("ttl")
        return await super().ttl(key)


def build_app(limiter: RateLimiter) -> FastAPI:
    """Small application exercising every limiter feature."""
    app = FastAPI()
    limiter.install(app)

    @app.get("/count-all", dependencies=[Depends(limiter)])
    @limiter.limit(limit=2, window_seconds=10, count_all_requests=True, error_message="Slow down")
    async def count_all(fail: bool = False):
        if fail:
            raise HTTPException(status_code=400, detail="failed")
        return {"ok": True}

    @app.get("/success-only", dependencies=[Depends(limiter)])
    @limiter.limit(limit=2, window_seconds=10)
    async def success_only(fail: bool = False, crash: bool = False):
        if crash:
            raise RuntimeError("handler crashed")
        if fail:
            raise HTTPException(status_code=500, detail="failed")
        return {"ok": True}

    @app.get("/default", dependencies=[Depends(limiter)])
    async def default():
        return {"ok": True}

    @app.get("/exempt", dependencies=[Depends(limiter)])
    @limiter.exempt
    async def exempt():
        return {"ok": True}

    async def api_key_tracker(request):
        return request.headers.get("x-api-key", "anonymous")

    @app.get("/per-key", dependencies=[Depends(limiter.tracked_by(api_key_tracker))])
    @limiter.limit(limit=1, window_seconds=10, count_all_requests=True)
    async def per_key():
        return {"ok": True}

    return app


def wait_settled(client, limiter: RateLimiter) -> None:
    """Block until background settlements started by previous requests are done."""
    client.portal.call(limiter.wait_settled)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def default_policy():
    return Policy(window_seconds=30, limit=5)


@pytest.fixture
def limiter(store, default_policy):
    return RateLimiter(default_policy=default_policy, store=store)


@pytest.fixture
def client(limiter):
    with TestClient(build_app(limiter)) as client:
        yield client


@pytest.fixture
def settle(client, limiter):
    return lambda: wait_settled(client, limiter)


@pytest.fixture
def broken_store():
    return BrokenStore


@pytest.fixture
def app_factory():
    return build_app
