"""
Main Application Entry Point

This module sets up a FastAPI application protected by the rate limiter:
- Logging configured on startup
- Settlement middleware installed
- Demo routes registered
- Pending settlements drained and the Redis client closed on shutdown

Run with:
    uvicorn ratelimit_guard.main:app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ratelimit_guard.config import settings
from ratelimit_guard.limiter import limiter
from ratelimit_guard.routes import demo


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - runs on startup and shutdown.

    Startup tasks:
    - Configure the root log level from settings

    Shutdown tasks:
    - Wait for background settlement tasks so no successful request goes uncounted
    - Close the store's connection pool
    """
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    policy = limiter.default_policy
    logger.info(
        f"Rate limiting enabled: {policy.limit} requests / {policy.window_seconds}s "
        f"(count all requests: {policy.count_all_requests})"
    )

    yield

    await limiter.wait_settled()
    close = getattr(limiter.store, "aclose", None)
    if close is not None:
        await close()


def create_app() -> FastAPI:
    app = FastAPI(title="Rate Limit Guard", lifespan=lifespan)
    limiter.install(app)
    app.include_router(demo.router)
    return app


app = create_app()
