"""
Demo Routes

Endpoints that show each rate limiting feature in action:

- GET /               2 requests / 10s, only successful requests count
- GET /custom-key     10 requests / 100s, tracked by Authorization header
- GET /rate-limit-all 10 requests / 60s, every request counts (even failures)
- GET /flaky          3 requests / 30s, failures (?fail=true) are not counted
- GET /ignored        never rate limited
"""

from fastapi import APIRouter, Depends, HTTPException

from ratelimit_guard.dependencies import get_authorization_tracker
from ratelimit_guard.limiter import limiter


router = APIRouter(tags=["demo"])


@router.get("/", dependencies=[Depends(limiter)])
@limiter.limit(limit=2, window_seconds=10)
async def rate():
    """Basic rate limited endpoint."""
    return "rate"


@router.get("/custom-key", dependencies=[Depends(limiter.tracked_by(get_authorization_tracker))])
@limiter.limit(limit=10, window_seconds=100)
async def custom_key():
    """
    Rate limited per credential instead of per IP address.

    Clients sending the same Authorization header share one quota.
    """
    return "header"


@router.get("/rate-limit-all", dependencies=[Depends(limiter)])
@limiter.limit(limit=10, window_seconds=60, count_all_requests=True, error_message="Rate Limit All")
async def rate_limit_all(fail: bool = False):
    """
    Count-all mode: failed requests use up quota too.

    Args:
        fail: Force a 400 response to show failures are still counted
    """
    if fail:
        raise HTTPException(status_code=400, detail="Requested failure")
    return "all"


@router.get("/flaky", dependencies=[Depends(limiter)])
@limiter.limit(limit=3, window_seconds=30)
async def flaky(fail: bool = False):
    """
    Success-only mode: failed requests are free.

    Args:
        fail: Force a 400 response, which the limiter will not count
    """
    if fail:
        raise HTTPException(status_code=400, detail="Requested failure")
    return "flaky"


@router.get("/ignored", dependencies=[Depends(limiter)])
@limiter.exempt
async def ignored():
    """Excluded from rate limiting even though the limiter dependency is attached."""
    return "ignored"
