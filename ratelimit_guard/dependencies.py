"""
Tracker Functions for Rate Limiting

A tracker identifies the caller a request belongs to. The rate limiter
hashes it together with the route identity to build the counter key, so two
requests share a counter exactly when they have the same route and tracker.

Any callable taking a Request and returning a string (or an awaitable
string) can be used:

    limiter = RateLimiter(default_policy, store, key_func=get_remote_address)

    @router.get("/reports", dependencies=[Depends(limiter.tracked_by(get_authorization_tracker))])
    async def reports():
        ...
"""

from fastapi import Request


def get_remote_address(request: Request) -> str:
    """
    Default tracker: the caller's network address.

    Resolution order:
    1. The client address resolved by the server (request.client.host)
    2. The first entry of the X-Forwarded-For header
    3. The literal string "unknown"

    Args:
        request: Incoming request

    Returns:
        Caller address, or "unknown"
    """
    if request.client and request.client.host:
        return request.client.host

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # Header format is "client, proxy1, proxy2"
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    return "unknown"


def get_authorization_tracker(request: Request) -> str:
    """
    Credential-based tracker: limit per Authorization header.

    Callers presenting the same credential share a quota wherever they
    connect from. Anonymous requests fall back to the network address.
    """
    authorization = request.headers.get("authorization")
    if authorization:
        return authorization
    return get_remote_address(request)
