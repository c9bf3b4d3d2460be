"""
Rate Limit Policies

A Policy describes one fixed window: how long it lasts, how many counted
requests fit in it, what to tell the caller when it is full, and whether
every request counts or only successful ones.

There are two flavours:
- Policy: fully specified. The process-wide default is one of these, and
  so is the effective policy computed for each request.
- RoutePolicy: a per-route fragment where every field is optional.

resolve_policy() merges the two. It never touches the store and never fails.
"""

from pydantic import BaseModel, ConfigDict, PositiveInt

from ratelimit_guard.exceptions import DEFAULT_ERROR_MESSAGE


class Policy(BaseModel):
    """Fully resolved rate limit policy. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    window_seconds: PositiveInt
    limit: PositiveInt
    error_message: str | None = None
    count_all_requests: bool = False


class RoutePolicy(BaseModel):
    """Per-route override; unset fields fall back to the default Policy."""

    model_config = ConfigDict(frozen=True)

    window_seconds: PositiveInt | None = None
    limit: PositiveInt | None = None
    error_message: str | None = None
    count_all_requests: bool | None = None


def resolve_policy(route_policy: RoutePolicy | None, default: Policy) -> Policy:
    """
    Merge a route's policy fragment with the default policy.

    Each field takes the route value when it is set and truthy, otherwise
    the default value. That means a route cannot switch count_all_requests
    off when the default turns it on, and an empty error message falls back
    to the default one.

    Args:
        route_policy: Fragment registered for the route, or None
        default: Process-wide default policy

    Returns:
        Policy with all four fields concrete
    """
    route = route_policy or RoutePolicy()
    return Policy(
        window_seconds=route.window_seconds or default.window_seconds,
        limit=route.limit or default.limit,
        error_message=route.error_message or default.error_message or DEFAULT_ERROR_MESSAGE,
        count_all_requests=route.count_all_requests or default.count_all_requests or False,
    )
