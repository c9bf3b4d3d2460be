"""
Per-Route Rate Limit Configuration

RouteTable is a side table filled in while routes are defined and read by
the limiter at request time. It maps a route identity to:
- an optional RoutePolicy fragment (from @limiter.limit(...))
- an exempt flag (from @limiter.exempt)

Nothing is attached to the endpoint function itself, so decorators can
return the function unchanged and FastAPI still sees the original signature.
"""

from typing import Callable

from ratelimit_guard.policy import RoutePolicy
from ratelimit_guard.utils.hashing import route_identity


class RouteTable:
    def __init__(self):
        self._policies: dict[str, RoutePolicy] = {}
        self._exempt: set[str] = set()

    def register(self, endpoint: Callable, policy: RoutePolicy) -> None:
        """Attach a policy fragment to an endpoint. Later calls replace earlier ones."""
        self._policies[route_identity(endpoint)] = policy

    def exempt(self, endpoint: Callable) -> None:
        """Mark an endpoint as bypassing rate limiting entirely."""
        self._exempt.add(route_identity(endpoint))

    def policy_for(self, route_id: str) -> RoutePolicy | None:
        return self._policies.get(route_id)

    def is_exempt(self, route_id: str) -> bool:
        return route_id in self._exempt
