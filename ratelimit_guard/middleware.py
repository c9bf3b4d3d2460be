"""
Settlement Middleware

In success-only mode a request is counted after its handler has finished,
and only if the response was successful. That needs the final status code,
which a FastAPI dependency cannot see, so this middleware picks it up:

1. Let the request run (the Decision Stage dependency binds the key and
   effective policy to request.state on the way in)
2. Once the response exists, spawn the settlement as a background task
3. Return the response straight away without waiting for the store

Unhandled exceptions from the handler propagate out of call_next, so a
crashing handler is never counted either.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


class RateLimitSettlementMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        key = getattr(request.state, "rate_limit_key", None)
        policy = getattr(request.state, "rate_limit_policy", None)
        if key and policy is not None and not policy.count_all_requests:
            self.limiter.schedule_settlement(key, policy, response.status_code)

        return response
