"""
Rate Limiting Errors

Two kinds of failure can come out of the rate limiter:

- RateLimitException: the caller is over its quota. This is expected and
  user-facing; FastAPI renders it as HTTP 429 with a Retry-After header.
- StoreUnavailableError: the shared counter store could not be reached.
  There is no fallback counting mode, so this propagates and the request
  fails with whatever the framework does for unhandled errors.
"""

from fastapi import HTTPException, status


# Used when neither the route nor the global settings provide a message
DEFAULT_ERROR_MESSAGE = "Too Many Requests"


class RateLimitException(HTTPException):
    """
    Raised by the Decision Stage when the rate limit has been exceeded.

    Subclassing HTTPException means FastAPI's built-in exception handler
    turns it into a JSON response ({"detail": message}) and forwards the
    Retry-After header, so no custom handler needs to be registered.
    """

    def __init__(self, message: str | None = None, retry_after: int | None = None):
        headers = None
        if retry_after is not None:
            headers = {"Retry-After": str(retry_after)}
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=message or DEFAULT_ERROR_MESSAGE,
            headers=headers,
        )
        self.retry_after = retry_after


class StoreUnavailableError(RuntimeError):
    """A counter store command failed or timed out."""
