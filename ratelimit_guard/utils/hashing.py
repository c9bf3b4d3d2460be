"""
Rate Limit Key Derivation

Keys identify "this caller, on this route" in the counter store. They are
hashed so that:
1. Key length stays bounded whatever the tracker contains (trackers can be
   arbitrary header values such as Authorization tokens)
2. Raw IP addresses and credentials never show up in the store's keyspace
"""

import hashlib
from typing import Callable


def sha256(value: str) -> str:
    """Return the hex-encoded SHA-256 digest of a string."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def route_identity(endpoint: Callable) -> str:
    """
    Build a stable identifier for a route from its endpoint function.

    The identifier is "<module>:<qualname>", e.g.
    "ratelimit_guard.routes.demo:rate". Qualified names include the class
    for methods, so two handlers with the same name in different classes or
    modules get different identities.

    Args:
        endpoint: The function FastAPI calls for the route

    Returns:
        Route identity string
    """
    return f"{endpoint.__module__}:{endpoint.__qualname__}"


def make_rate_limit_key(route_id: str, tracker: str) -> str:
    """
    Derive the store key for a route and a tracker.

    Module paths and qualified names never contain "-", so the first "-"
    in the hashed input always separates the route from the tracker.

    Args:
        route_id: Output of route_identity()
        tracker: Caller identifier (IP address, credential, ...)

    Returns:
        64-character hex string
    """
    return sha256(f"{route_id}-{tracker}")
