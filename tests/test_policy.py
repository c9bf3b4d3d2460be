import pytest
from pydantic import ValidationError

from ratelimit_guard.policy import Policy, RoutePolicy, resolve_policy


DEFAULT = Policy(window_seconds=30, limit=5, error_message="Global message", count_all_requests=False)


def test_no_route_policy_returns_default_values():
    policy = resolve_policy(None, DEFAULT)
    assert policy == DEFAULT


def test_route_values_override_default():
    route = RoutePolicy(window_seconds=10, limit=2, error_message="Route message", count_all_requests=True)
    policy = resolve_policy(route, DEFAULT)
    assert policy.window_seconds == 10
    assert policy.limit == 2
    assert policy.error_message == "Route message"
    assert policy.count_all_requests is True


def test_partial_route_policy_falls_back_per_field():
    policy = resolve_policy(RoutePolicy(limit=2), DEFAULT)
    assert policy.limit == 2
    assert policy.window_seconds == 30
    assert policy.error_message == "Global message"
    assert policy.count_all_requests is False


def test_falsy_route_values_fall_back():
    default = Policy(window_seconds=30, limit=5, count_all_requests=True)
    policy = resolve_policy(RoutePolicy(error_message="", count_all_requests=False), default)
    assert policy.count_all_requests is True
    assert policy.error_message == "Too Many Requests"


def test_generic_message_when_none_configured():
    policy = resolve_policy(None, Policy(window_seconds=30, limit=5))
    assert policy.error_message == "Too Many Requests"
    assert policy.count_all_requests is False


@pytest.mark.parametrize("field", ["window_seconds", "limit"])
def test_non_positive_values_rejected(field):
    with pytest.raises(ValidationError):
        RoutePolicy(**{field: 0})
    with pytest.raises(ValidationError):
        Policy(**{"window_seconds": 30, "limit": 5, field: -1})


def test_default_policy_is_immutable():
    with pytest.raises(ValidationError):
        DEFAULT.limit = 100
