import hashlib

from ratelimit_guard.utils.hashing import make_rate_limit_key, route_identity, sha256


def test_sha256_hex_digest():
    assert sha256("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_key_is_hash_of_route_and_tracker():
    expected = hashlib.sha256(b"pkg.routes:index-10.0.0.1").hexdigest()
    assert make_rate_limit_key("pkg.routes:index", "10.0.0.1") == expected


def test_key_is_deterministic():
    assert make_rate_limit_key("pkg.routes:index", "10.0.0.1") == make_rate_limit_key("pkg.routes:index", "10.0.0.1")


def test_different_inputs_give_different_keys():
    base = make_rate_limit_key("pkg.routes:index", "10.0.0.1")
    assert make_rate_limit_key("pkg.routes:index", "10.0.0.2") != base
    assert make_rate_limit_key("pkg.routes:other", "10.0.0.1") != base


def test_key_length_is_bounded():
    assert len(make_rate_limit_key("pkg.routes:index", "Bearer " + "x" * 5000)) == 64


class Controller:
    def handler(self):
        pass


def handler():
    pass


def test_route_identity_includes_module_and_qualname():
    assert route_identity(handler) == f"{__name__}:handler"
    assert route_identity(Controller.handler) == f"{__name__}:Controller.handler"
    assert "-" not in route_identity(Controller.handler)
