import pytest

from services.pipeline.core.origin import resolve_allowed_origin


@pytest.mark.parametrize(
    "origin, whitelist, expected",
    [
        ("https://example.com", None, "*"),
        (None, None, "*"),
        (None, {"https://allowed.com"}, "*"),
        ("", {"https://allowed.com"}, "*"),
        ("https://allowed.com", {"https://allowed.com"}, "https://allowed.com"),
        ("https://disallowed.com", {"https://allowed.com"}, "null"),
        ("https://example.com", set(), "null"),
    ],
)
def test_resolve_allowed_origin(origin, whitelist, expected):
    assert resolve_allowed_origin(origin, whitelist) == expected


def test_resolve_allowed_origin_echoes_verbatim():
    """Membership is exact: case differences are not normalized."""
    whitelist = frozenset({"https://Allowed.com"})

    assert resolve_allowed_origin("https://Allowed.com", whitelist) == "https://Allowed.com"
    assert resolve_allowed_origin("https://allowed.com", whitelist) == "null"
