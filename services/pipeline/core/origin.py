from typing import Iterable, Optional


def resolve_allowed_origin(
    request_origin: Optional[str], whitelist: Optional[Iterable[str]] = None
) -> str:
    """
    Decide the Access-Control-Allow-Origin value.

    "*" when no whitelist is configured or the request has no origin,
    the origin itself when whitelisted, and the literal "null" otherwise.
    """
    if whitelist is None or not request_origin:
        return "*"
    return request_origin if request_origin in whitelist else "null"
