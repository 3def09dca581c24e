"""
Route configuration models.

Supplied once at route registration time and read-only afterwards.
"""

from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from ..config import config

# A step factory receives (query, context) and returns an executable unit.
StepFactory = Callable[..., Any]
# Error kinds are matched by discriminant; exception classes are resolved to theirs.
ErrorKindRef = Union[str, Type[BaseException]]

DEFAULT_SECURITY_HEADERS: Dict[str, str] = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Content-Security-Policy": "default-src 'none'",
    "Cache-Control": "no-store, max-age=0",
    "Pragma": "no-cache",
}


class RouteConfig(BaseModel):
    """Per-route pipeline definition."""

    handlers: Tuple[StepFactory, ...] = Field(..., min_length=1)
    body_schema: Optional[Dict[str, Any]] = None
    initial_query_reflector: Optional[Dict[str, Any]] = None
    initial_body_reflector: Optional[Dict[str, Any]] = None
    timeout_ms: Optional[PositiveInt] = None
    error_to_status_code_mapping: Optional[Dict[int, Tuple[ErrorKindRef, ...]]] = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class RouteOptions(BaseModel):
    """Per-route response policy."""

    max_response_size: PositiveInt = Field(
        default_factory=lambda: config.DEFAULT_MAX_RESPONSE_SIZE,
        description="Maximum serialized success body size (bytes)",
    )
    headers: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SECURITY_HEADERS))
    cors_origin_whitelist: Optional[FrozenSet[str]] = None

    model_config = ConfigDict(frozen=True)
