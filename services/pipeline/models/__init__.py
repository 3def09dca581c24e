"""
Data model definitions package.

Aggregates Pydantic models for use in other modules.
"""

from .aws_v1 import APIGatewayProxyEvent, APIGatewayProxyResult
from .context import RawRequest, RequestContext, get_header
from .errors import ErrorBody, ValidationErrorItem
from .route import DEFAULT_SECURITY_HEADERS, RouteConfig, RouteOptions

__all__ = [
    "APIGatewayProxyEvent",
    "APIGatewayProxyResult",
    "RawRequest",
    "RequestContext",
    "get_header",
    "ErrorBody",
    "ValidationErrorItem",
    "DEFAULT_SECURITY_HEADERS",
    "RouteConfig",
    "RouteOptions",
]
