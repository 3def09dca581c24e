"""
Core logic package.

Provides the pipeline components: normalization, schema validation,
reflection, chain execution and response assembly.
"""

from .exceptions import (
    InvalidJsonBodyError,
    PayloadTooLargeError,
    PipelineError,
    RequestTimeoutError,
    SchemaValidationError,
    UnsupportedContentTypeError,
    classify_error,
)
from .executor import PipelineExecutor
from .normalizer import RequestContextNormalizer
from .origin import resolve_allowed_origin
from .reflector import reflect
from .response import ResponseAssembler
from .schema import SchemaEngine, SchemaValidator

__all__ = [
    "InvalidJsonBodyError",
    "PayloadTooLargeError",
    "PipelineError",
    "RequestTimeoutError",
    "SchemaValidationError",
    "UnsupportedContentTypeError",
    "classify_error",
    "PipelineExecutor",
    "RequestContextNormalizer",
    "resolve_allowed_origin",
    "reflect",
    "ResponseAssembler",
    "SchemaEngine",
    "SchemaValidator",
]
