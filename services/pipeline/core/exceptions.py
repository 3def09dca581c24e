"""
Pipeline exception classes and status code classification.

Errors are a tagged variant: every PipelineError subclass carries a `kind`
discriminant (its class name unless overridden). The classifier matches on
the discriminants along the error's class lineage, so a subclass keeps the
status code of any ancestor listed in the table.
"""

import logging
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger("pipeline.exceptions")


class PipelineError(Exception):
    """Base exception class for the request pipeline."""

    kind: str = "PipelineError"
    default_message: str = "Pipeline error"

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if "kind" not in cls.__dict__:
            cls.kind = cls.__name__

    def __init__(self, message: Optional[str] = None):
        super().__init__(message if message is not None else self.default_message)


class SchemaValidationError(PipelineError):
    """Raised when the request body violates the route's body schema."""

    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[Iterable[Dict[str, str]]] = None):
        self.errors = list(errors or [])
        super().__init__(message)


class RequestTimeoutError(PipelineError):
    """Raised when the handler chain exceeds the route's time budget."""

    default_message = "Request timeout"


class PayloadTooLargeError(PipelineError):
    """Raised when a serialized success body exceeds the size ceiling."""

    default_message = "Response payload too large"


class UnsupportedContentTypeError(PipelineError):
    """Raised when a body-bearing request does not declare a JSON content type."""

    default_message = "Content-Type must be application/json"


class InvalidJsonBodyError(PipelineError):
    """Raised when the request body cannot be parsed as JSON."""

    default_message = "Request body is not valid JSON"


DEFAULT_ERROR_STATUS_CODES: Dict[int, FrozenSet[str]] = {
    400: frozenset({SchemaValidationError.kind}),
    408: frozenset({RequestTimeoutError.kind}),
    413: frozenset({PayloadTooLargeError.kind}),
}

# Status used when nothing in the table matches.
FALLBACK_STATUS_CODE = 500


def _class_kind(cls: type) -> str:
    kind = cls.__dict__.get("kind")
    return kind if isinstance(kind, str) else cls.__name__


def kind_of(ref: Any) -> str:
    """Resolve a mapping entry (discriminant string or exception class) to a discriminant."""
    if isinstance(ref, str):
        return ref
    if isinstance(ref, type):
        return _class_kind(ref)
    kind = getattr(ref, "kind", None)
    if isinstance(kind, str):
        return kind
    return type(ref).__name__


def error_kinds(error: Any) -> Tuple[str, ...]:
    """
    Discriminants of a raised value, most specific first.

    Covers the error's own kind and that of every exception class in its MRO;
    empty when the value is not an exception.
    """
    if not isinstance(error, BaseException):
        return ()
    kinds = [error_kind(error)]
    for cls in type(error).__mro__:
        if issubclass(cls, BaseException):
            kind = _class_kind(cls)
            if kind not in kinds:
                kinds.append(kind)
    return tuple(kinds)


def error_kind(error: Any) -> Optional[str]:
    """Discriminant of a raised value, or None when it is not an exception."""
    if not isinstance(error, BaseException):
        return None
    kind = getattr(error, "__dict__", {}).get("kind")
    if isinstance(kind, str):
        return kind
    return _class_kind(type(error))


def build_status_table(
    custom_mapping: Optional[Mapping[int, Iterable[Any]]] = None,
) -> Dict[int, FrozenSet[str]]:
    """
    Merge a caller mapping over the defaults.

    A caller entry for an existing code replaces that code's kinds outright.
    """
    table = dict(DEFAULT_ERROR_STATUS_CODES)
    for code, kinds in (custom_mapping or {}).items():
        table[int(code)] = frozenset(kind_of(kind) for kind in kinds)
    return table


def classify_error(
    error: Any, custom_mapping: Optional[Mapping[int, Iterable[Any]]] = None
) -> int:
    """
    Map a raised value to an HTTP status code.

    Codes are tested in ascending order; the first code listing the error's
    kind, or the kind of one of its base classes, wins. Anything unmatched
    classifies as 500.
    """
    if not isinstance(error, Exception):
        return FALLBACK_STATUS_CODE

    lineage = error_kinds(error)
    for code, kinds in sorted(build_status_table(custom_mapping).items()):
        if not kinds.isdisjoint(lineage):
            return code

    return FALLBACK_STATUS_CODE
