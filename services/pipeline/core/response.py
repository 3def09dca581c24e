"""
Response assembly.

Serializes results and errors, applies the size ceiling on success bodies and
writes status, headers and body through a ResponseWriter.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional

from pydantic import BaseModel

from services.pipeline.models.errors import ErrorBody
from services.pipeline.models.route import RouteOptions

from .exceptions import PayloadTooLargeError, SchemaValidationError, classify_error
from .origin import resolve_allowed_origin
from .writer import ResponseWriter

logger = logging.getLogger("pipeline.response")

UNEXPECTED_ERROR_MESSAGE = "Unexpected error occurred"


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(value: Any) -> str:
    """Compact JSON text; None becomes the literal "null"."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_json_default)


def utc_timestamp() -> str:
    """ISO8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ResponseAssembler:
    def __init__(self, options: RouteOptions):
        self.options = options

    def build_headers(self, request_origin: Optional[str]) -> Dict[str, str]:
        """Static headers plus content type and CORS origin allowance."""
        return {
            **self.options.headers,
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": resolve_allowed_origin(
                request_origin, self.options.cors_origin_whitelist
            ),
        }

    def _write(
        self, writer: ResponseWriter, status_code: int, request_origin: Optional[str], body: str
    ) -> None:
        writer.set_headers(self.build_headers(request_origin))
        writer.status(status_code)
        writer.send(body)

    def send_success(self, writer: ResponseWriter, value: Any, request_origin: Optional[str]) -> int:
        """
        Write a 200 response for the chain's final value.

        Raises:
            PayloadTooLargeError: serialized body exceeds max_response_size (nothing is written)
        """
        body = to_json(value)
        size = len(body.encode("utf-8"))
        if size > self.options.max_response_size:
            logger.warning(
                "Response payload too large",
                extra={"size": size, "max_response_size": self.options.max_response_size},
            )
            raise PayloadTooLargeError()

        self._write(writer, 200, request_origin, body)
        return 200

    def build_error_body(self, error: Any, status_code: int) -> ErrorBody:
        validation_errors = None
        if isinstance(error, SchemaValidationError):
            validation_errors = error.errors

        return ErrorBody(
            message=str(error) if isinstance(error, Exception) else UNEXPECTED_ERROR_MESSAGE,
            code=status_code,
            requestId=str(uuid.uuid4()),
            timestamp=utc_timestamp(),
            validationErrors=validation_errors,
        )

    def send_error(
        self,
        writer: ResponseWriter,
        error: Any,
        request_origin: Optional[str],
        mapping: Optional[Mapping[int, Iterable[Any]]] = None,
    ) -> int:
        """
        Write the error envelope with the classified status code.

        Error bodies are never size-checked.
        """
        status_code = classify_error(error, mapping)
        body = self.build_error_body(error, status_code)
        self._write(writer, status_code, request_origin, to_json(body.model_dump(exclude_none=True)))
        return status_code
