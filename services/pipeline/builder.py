"""
Route handler builder.

build_route_handler(config, options) returns a RouteHandler that runs the
whole pipeline for one request:

    normalize → content-type check → body schema → reflectors → handler chain → response

Every error raised along the way is converted to the error envelope exactly
once; nothing propagates past the handler.

Call setup_logging() once at process start, before registering routes, to
load the YAML logging config:

    setup_logging()
    users = build_route_handler(RouteConfig(handlers=[create_user]))
    app.add_api_route("/users", users.endpoint, methods=["POST"])
"""

import logging
import time
from typing import Any, Dict, Mapping, Optional

from fastapi import Request
from fastapi.responses import Response

from services.common.core.request_context import clear_request_id

from .config import config as pipeline_config
from .core.exceptions import UnsupportedContentTypeError
from .core.executor import PipelineExecutor
from .core.logging_config import setup_logging
from .core.normalizer import RequestContextNormalizer
from .core.reflector import apply_initial_body_reflector, build_initial_query
from .core.response import ResponseAssembler
from .core.schema import SchemaEngine, SchemaValidator
from .core.writer import ProxyResultWriter, ResponseWriter, StarletteResponseWriter
from .models.context import RawRequest
from .models.route import RouteConfig, RouteOptions

logger = logging.getLogger("pipeline.handler")

# Methods with create/replace semantics must declare a JSON body.
BODY_METHODS = {"POST", "PUT"}
JSON_CONTENT_TYPE = "application/json"

__all__ = ["RouteHandler", "build_route_handler", "setup_logging"]


class RouteHandler:
    """
    One registered route: immutable configuration plus the pipeline components.
    """

    def __init__(
        self,
        route_config: RouteConfig,
        options: Optional[RouteOptions] = None,
        engine: Optional[SchemaEngine] = None,
    ):
        self.config = route_config
        self.options = options or RouteOptions()
        self.normalizer = RequestContextNormalizer()
        self.schema_validator = SchemaValidator(engine)
        self.executor = PipelineExecutor()
        self.assembler = ResponseAssembler(self.options)
        self.timeout_ms = route_config.timeout_ms or pipeline_config.DEFAULT_TIMEOUT_MS

        # Fail at registration time on an invalid schema.
        if route_config.body_schema is not None:
            self.schema_validator.engine.compile(route_config.body_schema)

    def _check_content_type(self, raw: RawRequest) -> None:
        if raw.method.upper() not in BODY_METHODS:
            return
        content_type = raw.header("content-type") or ""
        if JSON_CONTENT_TYPE not in content_type.lower():
            raise UnsupportedContentTypeError()

    async def _process(self, raw: RawRequest, writer: ResponseWriter) -> int:
        self._check_content_type(raw)

        context = self.normalizer.build_context(raw)
        if raw.has_body and self.config.body_schema is not None:
            self.schema_validator.validate(self.config.body_schema, context.body)

        apply_initial_body_reflector(self.config, context)
        initial_query = build_initial_query(self.config, context)

        result = await self.executor.run(
            initial_query, context, self.config.handlers, timeout_ms=self.timeout_ms
        )
        return self.assembler.send_success(writer, result, raw.header("origin"))

    def _fail(self, writer: ResponseWriter, exc: Exception, raw: Optional[RawRequest]) -> int:
        origin = raw.header("origin") if raw is not None else None
        status_code = self.assembler.send_error(
            writer, exc, origin, self.config.error_to_status_code_mapping
        )
        if status_code >= 500:
            logger.error(f"Request failed: {exc}", exc_info=exc, extra={"status": status_code})
        else:
            logger.warning(f"Request rejected: {exc}", extra={"status": status_code})
        return status_code

    async def __call__(self, raw_request: Any, writer: ResponseWriter) -> None:
        """
        Run the pipeline for one request and write exactly one response.
        """
        start_time = time.perf_counter()
        raw: Optional[RawRequest] = None

        try:
            raw = await self.normalizer.read(raw_request)
            status_code = await self._process(raw, writer)
        except Exception as exc:
            status_code = self._fail(writer, exc, raw)

        try:
            logger.info(
                f"{raw.method if raw else '-'} {raw.path if raw else '-'} {status_code}",
                extra={
                    "method": raw.method if raw else None,
                    "path": raw.path if raw else None,
                    "status": status_code,
                    "latency_ms": round((time.perf_counter() - start_time) * 1000, 2),
                },
            )
        finally:
            clear_request_id()

    async def endpoint(self, request: Request) -> Response:
        """FastAPI endpoint: app.add_api_route(path, handler.endpoint, methods=[...])."""
        writer = StarletteResponseWriter()
        await self(request, writer)
        return writer.to_response()

    async def invoke(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        """Run against an API Gateway v1 proxy event and return the proxy result."""
        writer = ProxyResultWriter()
        await self(event, writer)
        return writer.to_dict()


def build_route_handler(
    route_config: RouteConfig,
    options: Optional[RouteOptions] = None,
    engine: Optional[SchemaEngine] = None,
) -> RouteHandler:
    """
    Build the request handler for one route.

    Args:
        route_config: steps, schema, reflectors, timeout and error mapping
        options: response size ceiling, static headers and CORS whitelist
        engine: shared SchemaEngine (a private one is created when omitted)

    Logging is configured separately; call setup_logging() once at startup.
    """
    return RouteHandler(route_config, options, engine)
