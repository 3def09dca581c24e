"""
Request context normalization.

Turns whatever the host transport hands in (a Starlette Request, an API
Gateway v1 proxy event, or an express-like mapping) into a RawRequest, then
into the RequestContext the steps see.
"""

import base64
import json
import logging
from collections.abc import Mapping
from typing import Any

from fastapi import Request

from services.common.core.request_context import generate_request_id
from services.pipeline.models.aws_v1 import APIGatewayProxyEvent
from services.pipeline.models.context import RawRequest, RequestContext

from .exceptions import InvalidJsonBodyError

logger = logging.getLogger("pipeline.normalizer")


class RequestContextNormalizer:
    async def read(self, raw_request: Any) -> RawRequest:
        """
        Read headers, method, path, raw body and parameters from the transport object.
        """
        if isinstance(raw_request, Request):
            return await self._from_starlette(raw_request)
        if isinstance(raw_request, Mapping):
            if "httpMethod" in raw_request:
                return self._from_proxy_event(raw_request)
            return self._from_mapping(raw_request)
        raise TypeError(f"Unsupported request object: {type(raw_request).__name__}")

    async def _from_starlette(self, request: Request) -> RawRequest:
        body = await request.body()
        return RawRequest(
            headers=dict(request.headers),
            method=request.method,
            path=request.url.path,
            body=body or None,
            query_params=dict(request.query_params),
            path_params=dict(request.path_params),
        )

    def _from_proxy_event(self, event: Mapping) -> RawRequest:
        proxy = APIGatewayProxyEvent.model_validate(event)
        body = proxy.body
        if body and proxy.isBase64Encoded:
            body = base64.b64decode(body)
        return RawRequest(
            headers=proxy.headers or {},
            method=proxy.httpMethod,
            path=proxy.path,
            body=body,
            query_params=proxy.queryStringParameters or {},
            path_params=proxy.pathParameters or {},
        )

    def _from_mapping(self, event: Mapping) -> RawRequest:
        return RawRequest(
            headers=dict(event.get("headers") or {}),
            method=event.get("method") or "",
            path=event.get("path") or "",
            body=event.get("body"),
            query_params=dict(event.get("query") or event.get("queryStringParameters") or {}),
            path_params=dict(event.get("params") or event.get("pathParameters") or {}),
        )

    def parse_body(self, raw: RawRequest) -> Any:
        """
        Parse the raw body as JSON. Raw bytes are decoded as UTF-8 first;
        already-decoded bodies pass through.

        Raises:
            InvalidJsonBodyError: the body is not valid UTF-8 JSON
        """
        if not raw.has_body:
            return None
        if not isinstance(raw.body, (str, bytes, bytearray)):
            return raw.body
        try:
            text = raw.body.decode("utf-8") if isinstance(raw.body, (bytes, bytearray)) else raw.body
            return json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(
                "Request body is not valid JSON",
                extra={"error": str(e), "path": raw.path, "method": raw.method},
            )
            raise InvalidJsonBodyError() from e

    def build_context(self, raw: RawRequest) -> RequestContext:
        """
        Build the per-request context with a freshly generated Request ID.
        """
        return RequestContext(
            headers=raw.headers,
            method=raw.method,
            path=raw.path,
            body=self.parse_body(raw),
            query_parameters=raw.query_params,
            path_parameters=raw.path_params,
            request_id=generate_request_id(),
        )

    async def normalize(self, raw_request: Any) -> RequestContext:
        return self.build_context(await self.read(raw_request))
