"""
Transport write side.

The pipeline only needs three operations on a response: set headers, set a
status code and send a text body.
"""

from typing import Any, Dict, Mapping, Optional, Protocol

from fastapi.responses import Response

from services.pipeline.models.aws_v1 import APIGatewayProxyResult


class ResponseWriter(Protocol):
    def set_headers(self, headers: Mapping[str, str]) -> None: ...

    def status(self, status_code: int) -> None: ...

    def send(self, body: str) -> None: ...


class StarletteResponseWriter:
    """Collects the written response and turns it into a Starlette Response."""

    def __init__(self):
        self.headers: Dict[str, str] = {}
        self.status_code = 200
        self.body: Optional[str] = None

    def set_headers(self, headers: Mapping[str, str]) -> None:
        self.headers.update(headers)

    def status(self, status_code: int) -> None:
        self.status_code = status_code

    def send(self, body: str) -> None:
        self.body = body

    def to_response(self) -> Response:
        return Response(content=self.body or "", status_code=self.status_code, headers=self.headers)


class ProxyResultWriter:
    """Collects the written response as an API Gateway v1 proxy result."""

    def __init__(self):
        self.result = APIGatewayProxyResult()

    def set_headers(self, headers: Mapping[str, str]) -> None:
        self.result.headers.update(headers)

    def status(self, status_code: int) -> None:
        self.result.statusCode = status_code

    def send(self, body: str) -> None:
        self.result.body = body

    def to_dict(self) -> Dict[str, Any]:
        return self.result.model_dump()
