"""
Request context models.

Decouples the pipeline from the host transport's request object.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def get_header(headers: Dict[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup; stored headers keep their original case."""
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


class RawRequest(BaseModel):
    """
    Transport-neutral view of an incoming request before the body is parsed.
    """

    headers: Dict[str, str] = Field(default_factory=dict)
    method: str = ""
    path: str = ""
    body: Any = None
    query_params: Dict[str, Any] = Field(default_factory=dict)
    path_params: Dict[str, Any] = Field(default_factory=dict)

    def header(self, name: str) -> Optional[str]:
        return get_header(self.headers, name)

    @property
    def has_body(self) -> bool:
        return self.body is not None and self.body != "" and self.body != b""


class RequestContext(BaseModel):
    """
    Uniform per-request context passed to every step.

    Path expressions see the camelCase aliases (`$.queryParameters.page`).
    """

    headers: Dict[str, str] = Field(default_factory=dict)
    method: str = ""
    path: str = ""
    body: Any = None
    query_parameters: Dict[str, Any] = Field(default_factory=dict, alias="queryParameters")
    path_parameters: Dict[str, Any] = Field(default_factory=dict, alias="pathParameters")
    request_id: str = Field(..., alias="requestId")

    model_config = ConfigDict(populate_by_name=True)

    def header(self, name: str) -> Optional[str]:
        return get_header(self.headers, name)

    def to_reflection_source(self) -> Dict[str, Any]:
        """Dict form used as the root (`$`) of query reflector expressions."""
        return self.model_dump(by_alias=True)
