import json
from typing import Any, Dict, Optional

import pytest


def _make_event(
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    method: str = "POST",
    path: str = "/user",
    **overrides: Any,
) -> Dict[str, Any]:
    """API Gateway v1 proxy event with a JSON content type by default."""
    event = {
        "resource": path,
        "path": path,
        "httpMethod": method,
        "headers": {"content-type": "application/json"} if headers is None else headers,
        "multiValueHeaders": {},
        "queryStringParameters": None,
        "pathParameters": None,
        "requestContext": {"requestId": "test-123", "stage": "test"},
        "body": json.dumps(body) if body is not None and not isinstance(body, str) else body,
        "isBase64Encoded": False,
    }
    event.update(overrides)
    return event


@pytest.fixture
def user_schema():
    return {
        "type": "object",
        "properties": {
            "email": {"type": "string", "format": "email"},
            "name": {"type": "string", "minLength": 2},
            "password": {"type": "string", "minLength": 8},
        },
        "required": ["email", "name", "password"],
        "additionalProperties": False,
    }


@pytest.fixture
def user_query_reflector():
    return {"data": {"email": "$['body']['email']", "name": "$['body']['name']"}}


@pytest.fixture
def make_event():
    return _make_event
