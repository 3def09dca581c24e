import base64
import json
import uuid

import pytest
from fastapi import Request

from services.common.core import request_context
from services.pipeline.core.exceptions import InvalidJsonBodyError
from services.pipeline.core.normalizer import RequestContextNormalizer


@pytest.fixture
def normalizer():
    return RequestContextNormalizer()


@pytest.mark.asyncio
async def test_normalize_proxy_event(normalizer, make_event):
    event = make_event(
        body={"email": "test@example.com"},
        headers={"Content-Type": "application/json", "Origin": "https://example.com"},
        queryStringParameters={"page": "1"},
        pathParameters={"id": "42"},
    )

    context = await normalizer.normalize(event)

    assert context.method == "POST"
    assert context.path == "/user"
    assert context.body == {"email": "test@example.com"}
    assert context.query_parameters == {"page": "1"}
    assert context.path_parameters == {"id": "42"}
    # Header case is preserved; lookups are case-insensitive.
    assert "Content-Type" in context.headers
    assert context.header("origin") == "https://example.com"
    assert str(uuid.UUID(context.request_id)) == context.request_id
    assert request_context.get_request_id() == context.request_id


@pytest.mark.asyncio
async def test_normalize_base64_proxy_event(normalizer, make_event):
    encoded = base64.b64encode(json.dumps({"a": 1}).encode("utf-8")).decode("ascii")
    event = make_event(body=encoded, isBase64Encoded=True)

    context = await normalizer.normalize(event)

    assert context.body == {"a": 1}


@pytest.mark.asyncio
async def test_normalize_express_style_mapping(normalizer):
    event = {
        "method": "PUT",
        "path": "/user/7",
        "headers": {"content-type": "application/json"},
        "body": '{"name": "Test"}',
        "query": {"verbose": "true"},
        "params": {"id": "7"},
    }

    context = await normalizer.normalize(event)

    assert context.method == "PUT"
    assert context.body == {"name": "Test"}
    assert context.query_parameters == {"verbose": "true"}
    assert context.path_parameters == {"id": "7"}


@pytest.mark.asyncio
async def test_normalize_starlette_request(normalizer):
    body = b'{"key": "value"}'
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/items/9",
        "query_string": b"foo=bar",
        "headers": [(b"content-type", b"application/json"), (b"origin", b"https://a.com")],
        "path_params": {"item_id": "9"},
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    context = await normalizer.normalize(Request(scope, receive))

    assert context.method == "POST"
    assert context.path == "/items/9"
    assert context.body == {"key": "value"}
    assert context.query_parameters == {"foo": "bar"}
    assert context.path_parameters == {"item_id": "9"}
    assert context.header("Origin") == "https://a.com"


@pytest.mark.asyncio
async def test_empty_body_is_none(normalizer, make_event):
    context = await normalizer.normalize(make_event(body=""))

    assert context.body is None


@pytest.mark.asyncio
async def test_invalid_json_body_raises(normalizer, make_event):
    with pytest.raises(InvalidJsonBodyError):
        await normalizer.normalize(make_event(body="{not json"))


@pytest.mark.asyncio
async def test_invalid_utf8_starlette_body_raises_invalid_json(normalizer):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/items",
        "query_string": b"",
        "headers": [(b"content-type", b"application/json")],
    }

    async def receive():
        return {"type": "http.request", "body": b'{"name": "\xff\xfe"}', "more_body": False}

    raw = await normalizer.read(Request(scope, receive))

    with pytest.raises(InvalidJsonBodyError):
        normalizer.build_context(raw)


@pytest.mark.asyncio
async def test_invalid_utf8_base64_body_raises_invalid_json(normalizer, make_event):
    encoded = base64.b64encode(b"\xff\xfe\xfd").decode("ascii")
    event = make_event(body=encoded, isBase64Encoded=True)

    with pytest.raises(InvalidJsonBodyError):
        await normalizer.normalize(event)


@pytest.mark.asyncio
async def test_each_request_gets_a_new_request_id(normalizer, make_event):
    first = await normalizer.normalize(make_event())
    second = await normalizer.normalize(make_event())

    assert first.request_id != second.request_id


@pytest.mark.asyncio
async def test_unsupported_request_object(normalizer):
    with pytest.raises(TypeError):
        await normalizer.read(object())
