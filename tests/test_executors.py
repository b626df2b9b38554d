"""Tests for remote and local executors."""

import json

import httpx
import pytest
from graphql import parse

from stitchgraph.core.errors import TransportError
from stitchgraph.runtime.context import RequestContext
from stitchgraph.runtime.executors import LocalExecutor, RemoteExecutor


def make_executor(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteExecutor("http://origin.test/graphql", name="origin", client=client, **kwargs)


@pytest.mark.asyncio
async def test_remote_executor_posts_graphql_request():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"customer": {"name": "Ada"}}})

    executor = make_executor(handler)
    document = parse("query Lookup($id: ID!) { customer(id: $id) { name } }")
    result = await executor(document, {"id": "1"})

    assert result.ok
    assert result.data == {"customer": {"name": "Ada"}}
    assert captured["url"] == "http://origin.test/graphql"
    assert captured["body"]["variables"] == {"id": "1"}
    assert captured["body"]["operationName"] == "Lookup"
    assert "customer(id: $id)" in captured["body"]["query"]


@pytest.mark.asyncio
async def test_remote_executor_headers():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.update(request.headers)
        return httpx.Response(200, json={"data": {}})

    executor = make_executor(
        handler,
        headers={"X-Gateway": "stitchgraph"},
        forward_headers=["Authorization"],
    )
    context = RequestContext.from_headers({"Authorization": "Bearer t", "Cookie": "secret"})
    await executor(parse("{ __typename }"), context=context)

    assert captured["x-gateway"] == "stitchgraph"
    assert captured["authorization"] == "Bearer t"
    assert "cookie" not in captured


@pytest.mark.asyncio
async def test_remote_executor_returns_graph_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={
            "data": {"customer": None},
            "errors": [{"message": "Not allowed", "path": ["customer"]}],
        })

    result = await make_executor(handler)(parse("{ customer { name } }"))

    assert not result.ok
    assert result.data == {"customer": None}
    assert result.errors[0].message == "Not allowed"
    assert result.errors[0].path == ["customer"]


@pytest.mark.asyncio
async def test_remote_executor_connection_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(TransportError) as exc_info:
        await make_executor(handler)(parse("{ __typename }"))

    assert exc_info.value.service == "origin"
    assert exc_info.value.extensions["code"] == "TRANSPORT_ERROR"


@pytest.mark.asyncio
async def test_remote_executor_invalid_json():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, content=b"<html>Bad Gateway</html>")

    with pytest.raises(TransportError) as exc_info:
        await make_executor(handler)(parse("{ __typename }"))

    assert exc_info.value.status_code == 502
    assert exc_info.value.extensions["status"] == 502


@pytest.mark.asyncio
async def test_remote_executor_not_a_graphql_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"detail": "Not Found"})

    with pytest.raises(TransportError):
        await make_executor(handler)(parse("{ __typename }"))


@pytest.mark.asyncio
async def test_local_executor(catalog_origin):
    executor = LocalExecutor(catalog_origin.schema, root_value=catalog_origin.root_value)
    result = await executor(parse('{ customer(id: "1") { name address { city } } }'))

    assert result.ok
    assert result.data == {"customer": {"name": "Ada", "address": {"city": "London"}}}


@pytest.mark.asyncio
async def test_local_executor_field_error(catalog_origin):
    result = await catalog_origin.local_executor()(parse('{ customer(id: "2") { name email } }'))

    assert result.data == {"customer": {"name": "Bob", "email": None}}
    assert result.errors[0].message == "Email is hidden"
    assert result.errors[0].path == ["customer", "email"]


def test_request_context_headers_are_case_insensitive():
    context = RequestContext.from_headers({"Authorization": "Bearer t"}, user_id=7)

    assert context.get_header("authorization") == "Bearer t"
    assert context.get_header("AUTHORIZATION") == "Bearer t"
    assert context.get_header("cookie") is None
    assert context.extra == {"user_id": 7}
