"""Tests for executing delegated requests locally and over HTTP."""

import httpx
import pytest
from graphql import build_schema, graphql, parse

from graphweave.api import create_app
from graphweave.core.exceptions import SchemaError
from graphweave.federation import (
    LocalExecutor,
    RemoteExecutor,
    StrawberryExecutor,
    Subschema,
    fetch_remote_schema,
    merge_schemas,
)
from graphweave.transforms.base import Request
from tests.sample_schemas import as_dict, booking_schema

GATEWAY_URL = "http://gateway/graphql"


@pytest.fixture
def gateway_client():
    app = create_app(merge_schemas([booking_schema]))
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://gateway")


@pytest.mark.asyncio
async def test_local_executor_reports_validation_errors():
    schema = build_schema("type Query { hello: String }")

    response = await LocalExecutor(schema)(Request(parse("{ goodbye }")))

    assert response.data is None
    assert len(response.errors) == 1
    assert "goodbye" in response.errors[0].message


@pytest.mark.asyncio
async def test_strawberry_executor_runs_requests():
    response = await StrawberryExecutor(booking_schema)(
        Request(parse("query ($id: ID!) { bookingById(id: $id) { id } }"), variables={"id": "b2"})
    )

    assert response.errors == ()
    assert response.data == {"bookingById": {"id": "b2"}}


@pytest.mark.asyncio
async def test_remote_executor_posts_graphql_over_http(gateway_client):
    async with gateway_client as client:
        executor = RemoteExecutor(GATEWAY_URL, client=client)

        response = await executor(
            Request(
                parse("query Lookup($id: ID!) { bookingById(id: $id) { id startTime } }"),
                variables={"id": "b1"},
                operation_name="Lookup",
            )
        )

    assert response.errors == ()
    assert response.data == {"bookingById": {"id": "b1", "startTime": "2016-05-04"}}


@pytest.mark.asyncio
async def test_remote_schema_can_be_merged_and_queried(gateway_client):
    async with gateway_client as client:
        remote = await Subschema.remote(GATEWAY_URL, client=client)
        schema = merge_schemas([remote])

        result = await graphql(schema, '{ customerById(id: "c2") { name bookings { id } } }')

    assert result.errors is None
    assert as_dict(result.data) == {"customerById": {"name": "Joe Doe", "bookings": [{"id": "b3"}]}}
    assert remote.name == GATEWAY_URL


@pytest.mark.asyncio
async def test_remote_errors_keep_their_paths():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "data": {"user": None},
                "errors": [{"message": "not found", "path": ["user"]}],
            },
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        response = await RemoteExecutor("http://remote/graphql", client=client)(
            Request(parse("{ user { id } }"))
        )

    assert response.data == {"user": None}
    assert response.errors[0].message == "not found"
    assert response.errors[0].path == ["user"]


@pytest.mark.asyncio
async def test_transport_failures_become_error_responses():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        response = await RemoteExecutor("http://remote/graphql", client=client)(
            Request(parse("{ user { id } }"))
        )

    assert response.data is None
    assert len(response.errors) == 1
    assert "connection refused" in response.errors[0].message


@pytest.mark.asyncio
async def test_invalid_bodies_become_error_responses():
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(502, text="Bad gateway"))
    ) as client:
        response = await RemoteExecutor("http://remote/graphql", client=client)(
            Request(parse("{ user { id } }"))
        )

    assert response.data is None
    assert "HTTP 502" in response.errors[0].message


@pytest.mark.asyncio
async def test_failed_introspection_raises_schema_error():
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"errors": [{"message": "introspection disabled"}]})
        )
    ) as client:
        with pytest.raises(SchemaError, match="introspection disabled"):
            await fetch_remote_schema("http://remote/graphql", client=client)
