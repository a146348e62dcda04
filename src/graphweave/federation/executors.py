"""
Executors running a request against a subschema.

An executor is any async callable taking a ``Request`` (plus the caller's
context and root value) and returning a ``Response``. The delegation code
does not care whether the schema lives in-process or behind HTTP.
"""

import inspect
from typing import Any, Dict, Optional, Protocol

import httpx
import strawberry
from graphql import (
    GraphQLError,
    GraphQLSchema,
    build_client_schema,
    execute,
    get_introspection_query,
    parse,
    print_ast,
    validate,
)

from graphweave.core.config import settings
from graphweave.core.exceptions import SchemaError
from graphweave.core.logging import get_logger, log_performance
from graphweave.transforms.base import Request, Response

logger = get_logger(__name__)


class Executor(Protocol):
    async def __call__(
        self, request: Request, context: Any = None, root_value: Any = None
    ) -> Response:
        ...


class LocalExecutor:
    """Validate and execute requests in-process with graphql-core."""

    def __init__(self, schema: GraphQLSchema):
        self.schema = schema

    async def __call__(
        self, request: Request, context: Any = None, root_value: Any = None
    ) -> Response:
        errors = validate(self.schema, request.document)
        if errors:
            return Response(errors=tuple(errors))

        result = execute(
            self.schema,
            request.document,
            root_value=root_value,
            context_value=context,
            variable_values=request.variables,
            operation_name=request.operation_name,
        )
        if inspect.isawaitable(result):
            result = await result
        return Response.from_execution_result(result)


class StrawberryExecutor:
    """Execute requests through a strawberry schema, keeping its extensions and context handling."""

    def __init__(self, schema: strawberry.Schema):
        self.schema = schema

    async def __call__(
        self, request: Request, context: Any = None, root_value: Any = None
    ) -> Response:
        result = await self.schema.execute(
            print_ast(request.document),
            variable_values=request.variables,
            context_value=context,
            root_value=root_value,
            operation_name=request.operation_name,
        )
        return Response(data=result.data, errors=tuple(result.errors or ()))


class RemoteExecutor:
    """
    POST requests to a GraphQL endpoint over HTTP.

    Transport failures and unreadable bodies never raise; they come back as
    a response carrying a single error, like any other execution error.

    Args:
        url: GraphQL endpoint
        headers: Extra headers sent with every request
        timeout: Request timeout in seconds (defaults to settings)
        client: Shared client to use instead of one client per request
    """

    def __init__(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.headers = dict(headers or {})
        self.timeout = timeout if timeout is not None else settings.remote_timeout_seconds
        self.client = client

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        if self.client is not None:
            return await self.client.post(self.url, json=payload, headers=self.headers)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=payload, headers=self.headers)

    async def __call__(
        self, request: Request, context: Any = None, root_value: Any = None
    ) -> Response:
        payload = {
            "query": print_ast(request.document),
            "variables": request.variables or {},
            "operationName": request.operation_name,
        }
        try:
            http_response = await self._post(payload)
        except httpx.HTTPError as e:
            logger.error("Remote request failed", url=self.url, error=str(e))
            return Response(errors=(GraphQLError(f"Remote request to {self.url} failed: {e}"),))

        try:
            body = http_response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or ("data" not in body and "errors" not in body):
            logger.error(
                "Remote endpoint returned an invalid body",
                url=self.url,
                status_code=http_response.status_code,
            )
            return Response(
                errors=(
                    GraphQLError(
                        f"Remote endpoint {self.url} returned an invalid response "
                        f"(HTTP {http_response.status_code})"
                    ),
                )
            )
        return Response.from_json(body)


@log_performance("Remote schema introspection")
async def fetch_remote_schema(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> GraphQLSchema:
    """
    Build a schema from the introspection result of a remote endpoint.

    Raises:
        SchemaError: If the endpoint does not answer the introspection query
    """
    executor = RemoteExecutor(url, headers=headers, client=client)
    response = await executor(Request(parse(get_introspection_query())))
    if response.errors or not response.data:
        messages = "; ".join(error.message for error in response.errors) or "no data"
        raise SchemaError(f"Introspection of {url} failed: {messages}")
    return build_client_schema(response.data)
