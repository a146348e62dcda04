"""
GraphQL query execution endpoint.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Request
from graphql import graphql
from pydantic import BaseModel, ConfigDict, Field

from graphweave.core.config import settings
from graphweave.core.logging import LogContext, get_logger
from graphweave.transforms.base import Response

logger = get_logger(__name__)
router = APIRouter(tags=["graphql"])


class GraphQLRequest(BaseModel):
    """Request body of a GraphQL-over-HTTP POST."""

    model_config = ConfigDict(populate_by_name=True)

    query: str
    variables: Optional[Dict[str, Any]] = None
    operation_name: Optional[str] = Field(default=None, alias="operationName")


@router.post(settings.graphql_path)
async def execute_query(graphql_request: GraphQLRequest, request: Request) -> Dict[str, Any]:
    """
    Execute a GraphQL operation against the served schema.

    Errors raised while parsing, validating or executing the operation are
    part of the returned body; the endpoint itself only fails when no
    schema is loaded.
    """
    schema = getattr(request.app.state, "schema", None)
    if schema is None:
        raise HTTPException(status_code=503, detail="No schema loaded")

    with LogContext(operation_name=graphql_request.operation_name):
        result = await graphql(
            schema,
            graphql_request.query,
            variable_values=graphql_request.variables,
            operation_name=graphql_request.operation_name,
            context_value={"request": request},
        )
        if result.errors:
            logger.info(
                "Query returned errors",
                count=len(result.errors),
                first=result.errors[0].message,
            )

    return Response.from_execution_result(result).formatted
