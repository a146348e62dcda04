"""
Command line entry point running the graphweave gateway.

The remote endpoints listed in ``GRAPHWEAVE_REMOTE_ENDPOINTS`` are
introspected, merged into one schema and served with uvicorn.
"""

import asyncio
from typing import Optional, Sequence

import httpx
from graphql import GraphQLSchema

from graphweave.api import create_app
from graphweave.core.config import settings
from graphweave.core.logging import get_logger
from graphweave.federation import Subschema, merge_schemas

logger = get_logger(__name__)


async def build_gateway_schema(
    endpoints: Sequence[str], client: Optional[httpx.AsyncClient] = None
) -> Optional[GraphQLSchema]:
    """
    Merge the schemas of remote GraphQL endpoints.

    Returns:
        The merged schema, or None when no endpoint is configured
    """
    if not endpoints:
        return None
    subschemas = []
    for url in endpoints:
        subschemas.append(await Subschema.remote(url, client=client))
        logger.info("Loaded remote schema", url=url)
    return merge_schemas(subschemas)


def main() -> None:
    import uvicorn

    schema = asyncio.run(build_gateway_schema(settings.remote_endpoint_urls))
    uvicorn.run(
        create_app(schema),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
