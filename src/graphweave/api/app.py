"""
graphweave gateway application.

Serves a GraphQL schema, usually one produced by ``merge_schemas``, over
HTTP. The schema is handed to ``create_app`` and kept on ``app.state``;
the query route executes every request against it.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from graphql import GraphQLSchema

from graphweave.api.routes import health_router, query_router
from graphweave.core.config import settings
from graphweave.core.logging import get_logger

# Initialize logger for this module
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Log gateway startup and shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        Control back to FastAPI after startup
    """
    schema = app.state.schema
    logger.info(
        "Starting graphweave gateway",
        environment=settings.environment,
        graphql_path=settings.graphql_path,
        schema_loaded=schema is not None,
    )
    if schema is None:
        logger.warning("Gateway started without a schema")

    yield

    logger.info("graphweave gateway shut down complete")


def create_app(schema: Optional[GraphQLSchema] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        schema: Schema to serve; without one the query route answers 503

    Returns:
        FastAPI: Configured application ready to run
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="GraphQL schema stitching gateway",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.schema = schema

    # Configure CORS middleware for cross-origin requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(query_router)

    return app
