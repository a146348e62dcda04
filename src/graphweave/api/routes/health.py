"""
Health check API endpoints.

Endpoints:
- GET /: Root endpoint with basic service info
- GET /health: Whether a schema is loaded, with its type and root field counts
"""

from fastapi import APIRouter, Request

from graphweave.core.config import settings

# Create router for health-related endpoints
router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """
    Root endpoint providing basic service information.

    Returns:
        dict: Application name, version and where the schema is served
    """
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "graphql_path": settings.graphql_path,
        "status": "operational",
    }


@router.get("/health")
async def health(request: Request):
    """
    Report whether the gateway has a schema to serve.

    Returns:
        dict: Overall status plus schema statistics when a schema is loaded
    """
    schema = getattr(request.app.state, "schema", None)
    if schema is None:
        return {
            "status": "unavailable",
            "environment": settings.environment,
            "schema": None,
        }

    root_fields = {
        name: len(root.fields)
        for name, root in (
            ("query", schema.query_type),
            ("mutation", schema.mutation_type),
            ("subscription", schema.subscription_type),
        )
        if root is not None
    }
    return {
        "status": "healthy",
        "environment": settings.environment,
        "version": settings.app_version,
        "schema": {
            "types": len([name for name in schema.type_map if not name.startswith("__")]),
            "root_fields": root_fields,
        },
    }
