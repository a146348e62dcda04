"""
API routes for the graphweave gateway.
"""

from graphweave.api.routes.health import router as health_router
from graphweave.api.routes.query import router as query_router

__all__ = ["health_router", "query_router"]
