"""
HTTP gateway serving a (typically merged) schema.
"""

from graphweave.api.app import create_app

__all__ = ["create_app"]
