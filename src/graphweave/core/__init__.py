"""
Core infrastructure shared by every graphweave module: settings, logging and exceptions.
"""

from graphweave.core.config import Settings, get_settings, settings
from graphweave.core.exceptions import (
    GraphweaveError,
    SchemaError,
    TransformConfigurationError,
)
from graphweave.core.logging import LogContext, get_logger, log_performance

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "GraphweaveError",
    "SchemaError",
    "TransformConfigurationError",
    "LogContext",
    "get_logger",
    "log_performance",
]
