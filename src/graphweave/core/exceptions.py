"""
Exception taxonomy for graphweave.

Only construction-time problems raise out of the library. Fields a subschema
cannot serve are pruned silently, and errors produced while executing a
delegated request travel inside the result as GraphQL errors.
"""


class GraphweaveError(Exception):
    """Base class for all graphweave errors."""


class SchemaError(GraphweaveError):
    """Raised when a schema cannot be merged, transformed or built."""


class TransformConfigurationError(GraphweaveError):
    """Raised when a transform is constructed with an unusable configuration."""
