"""
graphweave - GraphQL schema stitching and query delegation

Merges independently defined GraphQL schemas into a single schema and
answers queries against it by rewriting, delegating and re-assembling
sub-queries against the source schemas.
"""

__version__ = "0.1.0"
__author__ = "Graphweave Team"

from graphweave.core.config import settings
from graphweave.core.logging import get_logger
from graphweave.federation import (
    Subschema,
    delegate_to_schema,
    merge_schemas,
    transform_schema,
)
from graphweave.transforms import (
    ExtractField,
    FilterToSchema,
    FilterTypes,
    RenameTypes,
    ReplaceFieldWithFragment,
    Transform,
    WrapQuery,
)

logger = get_logger(__name__)

__all__ = [
    "settings",
    "logger",
    "__version__",
    "Subschema",
    "delegate_to_schema",
    "merge_schemas",
    "transform_schema",
    "ExtractField",
    "FilterToSchema",
    "FilterTypes",
    "RenameTypes",
    "ReplaceFieldWithFragment",
    "Transform",
    "WrapQuery",
]
