"""
Schema merging and query delegation across subschemas.
"""

from graphweave.federation.delegate import (
    MergeInfo,
    create_request,
    delegate_to_schema,
    get_merge_info,
)
from graphweave.federation.errors import (
    CombinedError,
    PathError,
    ProxiedObject,
    annotate_with_errors,
)
from graphweave.federation.executors import (
    Executor,
    LocalExecutor,
    RemoteExecutor,
    StrawberryExecutor,
    fetch_remote_schema,
)
from graphweave.federation.merge import merge_schemas, transform_schema
from graphweave.federation.resolvers import default_merged_resolver, resolve_from_parent_typename
from graphweave.federation.subschema import Subschema, as_subschema

__all__ = [
    "CombinedError",
    "Executor",
    "LocalExecutor",
    "MergeInfo",
    "PathError",
    "ProxiedObject",
    "RemoteExecutor",
    "StrawberryExecutor",
    "Subschema",
    "annotate_with_errors",
    "as_subschema",
    "create_request",
    "default_merged_resolver",
    "delegate_to_schema",
    "fetch_remote_schema",
    "get_merge_info",
    "merge_schemas",
    "resolve_from_parent_typename",
    "transform_schema",
]
