"""
Subschema descriptions used by delegation and merging.
"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Dict, Optional, Sequence, Union

import httpx
import strawberry
from graphql import DocumentNode, GraphQLSchema

from graphweave.federation.executors import (
    Executor,
    LocalExecutor,
    RemoteExecutor,
    StrawberryExecutor,
    fetch_remote_schema,
)
from graphweave.transforms.base import Transform, TransformPipeline


@dataclass(eq=False)
class Subschema:
    """
    A schema taking part in a merge, with the means to execute against it.

    Args:
        schema: Type system of the subschema
        executor: Runs requests against it (in-process by default)
        transforms: Applied to its schema when merging and to every request
            delegated to it
        name: Label used in logs
        type_defs: Extra type definitions (usually ``extend type`` blocks)
            added to the merged schema alongside this subschema
        resolvers: Resolver map for fields those type definitions add
    """

    schema: GraphQLSchema
    executor: Optional[Executor] = None
    transforms: Sequence[Transform] = ()
    name: Optional[str] = None
    type_defs: Sequence[Union[str, DocumentNode]] = ()
    resolvers: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.executor is None:
            self.executor = LocalExecutor(self.schema)
        self.transforms = tuple(self.transforms)
        if isinstance(self.type_defs, (str, DocumentNode)):
            self.type_defs = (self.type_defs,)
        if self.name is None and self.schema.query_type is not None:
            self.name = self.schema.query_type.name

    @cached_property
    def transformed_schema(self) -> GraphQLSchema:
        """The schema as the merged schema sees it, after schema transforms."""
        return TransformPipeline(self.transforms).transform_schema(self.schema)

    def with_transforms(self, transforms: Sequence[Transform]) -> "Subschema":
        """Copy of this subschema with ``transforms`` appended."""
        return Subschema(
            schema=self.schema,
            executor=self.executor,
            transforms=tuple(self.transforms) + tuple(transforms),
            name=self.name,
            type_defs=self.type_defs,
            resolvers=dict(self.resolvers),
        )

    @classmethod
    async def remote(
        cls,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        transforms: Sequence[Transform] = (),
    ) -> "Subschema":
        """Introspect a remote endpoint and delegate to it over HTTP."""
        schema = await fetch_remote_schema(url, headers=headers, client=client)
        return cls(
            schema=schema,
            executor=RemoteExecutor(url, headers=headers, client=client),
            transforms=transforms,
            name=url,
        )


SubschemaLike = Union[Subschema, GraphQLSchema, strawberry.Schema]


def as_subschema(entry: SubschemaLike) -> Subschema:
    """Wrap a graphql-core or strawberry schema into a ``Subschema``."""
    if isinstance(entry, Subschema):
        return entry
    if isinstance(entry, strawberry.Schema):
        return Subschema(entry._schema, executor=StrawberryExecutor(entry))
    if isinstance(entry, GraphQLSchema):
        return Subschema(entry)
    raise TypeError(f"Cannot delegate to {type(entry).__name__}")
