"""
Rename the named types of a schema and translate requests and results accordingly.
"""

from typing import Any, Callable, Dict, Mapping, Optional

from graphql import (
    DocumentNode,
    GraphQLSchema,
    NamedTypeNode,
    TypeDefinitionNode,
    TypeExtensionNode,
    Visitor,
    build_ast_schema,
    is_introspection_type,
    is_specified_scalar_type,
    visit,
)

from graphweave.core.exceptions import SchemaError
from graphweave.core.logging import get_logger
from graphweave.transforms.ast_utils import name_node, replace_node, schema_to_document
from graphweave.transforms.base import Request, Response, Transform

logger = get_logger(__name__)

RenameFn = Callable[[str], Optional[str]]


class _TypeNameRewriter(Visitor):
    """Rewrites type definition names and every reference to them."""

    def __init__(self, names: Mapping[str, str]):
        super().__init__()
        self.names = names

    def enter(self, node, *_args):
        if isinstance(node, (NamedTypeNode, TypeDefinitionNode, TypeExtensionNode)):
            new_name = self.names.get(node.name.value)
            if new_name is not None:
                return replace_node(node, name=name_node(new_name))
        return None


def rename_in_document(document: DocumentNode, names: Mapping[str, str]) -> DocumentNode:
    if not names:
        return document
    return visit(document, _TypeNameRewriter(names))


def rename_typenames(value: Any, names: Mapping[str, str]) -> Any:
    """Rewrite ``__typename`` values anywhere in a result tree."""
    if isinstance(value, list):
        return [rename_typenames(item, names) for item in value]
    if isinstance(value, Mapping):
        renamed = {}
        for key, item in value.items():
            if key == "__typename" and isinstance(item, str):
                renamed[key] = names.get(item, item)
            else:
                renamed[key] = rename_typenames(item, names)
        return renamed
    return value


class RenameTypes(Transform):
    """
    Rename types with ``rename_fn``; a falsy return keeps the original name.

    Root operation types, built-in scalars and introspection types are never
    renamed. The name maps are filled in by ``transform_schema``, which must
    run before requests are translated.
    """

    def __init__(self, rename_fn: RenameFn):
        self.rename_fn = rename_fn
        self.renamed: Dict[str, str] = {}
        self.reverse: Dict[str, str] = {}

    def transform_schema(self, schema: GraphQLSchema) -> GraphQLSchema:
        roots = {
            root.name
            for root in (schema.query_type, schema.mutation_type, schema.subscription_type)
            if root is not None
        }

        renamed: Dict[str, str] = {}
        for name, type_ in schema.type_map.items():
            if (
                name in roots
                or is_specified_scalar_type(type_)
                or is_introspection_type(type_)
            ):
                continue
            new_name = self.rename_fn(name)
            if new_name and new_name != name:
                renamed[name] = new_name

        final_names: Dict[str, str] = {}
        for name in schema.type_map:
            final_name = renamed.get(name, name)
            if final_name in final_names:
                raise SchemaError(
                    f"Renaming types would give both '{final_names[final_name]}' and "
                    f"'{name}' the name '{final_name}'"
                )
            final_names[final_name] = name

        self.renamed = renamed
        self.reverse = {new: old for old, new in renamed.items()}
        logger.debug("Renamed types", count=len(renamed))
        return build_ast_schema(rename_in_document(schema_to_document(schema), renamed))

    def transform_request(self, request: Request) -> Request:
        if not self.reverse:
            return request
        return request.with_document(rename_in_document(request.document, self.reverse))

    def transform_response(self, response: Response, request: Request) -> Response:
        if not self.renamed or response.data is None:
            return response
        return response.with_data(rename_typenames(response.data, self.renamed))
