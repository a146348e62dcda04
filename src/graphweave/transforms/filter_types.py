"""
Project a schema onto the named types accepted by a predicate.
"""

from typing import Callable, List, Optional, Set

from graphql import (
    DirectiveDefinitionNode,
    DocumentNode,
    GraphQLNamedType,
    GraphQLSchema,
    InputObjectTypeDefinitionNode,
    InputValueDefinitionNode,
    InterfaceTypeDefinitionNode,
    NamedTypeNode,
    NonNullTypeNode,
    ObjectTypeDefinitionNode,
    SchemaDefinitionNode,
    TypeDefinitionNode,
    TypeNode,
    UnionTypeDefinitionNode,
    build_ast_schema,
    is_introspection_type,
)

from graphweave.core.exceptions import SchemaError
from graphweave.core.logging import get_logger
from graphweave.transforms.ast_utils import replace_node, schema_to_document
from graphweave.transforms.base import Transform

logger = get_logger(__name__)

TypePredicate = Callable[[GraphQLNamedType], bool]


def _named(type_node: TypeNode) -> str:
    while not isinstance(type_node, NamedTypeNode):
        type_node = type_node.type
    return type_node.name.value


def _required(value: InputValueDefinitionNode) -> bool:
    return isinstance(value.type, NonNullTypeNode) and value.default_value is None


def _prune_arguments(
    arguments, kept: Set[str]
) -> Optional[tuple]:
    """Drop optional arguments of excluded types; None if a required one is excluded."""
    result = []
    for argument in arguments or ():
        if _named(argument.type) in kept:
            result.append(argument)
        elif _required(argument):
            return None
    return tuple(result)


def _prune_definition(node, kept: Set[str]):
    if isinstance(node, TypeDefinitionNode) and node.name.value not in kept:
        return None

    if isinstance(node, (ObjectTypeDefinitionNode, InterfaceTypeDefinitionNode)):
        fields = []
        for field in node.fields or ():
            if _named(field.type) not in kept:
                continue
            arguments = _prune_arguments(field.arguments, kept)
            if arguments is None:
                continue
            if len(arguments) != len(field.arguments or ()):
                field = replace_node(field, arguments=arguments)
            fields.append(field)
        if not fields:
            return None
        interfaces = tuple(i for i in node.interfaces or () if i.name.value in kept)
        return replace_node(node, fields=tuple(fields), interfaces=interfaces)

    if isinstance(node, UnionTypeDefinitionNode):
        members = tuple(member for member in node.types or () if member.name.value in kept)
        return replace_node(node, types=members) if members else None

    if isinstance(node, InputObjectTypeDefinitionNode):
        fields = _prune_arguments(node.fields, kept)
        return replace_node(node, fields=fields) if fields else None

    if isinstance(node, DirectiveDefinitionNode):
        arguments = _prune_arguments(node.arguments, kept)
        return replace_node(node, arguments=arguments) if arguments is not None else None

    if isinstance(node, SchemaDefinitionNode):
        operation_types = tuple(
            operation
            for operation in node.operation_types
            if operation.type.name.value in kept
        )
        return replace_node(node, operation_types=operation_types)

    # Scalars and enums reference no other types
    return node


def filter_schema_document(document: DocumentNode, kept: Set[str]) -> DocumentNode:
    """
    Prune ``document`` to the ``kept`` type names, repeating until nothing changes.

    Dropping a field can leave its type without fields, which drops that
    type and in turn every field referencing it.
    """
    kept = set(kept)
    definitions: List = list(document.definitions)
    while True:
        pruned = []
        emptied = set()
        for definition in definitions:
            result = _prune_definition(definition, kept)
            if result is None:
                if isinstance(definition, TypeDefinitionNode) and definition.name.value in kept:
                    emptied.add(definition.name.value)
                continue
            pruned.append(result)
        definitions = pruned
        if not emptied:
            break
        kept -= emptied
    return replace_node(document, definitions=tuple(definitions))


class FilterTypes(Transform):
    """
    Keep only the named types for which ``predicate`` holds.

    Fields, arguments, interfaces and union members referring to removed
    types are pruned as well. Built-in scalars are subject to the predicate
    like any other type; introspection types always stay.
    """

    def __init__(self, predicate: TypePredicate):
        self.predicate = predicate

    def transform_schema(self, schema: GraphQLSchema) -> GraphQLSchema:
        kept = {
            name
            for name, type_ in schema.type_map.items()
            if not is_introspection_type(type_) and self.predicate(type_)
        }
        document = filter_schema_document(schema_to_document(schema), kept)

        remaining = {
            definition.name.value
            for definition in document.definitions
            if isinstance(definition, TypeDefinitionNode)
        }
        if schema.query_type is None or schema.query_type.name not in remaining:
            raise SchemaError("FilterTypes removed the query root type")

        logger.debug("Filtered types", kept=sorted(remaining))
        return build_ast_schema(document)
