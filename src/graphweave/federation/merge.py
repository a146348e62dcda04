"""
Merging several schemas into one schema that proxies to them.

Every subschema contributes its (transformed) type definitions. Types with
the same name are merged field by field, root fields are collected into the
canonical Query, Mutation and Subscription types, and each root field
delegates to the subschema that defined it last. Fields of other object
types resolve from the delegated results with ``default_merged_resolver``.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from graphql import (
    DirectiveDefinitionNode,
    DocumentNode,
    EnumTypeDefinitionNode,
    FieldDefinitionNode,
    GraphQLError,
    GraphQLInterfaceType,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLUnionType,
    InputObjectTypeDefinitionNode,
    InputValueDefinitionNode,
    InterfaceTypeDefinitionNode,
    ObjectTypeDefinitionNode,
    OperationType,
    SchemaDefinitionNode,
    SchemaExtensionNode,
    TypeDefinitionNode,
    TypeExtensionNode,
    UnionTypeDefinitionNode,
    build_ast_schema,
    extend_schema,
    is_introspection_type,
    print_ast,
)

from graphweave.core.exceptions import SchemaError
from graphweave.core.logging import get_logger, log_performance
from graphweave.federation.delegate import MERGE_INFO_KEY, MergeInfo, delegate_to_schema
from graphweave.federation.resolvers import default_merged_resolver, resolve_from_parent_typename
from graphweave.federation.subschema import Subschema, SubschemaLike, as_subschema
from graphweave.transforms.ast_utils import concatenate_type_defs, name_node, replace_node, schema_to_document
from graphweave.transforms.base import Transform
from graphweave.transforms.replace_field_with_fragment import FieldFragment, build_fragment_map

logger = get_logger(__name__)

ROOT_TYPE_NAMES = {
    OperationType.QUERY: "Query",
    OperationType.MUTATION: "Mutation",
    OperationType.SUBSCRIPTION: "Subscription",
}

SchemaEntry = Union[SubschemaLike, str, DocumentNode]
ResolverMap = Mapping[str, Mapping[str, Any]]


def _signature(node: Union[FieldDefinitionNode, InputValueDefinitionNode]) -> str:
    """Printable type signature of a field, including its arguments."""
    signature = print_ast(node.type)
    arguments = sorted(
        (argument.name.value, print_ast(argument.type))
        for argument in getattr(node, "arguments", None) or ()
    )
    if arguments:
        signature += "(" + ", ".join(f"{name}: {type_}" for name, type_ in arguments) + ")"
    return signature


def _merge_fields(type_name: str, existing: Sequence, incoming: Sequence) -> Tuple:
    fields = {field.name.value: field for field in existing or ()}
    for field in incoming or ():
        name = field.name.value
        current = fields.get(name)
        if current is not None and _signature(current) != _signature(field):
            raise SchemaError(
                f"Conflicting definitions of field '{type_name}.{name}': "
                f"{_signature(current)} and {_signature(field)}"
            )
        fields[name] = field
    return tuple(fields.values())


def _merge_named(existing: Sequence, incoming: Sequence) -> Tuple:
    merged = {node.name.value: node for node in existing or ()}
    merged.update((node.name.value, node) for node in incoming or ())
    return tuple(merged.values())


def merge_type_definitions(existing: TypeDefinitionNode, incoming: TypeDefinitionNode) -> TypeDefinitionNode:
    """
    Merge two definitions of the same named type.

    Fields accumulate; a field defined twice must keep its signature and the
    later definition wins. Enum values and union members are unioned, scalars
    are replaced.

    Raises:
        SchemaError: If the kinds or field signatures disagree
    """
    name = existing.name.value
    if type(existing) is not type(incoming):
        raise SchemaError(
            f"Type '{name}' is defined both as {existing.kind} and as {incoming.kind}"
        )
    if isinstance(existing, (ObjectTypeDefinitionNode, InterfaceTypeDefinitionNode)):
        return replace_node(
            existing,
            fields=_merge_fields(name, existing.fields, incoming.fields),
            interfaces=_merge_named(existing.interfaces, incoming.interfaces),
        )
    if isinstance(existing, InputObjectTypeDefinitionNode):
        return replace_node(existing, fields=_merge_fields(name, existing.fields, incoming.fields))
    if isinstance(existing, EnumTypeDefinitionNode):
        return replace_node(existing, values=_merge_named(existing.values, incoming.values))
    if isinstance(existing, UnionTypeDefinitionNode):
        return replace_node(existing, types=_merge_named(existing.types, incoming.types))
    return incoming


class _TypeCollector:
    """Accumulates definitions from subschemas and extra type definitions."""

    def __init__(self) -> None:
        self.types: Dict[str, TypeDefinitionNode] = {}
        self.directives: Dict[str, DirectiveDefinitionNode] = {}
        self.root_fields: Dict[OperationType, Dict[str, FieldDefinitionNode]] = {
            kind: {} for kind in ROOT_TYPE_NAMES
        }
        self.owners: Dict[Tuple[OperationType, str], Subschema] = {}
        self.extensions: List = []

    def add_subschema(self, subschema: Subschema) -> None:
        schema = subschema.transformed_schema
        roots = {
            root.name: kind
            for kind, root in (
                (OperationType.QUERY, schema.query_type),
                (OperationType.MUTATION, schema.mutation_type),
                (OperationType.SUBSCRIPTION, schema.subscription_type),
            )
            if root is not None
        }
        document = schema_to_document(schema)
        for definition in document.definitions:
            if isinstance(definition, SchemaDefinitionNode):
                continue
            if isinstance(definition, DirectiveDefinitionNode):
                self.directives[definition.name.value] = definition
            elif definition.name.value in roots:
                self.add_root_fields(roots[definition.name.value], definition.fields, subschema)
            else:
                self.add_type(definition)
        logger.debug(
            "Collected subschema types",
            subschema=subschema.name,
            definitions=len(document.definitions),
        )

    def add_type_defs(self, document: DocumentNode) -> None:
        root_kinds = {name: kind for kind, name in ROOT_TYPE_NAMES.items()}
        for definition in document.definitions:
            if isinstance(definition, (TypeExtensionNode, SchemaExtensionNode)):
                self.extensions.append(definition)
            elif isinstance(definition, DirectiveDefinitionNode):
                self.directives[definition.name.value] = definition
            elif isinstance(definition, ObjectTypeDefinitionNode) and definition.name.value in root_kinds:
                self.add_root_fields(root_kinds[definition.name.value], definition.fields, None)
            elif isinstance(definition, TypeDefinitionNode):
                self.add_type(definition)
            else:
                raise SchemaError(f"Unsupported definition in type definitions: {definition.kind}")

    def add_root_fields(
        self,
        kind: OperationType,
        fields: Sequence[FieldDefinitionNode],
        owner: Optional[Subschema],
    ) -> None:
        for field in fields or ():
            name = field.name.value
            if name in self.root_fields[kind]:
                logger.debug("Root field redefined", operation=kind.value, field=name)
            self.root_fields[kind][name] = field
            if owner is not None:
                self.owners[(kind, name)] = owner
            else:
                self.owners.pop((kind, name), None)

    def add_type(self, definition: TypeDefinitionNode) -> None:
        name = definition.name.value
        existing = self.types.get(name)
        self.types[name] = (
            definition if existing is None else merge_type_definitions(existing, definition)
        )

    def build(self) -> GraphQLSchema:
        if not self.root_fields[OperationType.QUERY]:
            raise SchemaError("Merged schema has no query fields")
        roots = [
            ObjectTypeDefinitionNode(
                name=name_node(ROOT_TYPE_NAMES[kind]),
                interfaces=(),
                directives=(),
                fields=tuple(fields.values()),
            )
            for kind, fields in self.root_fields.items()
            if fields
        ]
        document = DocumentNode(
            definitions=(*self.directives.values(), *self.types.values(), *roots)
        )
        try:
            schema = build_ast_schema(document)
            if self.extensions:
                schema = extend_schema(schema, DocumentNode(definitions=tuple(self.extensions)))
        except (GraphQLError, TypeError) as e:
            raise SchemaError(f"Cannot build merged schema: {e}") from e
        return schema


def _delegating_resolver(subschema: Subschema, operation: OperationType, field_name: str):
    async def resolve(parent: Any, info, **args: Any) -> Any:
        return await delegate_to_schema(subschema, operation, field_name, args=args, info=info)

    resolve.__name__ = f"delegate_{field_name}"
    return resolve


def _attach_default_resolvers(
    schema: GraphQLSchema, owners: Mapping[Tuple[OperationType, str], Subschema]
) -> None:
    root_kinds = {
        root.name: kind
        for kind, root in (
            (OperationType.QUERY, schema.query_type),
            (OperationType.MUTATION, schema.mutation_type),
            (OperationType.SUBSCRIPTION, schema.subscription_type),
        )
        if root is not None
    }
    for type_ in schema.type_map.values():
        if is_introspection_type(type_):
            continue
        if isinstance(type_, GraphQLObjectType):
            kind = root_kinds.get(type_.name)
            for field_name, field in type_.fields.items():
                owner = owners.get((kind, field_name)) if kind is not None else None
                # Subscription fields are carried into the type system but not proxied
                if owner is not None and kind != OperationType.SUBSCRIPTION:
                    field.resolve = _delegating_resolver(owner, kind, field_name)
                else:
                    field.resolve = default_merged_resolver
        elif isinstance(type_, (GraphQLInterfaceType, GraphQLUnionType)):
            type_.resolve_type = resolve_from_parent_typename


def _apply_resolvers(
    schema: GraphQLSchema, resolvers: ResolverMap, fragments: List[FieldFragment]
) -> None:
    """
    Install a resolver map on the merged schema.

    Field entries are either resolver callables or mappings with a
    ``resolve`` callable and/or a ``fragment`` naming the data the field
    needs from its parent. Abstract types accept ``__resolve_type``.
    """
    for type_name, entries in resolvers.items():
        type_ = schema.get_type(type_name)
        if type_ is None:
            raise SchemaError(f"Resolver map names unknown type '{type_name}'")
        for field_name, resolver in entries.items():
            if field_name == "__resolve_type":
                if not isinstance(type_, (GraphQLInterfaceType, GraphQLUnionType)):
                    raise SchemaError(f"'{type_name}' is not an abstract type")
                type_.resolve_type = resolver
                continue
            if not isinstance(type_, GraphQLObjectType):
                raise SchemaError(f"Cannot attach field resolvers to '{type_name}'")
            field = type_.fields.get(field_name)
            if field is None:
                raise SchemaError(f"Resolver map names unknown field '{type_name}.{field_name}'")
            if callable(resolver):
                field.resolve = resolver
            elif isinstance(resolver, Mapping):
                if "resolve" in resolver:
                    field.resolve = resolver["resolve"]
                if "fragment" in resolver:
                    fragments.append(FieldFragment(field_name, resolver["fragment"]))
            else:
                raise SchemaError(
                    f"Resolver for '{type_name}.{field_name}' must be callable or a mapping"
                )


@log_performance("Schema merge")
def merge_schemas(
    schemas: Sequence[SchemaEntry],
    resolvers: Optional[ResolverMap] = None,
) -> GraphQLSchema:
    """
    Merge subschemas and extra type definitions into one proxying schema.

    Args:
        schemas: Subschemas (``Subschema``, graphql-core or strawberry
            schemas) and type definition sources (SDL strings or documents)
        resolvers: Resolver map applied last, overriding generated resolvers

    Returns:
        The merged schema; its extensions hold the ``MergeInfo``

    Raises:
        SchemaError: If the inputs cannot be merged into a valid schema
    """
    collector = _TypeCollector()
    subschemas: List[Subschema] = []
    type_defs: List[Union[str, DocumentNode]] = []
    for entry in schemas:
        if isinstance(entry, (str, DocumentNode)):
            type_defs.append(entry)
            continue
        subschema = as_subschema(entry)
        subschemas.append(subschema)
        collector.add_subschema(subschema)
        type_defs.extend(subschema.type_defs)

    try:
        documents = concatenate_type_defs(type_defs)
    except GraphQLError as e:
        raise SchemaError(f"Invalid type definitions: {e.message}") from e
    for document in documents:
        collector.add_type_defs(document)

    schema = collector.build()
    _attach_default_resolvers(schema, collector.owners)

    fragments: List[FieldFragment] = []
    for subschema in subschemas:
        _apply_resolvers(schema, subschema.resolvers, fragments)
    _apply_resolvers(schema, resolvers or {}, fragments)

    merge_info = MergeInfo(subschemas=tuple(subschemas), fragments=build_fragment_map(fragments))
    schema.extensions = {**(schema.extensions or {}), MERGE_INFO_KEY: merge_info}
    logger.info(
        "Merged schema built",
        subschemas=len(subschemas),
        types=len(schema.type_map),
        fragments=len(fragments),
    )
    return schema


def transform_schema(schema: SubschemaLike, transforms: Sequence[Transform]) -> GraphQLSchema:
    """Proxy schema over a single subschema with ``transforms`` applied."""
    return merge_schemas([as_subschema(schema).with_transforms(transforms)])
