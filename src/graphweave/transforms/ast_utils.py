"""
Small helpers for building and inspecting graphql-core AST nodes.

graphql-core nodes are treated as immutable throughout graphweave: every
rewrite goes through ``replace_node`` and produces a fresh node.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple, TypeVar, Union

from graphql import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLSyntaxError,
    GraphQLType,
    InlineFragmentNode,
    ListTypeNode,
    NamedTypeNode,
    NameNode,
    Node,
    NonNullTypeNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    TypeNode,
    Visitor,
    parse,
    print_schema,
    visit,
)

from graphweave.core.exceptions import TransformConfigurationError

N = TypeVar("N", bound=Node)


def replace_node(node: N, **changes: Any) -> N:
    """Return a new node of the same kind with the given attributes replaced.

    Nodes are rebuilt through their constructor, never mutated, so frozen
    nodes are handled the same way as plain ones.
    """
    unknown = set(changes) - set(node.keys)
    if unknown:
        raise TypeError(f"{type(node).__name__} has no attributes {sorted(unknown)}")
    attributes = {key: getattr(node, key, None) for key in node.keys}
    attributes.update(changes)
    return type(node)(**attributes)


def name_node(value: str) -> NameNode:
    return NameNode(value=value)


def field_node(name: str, selection_set: Optional[SelectionSetNode] = None) -> FieldNode:
    return FieldNode(
        name=name_node(name),
        arguments=(),
        directives=(),
        selection_set=selection_set,
    )


def response_key(node: FieldNode) -> str:
    """Key under which a field's value appears in the result."""
    return node.alias.value if node.alias else node.name.value


class _ReferenceCollector(Visitor):
    """Collects fragment spreads and variable references in document order."""

    def __init__(self) -> None:
        super().__init__()
        self.fragments: Dict[str, None] = {}
        self.variables: Dict[str, None] = {}

    def enter_fragment_spread(self, node, *_args):
        self.fragments.setdefault(node.name.value)

    def enter_variable(self, node, *_args):
        self.variables.setdefault(node.name.value)


def collect_references(node: Optional[Node]) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """
    Find the fragments and variables referenced below ``node``.

    Args:
        node: Any AST node, usually a selection set

    Returns:
        Tuple of (fragment names, variable names), each deduplicated and in
        order of first appearance
    """
    if node is None:
        return (), ()
    collector = _ReferenceCollector()
    visit(node, collector)
    return tuple(collector.fragments), tuple(collector.variables)


def type_to_ast(type_: GraphQLType) -> TypeNode:
    """Build the AST form of a (possibly wrapped) schema type."""
    if isinstance(type_, GraphQLNonNull):
        return NonNullTypeNode(type=type_to_ast(type_.of_type))
    if isinstance(type_, GraphQLList):
        return ListTypeNode(type=type_to_ast(type_.of_type))
    return NamedTypeNode(name=name_node(type_.name))


def schema_to_document(schema: GraphQLSchema) -> DocumentNode:
    """Type definitions of ``schema`` as an SDL document."""
    return parse(print_schema(schema))


def operation_kind(operation: Union[str, OperationType]) -> OperationType:
    try:
        return OperationType(operation)
    except ValueError:
        raise TransformConfigurationError(f"Unknown operation type: {operation!r}")


def root_type(
    schema: GraphQLSchema, operation: Union[str, OperationType]
) -> Optional[GraphQLObjectType]:
    """Root object type of ``schema`` for an operation kind."""
    kind = operation_kind(operation)
    if kind == OperationType.MUTATION:
        return schema.mutation_type
    if kind == OperationType.SUBSCRIPTION:
        return schema.subscription_type
    return schema.query_type


def get_operation(
    document: DocumentNode, operation_name: Optional[str] = None
) -> Optional[OperationDefinitionNode]:
    """Pick the operation a request runs: the named one, or the first."""
    operations = [
        definition
        for definition in document.definitions
        if isinstance(definition, OperationDefinitionNode)
    ]
    if operation_name is not None:
        for operation in operations:
            if operation.name and operation.name.value == operation_name:
                return operation
        return None
    return operations[0] if operations else None


def fragment_definitions(document: DocumentNode) -> Dict[str, FragmentDefinitionNode]:
    return {
        definition.name.value: definition
        for definition in document.definitions
        if isinstance(definition, FragmentDefinitionNode)
    }


def parse_fragment(text: str) -> InlineFragmentNode:
    """
    Parse fragment text into an inline fragment.

    Accepts both named fragment definitions (``fragment X on User { id }``)
    and inline fragments (``... on User { id }``).

    Raises:
        TransformConfigurationError: If the text is not a typed fragment
    """
    source = text.strip()
    try:
        if source.startswith("fragment"):
            definition = parse(source).definitions[0]
            if not isinstance(definition, FragmentDefinitionNode):
                raise TransformConfigurationError(f"Not a fragment definition: {text!r}")
            return InlineFragmentNode(
                type_condition=definition.type_condition,
                directives=definition.directives,
                selection_set=definition.selection_set,
            )
        operation = parse("{" + source + "}").definitions[0]
    except GraphQLSyntaxError as e:
        raise TransformConfigurationError(f"Invalid fragment {text!r}: {e.message}") from e

    selections = operation.selection_set.selections
    if len(selections) != 1 or not isinstance(selections[0], InlineFragmentNode):
        raise TransformConfigurationError(f"Expected a single inline fragment: {text!r}")
    fragment = selections[0]
    if fragment.type_condition is None:
        raise TransformConfigurationError(f"Fragment needs a type condition: {text!r}")
    return fragment


def concatenate_type_defs(type_defs: Iterable[Union[str, DocumentNode]]) -> List[DocumentNode]:
    """Parse type definition sources, skipping textual duplicates."""
    seen: Dict[str, None] = {}
    documents = []
    for type_def in type_defs:
        if isinstance(type_def, DocumentNode):
            documents.append(type_def)
            continue
        text = type_def.strip()
        if text and text not in seen:
            seen[text] = None
            documents.append(parse(text))
    return documents
