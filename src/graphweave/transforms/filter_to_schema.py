"""
Prune a request down to what a target schema can answer.

Unknown fields, undeclared arguments and type-incompatible fragments are
dropped silently. Composite fields whose selections were all dropped are
removed as well, and the variable and fragment definitions are recomputed
from what survives, so the result never references a variable or fragment
that is no longer used.
"""

from collections import deque
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from graphql import (
    DocumentNode,
    ExecutableDefinitionNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLField,
    GraphQLNamedType,
    GraphQLSchema,
    InlineFragmentNode,
    OperationDefinitionNode,
    SelectionSetNode,
    get_named_type,
    is_composite_type,
)
from graphql.language import REMOVE

from graphweave.core.logging import get_logger
from graphweave.transforms.ast_utils import collect_references, replace_node, root_type
from graphweave.transforms.base import Request, Transform
from graphweave.transforms.type_context import (
    SelectionVisitor,
    TypeContext,
    implements_abstract_type,
    visit_selection_set,
)

logger = get_logger(__name__)


class FilteredSelection(NamedTuple):
    selection_set: SelectionSetNode
    used_fragments: Tuple[str, ...]
    used_variables: Tuple[str, ...]


class FragmentClosure(NamedTuple):
    fragments: Tuple[str, ...]
    variables: Tuple[str, ...]


class _SchemaFilter(SelectionVisitor):
    """Drops every selection the target schema does not define."""

    def __init__(self, fragment_types: Mapping[str, GraphQLNamedType]):
        self.fragment_types = fragment_types

    def enter_field(self, node: FieldNode, context: TypeContext, field_def: Optional[GraphQLField]):
        if field_def is None:
            return REMOVE
        if node.arguments:
            arguments = tuple(arg for arg in node.arguments if arg.name.value in field_def.args)
            if len(arguments) != len(node.arguments):
                return replace_node(node, arguments=arguments)
        return None

    def leave_field(self, node: FieldNode, context: TypeContext, field_def: Optional[GraphQLField]):
        if field_def is not None and is_composite_type(get_named_type(field_def.type)):
            if node.selection_set is None or not node.selection_set.selections:
                return REMOVE
        return None

    def enter_fragment_spread(self, node: FragmentSpreadNode, context: TypeContext):
        fragment_type = self.fragment_types.get(node.name.value)
        if fragment_type is None:
            return REMOVE
        if not implements_abstract_type(context.schema, context.parent_type, fragment_type):
            return REMOVE
        return None

    def enter_inline_fragment(self, node: InlineFragmentNode, context: TypeContext, type_):
        if node.type_condition is not None and not implements_abstract_type(
            context.schema, context.parent_type, type_
        ):
            return REMOVE
        return None

    def leave_inline_fragment(self, node: InlineFragmentNode, context: TypeContext, type_):
        if not node.selection_set.selections:
            return REMOVE
        return None


def filter_selection_set(
    schema: GraphQLSchema,
    type_: Optional[GraphQLNamedType],
    selection_set: SelectionSetNode,
    fragment_types: Mapping[str, GraphQLNamedType],
) -> FilteredSelection:
    """
    Filter one selection set against ``type_`` in ``schema``.

    The used fragments and variables are read from the filtered output, so
    references that only occurred inside removed subtrees are not reported.
    """
    filtered = visit_selection_set(
        selection_set, TypeContext.for_type(schema, type_), _SchemaFilter(fragment_types)
    )
    used_fragments, used_variables = collect_references(filtered)
    return FilteredSelection(filtered, used_fragments, used_variables)


def collect_fragment_closure(
    roots: Iterable[str], filtered_fragments: Mapping[str, FilteredSelection]
) -> FragmentClosure:
    """
    Walk fragment references transitively from ``roots``.

    Each fragment is emitted at most once, which also stops the walk on
    mutually recursive fragments.
    """
    emitted: Dict[str, None] = {}
    variables: Dict[str, None] = {}
    worklist = deque(roots)
    while worklist:
        name = worklist.popleft()
        if name in emitted or name not in filtered_fragments:
            continue
        emitted[name] = None
        fragment = filtered_fragments[name]
        worklist.extend(fragment.used_fragments)
        variables.update(dict.fromkeys(fragment.used_variables))
    return FragmentClosure(tuple(emitted), tuple(variables))


def _filter_fragments(
    schema: GraphQLSchema, fragments: List[FragmentDefinitionNode]
) -> Dict[str, FilteredSelection]:
    fragment_types = {}
    for fragment in fragments:
        type_ = schema.get_type(fragment.type_condition.name.value)
        if type_ is not None:
            fragment_types[fragment.name.value] = type_

    # A fragment that filters down to nothing cannot be spread, and dropping
    # its spreads may empty other fragments in turn.
    while True:
        filtered = {
            fragment.name.value: filter_selection_set(
                schema,
                fragment_types[fragment.name.value],
                fragment.selection_set,
                fragment_types,
            )
            for fragment in fragments
            if fragment.name.value in fragment_types
        }
        empty = [name for name, result in filtered.items() if not result.selection_set.selections]
        if not empty:
            return filtered
        for name in empty:
            del fragment_types[name]


def _directive_variables(definition: ExecutableDefinitionNode) -> Tuple[str, ...]:
    names: Dict[str, None] = {}
    for directive in definition.directives or ():
        names.update(dict.fromkeys(collect_references(directive)[1]))
    return tuple(names)


def filter_document(schema: GraphQLSchema, document: DocumentNode) -> DocumentNode:
    """Filter every operation of ``document`` and rebuild its fragment closure."""
    fragments = [d for d in document.definitions if isinstance(d, FragmentDefinitionNode)]
    fragment_definitions = {fragment.name.value: fragment for fragment in fragments}
    filtered_fragments = _filter_fragments(schema, fragments)
    fragment_types = {
        fragment.name.value: schema.get_type(fragment.type_condition.name.value)
        for fragment in fragments
        if fragment.name.value in filtered_fragments
    }

    operations: Dict[int, OperationDefinitionNode] = {}
    reachable: Dict[str, None] = {}
    for index, definition in enumerate(document.definitions):
        if not isinstance(definition, OperationDefinitionNode):
            continue
        # Without a matching root type everything is pruned and the operation
        # is emitted with an empty selection set.
        operation_type = root_type(schema, definition.operation)
        result = filter_selection_set(schema, operation_type, definition.selection_set, fragment_types)
        closure = collect_fragment_closure(result.used_fragments, filtered_fragments)
        reachable.update(dict.fromkeys(closure.fragments))
        used_variables = set(result.used_variables) | set(closure.variables)
        # Directives on the operation and its fragments keep variables too
        used_variables.update(_directive_variables(definition))
        for name in closure.fragments:
            used_variables.update(_directive_variables(fragment_definitions[name]))
        operations[index] = replace_node(
            definition,
            variable_definitions=tuple(
                variable
                for variable in definition.variable_definitions or ()
                if variable.variable.name.value in used_variables
            ),
            selection_set=result.selection_set,
        )

    # Definitions keep their original order
    definitions = []
    for index, definition in enumerate(document.definitions):
        if index in operations:
            definitions.append(operations[index])
        elif isinstance(definition, FragmentDefinitionNode) and definition.name.value in reachable:
            definitions.append(
                replace_node(
                    definition,
                    selection_set=filtered_fragments[definition.name.value].selection_set,
                )
            )
    return replace_node(document, definitions=tuple(definitions))


class FilterToSchema(Transform):
    """Request transform pruning documents to a target schema."""

    def __init__(self, target_schema: GraphQLSchema):
        self.target_schema = target_schema

    def transform_request(self, request: Request) -> Request:
        document = filter_document(self.target_schema, request.document)
        defined = {
            variable.variable.name.value
            for definition in document.definitions
            if isinstance(definition, OperationDefinitionNode)
            for variable in definition.variable_definitions or ()
        }
        variables = {
            name: value for name, value in (request.variables or {}).items() if name in defined
        }
        dropped = sorted(set(request.variables or {}) - defined)
        if dropped:
            logger.debug("Pruned unused variables", variables=dropped)
        return request.with_document(document, variables=variables)
