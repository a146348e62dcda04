"""
Type-directed traversal over selection sets.

The traversal threads an immutable ``TypeContext`` through an explicit
recursion instead of keeping a mutable type stack in a closure. At every
field, the top of the context is the field's parent type; descending into a
field or an inline fragment pushes one type, so the context depth always
equals the selection nesting depth.
"""

from dataclasses import dataclass, replace
from typing import Any, List, Optional, Sequence, Tuple, Union

from graphql import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLField,
    GraphQLInterfaceType,
    GraphQLNamedType,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLType,
    InlineFragmentNode,
    Node,
    OperationDefinitionNode,
    SelectionNode,
    SelectionSetNode,
    TypeNameMetaFieldDef,
    get_named_type,
    is_composite_type,
)
from graphql.language import REMOVE
from graphql.utilities import do_types_overlap

from graphweave.transforms.ast_utils import replace_node, root_type

# What a visitor hook may return: None keeps the node, REMOVE drops it, a
# node replaces it and a sequence of nodes is spliced in its place.
VisitResult = Union[None, Any, Node, Sequence[Node]]


@dataclass(frozen=True)
class TypeContext:
    """The chain of types enclosing the selection set being visited."""

    schema: GraphQLSchema
    types: Tuple[Optional[GraphQLType], ...]

    @classmethod
    def for_type(cls, schema: GraphQLSchema, type_: Optional[GraphQLType]) -> "TypeContext":
        return cls(schema, (type_,))

    @classmethod
    def for_operation(cls, schema: GraphQLSchema, operation: Any) -> "TypeContext":
        return cls(schema, (root_type(schema, operation),))

    @property
    def depth(self) -> int:
        return len(self.types)

    @property
    def parent_type(self) -> Optional[GraphQLNamedType]:
        """Named type owning the current selection set, wrappers removed."""
        current = self.types[-1] if self.types else None
        return get_named_type(current) if current is not None else None

    def push(self, type_: Optional[GraphQLType]) -> "TypeContext":
        return replace(self, types=self.types + (type_,))

    def field_def(self, name: str) -> Optional[GraphQLField]:
        """Look up a field on the parent type; ``__typename`` works on any composite type."""
        parent = self.parent_type
        if name == "__typename":
            return TypeNameMetaFieldDef if is_composite_type(parent) else None
        if isinstance(parent, (GraphQLObjectType, GraphQLInterfaceType)):
            return parent.fields.get(name)
        return None


def implements_abstract_type(
    schema: GraphQLSchema,
    type_a: Optional[GraphQLType],
    type_b: Optional[GraphQLType],
) -> bool:
    """True when a selection on ``type_b`` can apply to values of ``type_a``."""
    if type_a is None or type_b is None:
        return False
    type_a, type_b = get_named_type(type_a), get_named_type(type_b)
    if type_a is type_b or type_a.name == type_b.name:
        return True
    if is_composite_type(type_a) and is_composite_type(type_b):
        return do_types_overlap(schema, type_a, type_b)
    return False


class SelectionVisitor:
    """
    Hooks called while walking a selection set.

    Each hook receives the context of the enclosing selection set. Returning
    a node of the same kind from an ``enter_*`` hook replaces the node and
    the walk continues into the replacement; any other non-None result is
    emitted as-is without descending.
    """

    def enter_field(
        self, node: FieldNode, context: TypeContext, field_def: Optional[GraphQLField]
    ) -> VisitResult:
        return None

    def leave_field(
        self, node: FieldNode, context: TypeContext, field_def: Optional[GraphQLField]
    ) -> VisitResult:
        return None

    def enter_fragment_spread(self, node: FragmentSpreadNode, context: TypeContext) -> VisitResult:
        return None

    def enter_inline_fragment(
        self,
        node: InlineFragmentNode,
        context: TypeContext,
        type_: Optional[GraphQLNamedType],
    ) -> VisitResult:
        return None

    def leave_inline_fragment(
        self,
        node: InlineFragmentNode,
        context: TypeContext,
        type_: Optional[GraphQLNamedType],
    ) -> VisitResult:
        return None

    def leave_selection_set(self, node: SelectionSetNode, context: TypeContext) -> VisitResult:
        return None


def _entered(node: Node, result: VisitResult) -> Tuple[Optional[Node], List[Node]]:
    # (node to descend into, nodes to emit when not descending)
    if result is None:
        return node, []
    if result is REMOVE:
        return None, []
    if isinstance(result, Node):
        if result.kind == node.kind:
            return result, []
        return None, [result]
    return None, list(result)


def _left(node: Node, result: VisitResult) -> List[Node]:
    if result is None:
        return [node]
    if result is REMOVE:
        return []
    if isinstance(result, Node):
        return [result]
    return list(result)


def _visit_field(node: FieldNode, context: TypeContext, visitor: SelectionVisitor) -> List[Node]:
    field_def = context.field_def(node.name.value)
    node, emitted = _entered(node, visitor.enter_field(node, context, field_def))
    if node is None:
        return emitted
    if field_def is not None and node.selection_set is not None:
        selection_set = visit_selection_set(node.selection_set, context.push(field_def.type), visitor)
        if selection_set is not node.selection_set:
            node = replace_node(node, selection_set=selection_set)
    return _left(node, visitor.leave_field(node, context, field_def))


def _visit_inline_fragment(
    node: InlineFragmentNode, context: TypeContext, visitor: SelectionVisitor
) -> List[Node]:
    if node.type_condition is not None:
        type_ = context.schema.get_type(node.type_condition.name.value)
    else:
        type_ = context.parent_type
    node, emitted = _entered(node, visitor.enter_inline_fragment(node, context, type_))
    if node is None:
        return emitted
    if type_ is not None:
        selection_set = visit_selection_set(node.selection_set, context.push(type_), visitor)
        if selection_set is not node.selection_set:
            node = replace_node(node, selection_set=selection_set)
    return _left(node, visitor.leave_inline_fragment(node, context, type_))


def _visit_selection(
    node: SelectionNode, context: TypeContext, visitor: SelectionVisitor
) -> List[Node]:
    if isinstance(node, FieldNode):
        return _visit_field(node, context, visitor)
    if isinstance(node, InlineFragmentNode):
        return _visit_inline_fragment(node, context, visitor)
    kept, emitted = _entered(node, visitor.enter_fragment_spread(node, context))
    return [kept] if kept is not None else emitted


def visit_selection_set(
    selection_set: SelectionSetNode, context: TypeContext, visitor: SelectionVisitor
) -> SelectionSetNode:
    """
    Walk ``selection_set`` in document order and rebuild it from the visitor's results.

    Args:
        selection_set: Selection set owned by ``context.parent_type``
        context: Types enclosing the selection set
        visitor: Hooks deciding what to keep, replace or drop

    Returns:
        The original node when nothing changed, otherwise a new selection set
    """
    selections: List[Node] = []
    changed = False
    for selection in selection_set.selections:
        result = _visit_selection(selection, context, visitor)
        if len(result) != 1 or result[0] is not selection:
            changed = True
        selections.extend(result)
    if changed:
        selection_set = replace_node(selection_set, selections=tuple(selections))
    left = visitor.leave_selection_set(selection_set, context)
    return selection_set if left is None else left


def visit_document(
    document: DocumentNode, schema: GraphQLSchema, visitor: SelectionVisitor
) -> DocumentNode:
    """
    Walk every operation and fragment definition of ``document``.

    Operations start from their root type, fragments from their type
    condition. Definitions whose starting type is unknown to ``schema`` are
    left untouched.
    """
    definitions = []
    for definition in document.definitions:
        if isinstance(definition, OperationDefinitionNode):
            context = TypeContext.for_operation(schema, definition.operation)
        elif isinstance(definition, FragmentDefinitionNode):
            context = TypeContext.for_type(
                schema, schema.get_type(definition.type_condition.name.value)
            )
        else:
            definitions.append(definition)
            continue
        if context.parent_type is None:
            definitions.append(definition)
            continue
        selection_set = visit_selection_set(definition.selection_set, context, visitor)
        if selection_set is not definition.selection_set:
            definition = replace_node(definition, selection_set=selection_set)
        definitions.append(definition)
    return replace_node(document, definitions=tuple(definitions))
