"""
Request ``__typename`` wherever the target returns an abstract type.

The merged schema resolves interface and union values from the
``__typename`` found in delegated results, so every selection set on an
interface or union must ask for it.
"""

from graphql import FieldNode, GraphQLSchema, SelectionSetNode, is_abstract_type

from graphweave.transforms.ast_utils import field_node, replace_node
from graphweave.transforms.base import Request, Transform
from graphweave.transforms.type_context import SelectionVisitor, TypeContext, visit_document


class _TypenameAdder(SelectionVisitor):
    def leave_selection_set(self, node: SelectionSetNode, context: TypeContext):
        if not is_abstract_type(context.parent_type):
            return None
        for selection in node.selections:
            if (
                isinstance(selection, FieldNode)
                and selection.name.value == "__typename"
                and selection.alias is None
            ):
                return None
        return replace_node(node, selections=tuple(node.selections) + (field_node("__typename"),))


class AddTypenameToAbstract(Transform):
    def __init__(self, target_schema: GraphQLSchema):
        self.target_schema = target_schema

    def transform_request(self, request: Request) -> Request:
        document = visit_document(request.document, self.target_schema, _TypenameAdder())
        return request.with_document(document)
