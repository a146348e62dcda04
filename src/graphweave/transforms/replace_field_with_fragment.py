"""
Expand computed fields into the fields they are computed from.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple

from graphql import FieldNode, GraphQLSchema, InlineFragmentNode, SelectionSetNode

from graphweave.transforms.ast_utils import parse_fragment, replace_node
from graphweave.transforms.base import Request, Transform
from graphweave.transforms.type_context import SelectionVisitor, TypeContext, visit_document

FragmentMap = Mapping[str, Mapping[str, Tuple[InlineFragmentNode, ...]]]


@dataclass(frozen=True)
class FieldFragment:
    """A field name and the fragment fetching the data it depends on."""

    field: str
    fragment: str


def build_fragment_map(replacements: Sequence[FieldFragment]) -> Dict[str, Dict[str, Tuple[InlineFragmentNode, ...]]]:
    """
    Group parsed fragments by their type condition and field name.

    Several fragments for the same field are kept in declaration order.
    """
    mapping: Dict[str, Dict[str, Tuple[InlineFragmentNode, ...]]] = {}
    for replacement in replacements:
        fragment = parse_fragment(replacement.fragment)
        type_name = fragment.type_condition.name.value
        fields = mapping.setdefault(type_name, {})
        fields[replacement.field] = fields.get(replacement.field, ()) + (fragment,)
    return mapping


class FragmentReplacer(SelectionVisitor):
    """
    Splice fragments next to (or instead of) the fields they belong to.

    With ``keep_field`` the original field stays in place and its fragments
    are appended to the selection set; otherwise the field is replaced by
    its fragments at the same position.
    """

    def __init__(self, mapping: FragmentMap, keep_field: bool = False):
        self.mapping = mapping
        self.keep_field = keep_field

    def leave_selection_set(self, node: SelectionSetNode, context: TypeContext):
        parent = context.parent_type
        fields = self.mapping.get(parent.name) if parent is not None else None
        if not fields:
            return None

        selections: List = []
        appended: List[InlineFragmentNode] = []
        changed = False
        for selection in node.selections:
            fragments = (
                fields.get(selection.name.value) if isinstance(selection, FieldNode) else None
            )
            if not fragments:
                selections.append(selection)
                continue
            changed = True
            if self.keep_field:
                selections.append(selection)
                appended.extend(fragment for fragment in fragments if fragment not in appended)
            else:
                selections.extend(fragments)
        if not changed:
            return None
        return replace_node(node, selections=tuple(selections + appended))


class ReplaceFieldWithFragment(Transform):
    """
    Replace requested fields by the fragments listed for them.

    Args:
        target_schema: Schema the request is typed against
        replacements: Field/fragment pairs; fragments may be written as
            ``fragment Name on Type { ... }`` or ``... on Type { ... }``
    """

    def __init__(self, target_schema: GraphQLSchema, replacements: Sequence[FieldFragment]):
        self.target_schema = target_schema
        self.mapping = build_fragment_map(
            [
                item if isinstance(item, FieldFragment) else FieldFragment(**item)
                for item in replacements
            ]
        )

    def transform_request(self, request: Request) -> Request:
        document = visit_document(
            request.document, self.target_schema, FragmentReplacer(self.mapping)
        )
        return request.with_document(document)
