"""
Reversible request/response transforms applied around delegated execution.
"""

from graphweave.transforms.add_arguments import AddArgumentsAsVariables
from graphweave.transforms.add_typename import AddTypenameToAbstract
from graphweave.transforms.base import Request, Response, Transform, TransformPipeline
from graphweave.transforms.filter_to_schema import FilterToSchema, filter_document
from graphweave.transforms.filter_types import FilterTypes
from graphweave.transforms.rename_types import RenameTypes
from graphweave.transforms.replace_field_with_fragment import (
    FieldFragment,
    FragmentReplacer,
    ReplaceFieldWithFragment,
)
from graphweave.transforms.type_context import (
    SelectionVisitor,
    TypeContext,
    implements_abstract_type,
    visit_document,
    visit_selection_set,
)
from graphweave.transforms.wrap_query import ExtractField, WrapQuery

__all__ = [
    "AddArgumentsAsVariables",
    "AddTypenameToAbstract",
    "ExtractField",
    "FieldFragment",
    "FilterToSchema",
    "FilterTypes",
    "FragmentReplacer",
    "RenameTypes",
    "ReplaceFieldWithFragment",
    "Request",
    "Response",
    "SelectionVisitor",
    "Transform",
    "TransformPipeline",
    "TypeContext",
    "WrapQuery",
    "filter_document",
    "implements_abstract_type",
    "visit_document",
    "visit_selection_set",
]
