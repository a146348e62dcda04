"""
Delegating a field of the caller's query to a subschema.

``delegate_to_schema`` is what every proxied root field of a merged schema
runs, and what custom resolvers call to fetch data from another schema. It
rebuilds a request from the caller's field selection, pushes it through the
transform pipeline, executes it, maps the result back and returns the value
of the delegated field with its errors attached.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from graphql import (
    DocumentNode,
    FragmentDefinitionNode,
    GraphQLResolveInfo,
    GraphQLSchema,
    InlineFragmentNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    print_ast,
)

from graphweave.core.config import settings
from graphweave.core.logging import get_logger
from graphweave.federation.errors import annotate_with_errors, relative_errors, relocatable_error
from graphweave.federation.subschema import SubschemaLike, Subschema, as_subschema
from graphweave.transforms.add_arguments import AddArgumentsAsVariables
from graphweave.transforms.add_typename import AddTypenameToAbstract
from graphweave.transforms.ast_utils import (
    collect_references,
    field_node,
    operation_kind,
    replace_node,
)
from graphweave.transforms.base import Request, Response, Transform, TransformPipeline
from graphweave.transforms.filter_to_schema import FilterToSchema
from graphweave.transforms.replace_field_with_fragment import FragmentReplacer
from graphweave.transforms.type_context import TypeContext, visit_selection_set

logger = get_logger(__name__)

MERGE_INFO_KEY = "graphweave_merge_info"


@dataclass(frozen=True)
class MergeInfo:
    """What a merged schema knows about its sources, stored in its extensions."""

    subschemas: Tuple[Subschema, ...] = ()
    fragments: Mapping[str, Mapping[str, Tuple[InlineFragmentNode, ...]]] = field(
        default_factory=dict
    )


def get_merge_info(schema: GraphQLSchema) -> Optional[MergeInfo]:
    return (schema.extensions or {}).get(MERGE_INFO_KEY)


def _expand(
    selection_set: Optional[SelectionSetNode],
    context: TypeContext,
    replacer: Optional[FragmentReplacer],
) -> Optional[SelectionSetNode]:
    if selection_set is None or replacer is None or context.parent_type is None:
        return selection_set
    return visit_selection_set(selection_set, context, replacer)


def create_request(
    info: GraphQLResolveInfo,
    operation: Union[str, OperationType],
    field_name: str,
    merge_info: Optional[MergeInfo] = None,
) -> Request:
    """
    Build the request delegating the current field as ``field_name``.

    The single root field carries the caller's selections on the current
    field. Fragments reachable from those selections are copied along with
    the caller's variables. When the caller's schema is a merged schema,
    fields with declared data dependencies are expanded with their fragments.
    """
    kind = operation_kind(operation)
    replacer = FragmentReplacer(merge_info.fragments, keep_field=True) if merge_info else None

    selections = [
        selection
        for node in info.field_nodes
        if node.selection_set is not None
        for selection in node.selection_set.selections
    ]
    selection_set = SelectionSetNode(selections=tuple(selections)) if selections else None
    selection_set = _expand(
        selection_set, TypeContext.for_type(info.schema, info.return_type), replacer
    )

    fragments: List[FragmentDefinitionNode] = []
    seen = set()
    worklist = deque(collect_references(selection_set)[0])
    while worklist:
        name = worklist.popleft()
        fragment = info.fragments.get(name)
        if name in seen or fragment is None:
            continue
        seen.add(name)
        fragment_type = info.schema.get_type(fragment.type_condition.name.value)
        fragment_selection = _expand(
            fragment.selection_set, TypeContext.for_type(info.schema, fragment_type), replacer
        )
        fragments.append(replace_node(fragment, selection_set=fragment_selection))
        worklist.extend(collect_references(fragment_selection)[0])

    operation_node = OperationDefinitionNode(
        operation=kind,
        name=info.operation.name,
        variable_definitions=tuple(info.operation.variable_definitions or ()),
        directives=(),
        selection_set=SelectionSetNode(selections=(field_node(field_name, selection_set),)),
    )
    return Request(
        document=DocumentNode(definitions=(operation_node, *fragments)),
        variables=dict(info.variable_values or {}),
        operation_type=kind.value,
        operation_name=info.operation.name.value if info.operation.name else None,
    )


def _delegated_value(response: Response, field_name: str, subschema: Subschema) -> Any:
    result = (response.data or {}).get(field_name)
    root_errors, nested_errors = relative_errors(response.errors, field_name)
    if response.errors:
        logger.info(
            "Delegated call returned errors",
            subschema=subschema.name,
            field=field_name,
            count=len(response.errors),
        )

    # Errors with no place below the root belong to the delegating field
    if result is None or root_errors:
        errors = root_errors + [error for _, error in nested_errors]
        if errors:
            raise relocatable_error(errors)
        return None

    return annotate_with_errors(result, nested_errors)


async def delegate_to_schema(
    schema: SubschemaLike,
    operation: Union[str, OperationType],
    field_name: str,
    args: Optional[Dict[str, Any]] = None,
    context: Any = None,
    info: Optional[GraphQLResolveInfo] = None,
    transforms: Sequence[Transform] = (),
) -> Any:
    """
    Resolve the current field by running ``field_name`` on another schema.

    Args:
        schema: Target subschema (a Subschema, graphql-core or strawberry schema)
        operation: "query", "mutation" or "subscription"
        field_name: Root field of the target schema to call
        args: Arguments for that root field
        context: Context passed to the target (defaults to the caller's)
        info: Resolve info of the field being resolved
        transforms: Transforms applied before the subschema's own

    Returns:
        The value of ``field_name`` with delegated errors attached

    Raises:
        GraphQLError: If the delegated field itself failed; graphql-core
            reports it at the caller's field
    """
    if info is None:
        raise ValueError("delegate_to_schema needs the resolve info of the calling field")

    subschema = as_subschema(schema)
    # Schema transforms fill in the name maps request transforms rely on
    subschema.transformed_schema

    request = create_request(info, operation, field_name, get_merge_info(info.schema))
    pipeline = TransformPipeline(
        [
            *transforms,
            *subschema.transforms,
            AddArgumentsAsVariables(subschema.schema, args or {}),
            FilterToSchema(subschema.schema),
            AddTypenameToAbstract(subschema.schema),
        ]
    )
    final_request, produced = pipeline.run(request)

    logger.debug(
        "Delegating field",
        subschema=subschema.name,
        operation=final_request.operation_type,
        field=field_name,
    )
    if settings.log_delegated_documents:
        logger.debug("Delegated document", document=print_ast(final_request.document))

    response = await subschema.executor(
        final_request,
        context=context if context is not None else info.context,
        root_value=info.root_value,
    )
    response = pipeline.transform_response(response, final_request, produced)
    return _delegated_value(response, field_name, subschema)
