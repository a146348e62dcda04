"""
Transforms that move a selection subtree in the request and undo the move in the result.

Paths are sequences of field names. On the request side they are matched
against field names (inline fragments are searched transparently); on the
response side they are walked as data keys. A path that does not resolve
leaves the request or the response unchanged.
"""

from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

from graphql import (
    DocumentNode,
    FieldNode,
    InlineFragmentNode,
    OperationDefinitionNode,
    SelectionNode,
    SelectionSetNode,
)

from graphweave.core.exceptions import TransformConfigurationError
from graphweave.transforms.ast_utils import replace_node
from graphweave.transforms.base import Request, Response, Transform

Wrapper = Callable[[Optional[SelectionSetNode]], Union[SelectionSetNode, SelectionNode]]
Extractor = Callable[[Any], Any]

_MISSING = object()


def _check_path(path: Sequence[str], label: str) -> Tuple[str, ...]:
    if not path:
        raise TransformConfigurationError(f"{label} path must not be empty")
    return tuple(path)


def _rewrite_at_path(
    selection_set: SelectionSetNode,
    path: Tuple[str, ...],
    rewrite: Callable[[FieldNode], FieldNode],
) -> SelectionSetNode:
    selections = []
    changed = False
    for selection in selection_set.selections:
        new_selection = selection
        if isinstance(selection, FieldNode) and selection.name.value == path[0]:
            if len(path) == 1:
                new_selection = rewrite(selection)
            elif selection.selection_set is not None:
                inner = _rewrite_at_path(selection.selection_set, path[1:], rewrite)
                if inner is not selection.selection_set:
                    new_selection = replace_node(selection, selection_set=inner)
        elif isinstance(selection, InlineFragmentNode):
            inner = _rewrite_at_path(selection.selection_set, path, rewrite)
            if inner is not selection.selection_set:
                new_selection = replace_node(selection, selection_set=inner)
        changed = changed or new_selection is not selection
        selections.append(new_selection)
    if not changed:
        return selection_set
    return replace_node(selection_set, selections=tuple(selections))


def _find_at_path(
    selection_set: Optional[SelectionSetNode], path: Tuple[str, ...]
) -> Optional[FieldNode]:
    if selection_set is None:
        return None
    for selection in selection_set.selections:
        if isinstance(selection, FieldNode) and selection.name.value == path[0]:
            if len(path) == 1:
                return selection
            found = _find_at_path(selection.selection_set, path[1:])
        elif isinstance(selection, InlineFragmentNode):
            found = _find_at_path(selection.selection_set, path)
        else:
            continue
        if found is not None:
            return found
    return None


def _rewrite_operations(
    document: DocumentNode,
    path: Tuple[str, ...],
    rewrite: Callable[[FieldNode], FieldNode],
) -> DocumentNode:
    definitions = []
    changed = False
    for definition in document.definitions:
        if isinstance(definition, OperationDefinitionNode):
            selection_set = _rewrite_at_path(definition.selection_set, path, rewrite)
            if selection_set is not definition.selection_set:
                definition = replace_node(definition, selection_set=selection_set)
                changed = True
        definitions.append(definition)
    if not changed:
        return document
    return replace_node(document, definitions=tuple(definitions))


def update_in(value: Any, path: Tuple[str, ...], fn: Callable[[Any], Any]) -> Any:
    """
    Return ``value`` with ``fn`` applied at ``path``.

    Lists met along the way are mapped element-wise; null values and
    missing keys are left untouched.
    """
    if value is None:
        return None
    if isinstance(value, list):
        return [update_in(item, path, fn) for item in value]
    if not isinstance(value, Mapping) or path[0] not in value:
        return value
    child = value[path[0]]
    if len(path) == 1:
        new_child = fn(child) if child is not None else None
    else:
        new_child = update_in(child, path[1:], fn)
    return {**value, path[0]: new_child}


def get_in(value: Any, path: Tuple[str, ...]) -> Any:
    for key in path:
        if not isinstance(value, Mapping) or key not in value:
            return _MISSING
        value = value[key]
    return value


def dissoc_in(value: Mapping, path: Tuple[str, ...]) -> Mapping:
    if len(path) == 1:
        return {key: item for key, item in value.items() if key != path[0]}
    child = value.get(path[0])
    if not isinstance(child, Mapping):
        return value
    return {**value, path[0]: dissoc_in(child, path[1:])}


def assoc_in(value: Optional[Mapping], path: Tuple[str, ...], new_value: Any) -> Mapping:
    value = value or {}
    if len(path) == 1:
        return {**value, path[0]: new_value}
    child = value.get(path[0])
    return {**value, path[0]: assoc_in(child if isinstance(child, Mapping) else None, path[1:], new_value)}


class WrapQuery(Transform):
    """
    Rewrite the selection set of the field at ``path``.

    Args:
        path: Field names leading from the operation root to the field
        wrapper: Receives the field's selection set and returns the new
            selection set, or a single selection to wrap in one
        extractor: Receives the result value at ``path`` and returns the
            value the caller expects there
    """

    def __init__(self, path: Sequence[str], wrapper: Wrapper, extractor: Extractor):
        self.path = _check_path(path, "WrapQuery")
        self.wrapper = wrapper
        self.extractor = extractor

    def _wrap(self, field: FieldNode) -> FieldNode:
        wrapped = self.wrapper(field.selection_set)
        if not isinstance(wrapped, SelectionSetNode):
            wrapped = SelectionSetNode(selections=(wrapped,))
        return replace_node(field, selection_set=wrapped)

    def transform_request(self, request: Request) -> Request:
        document = _rewrite_operations(request.document, self.path, self._wrap)
        if document is request.document:
            return request
        return request.with_document(document)

    def transform_response(self, response: Response, request: Request) -> Response:
        if response.data is None:
            return response
        return response.with_data(update_in(response.data, self.path, self.extractor))


class ExtractField(Transform):
    """
    Serve the selection requested at ``from_path`` from the field at ``to_path``.

    The request's field at ``to_path`` gets the selection set found at
    ``from_path``. The result value at ``to_path`` is moved back under
    ``from_path`` so the caller sees the shape it asked for.
    """

    def __init__(self, from_path: Sequence[str], to_path: Sequence[str]):
        self.from_path = _check_path(from_path, "ExtractField 'from'")
        self.to_path = _check_path(to_path, "ExtractField 'to'")

    def transform_request(self, request: Request) -> Request:
        source = None
        for definition in request.document.definitions:
            if isinstance(definition, OperationDefinitionNode):
                source = _find_at_path(definition.selection_set, self.from_path)
                if source is not None:
                    break
        if source is None or source.selection_set is None:
            return request

        document = _rewrite_operations(
            request.document,
            self.to_path,
            lambda field: replace_node(field, selection_set=source.selection_set),
        )
        return request.with_document(document)

    def transform_response(self, response: Response, request: Request) -> Response:
        if response.data is None or self.from_path == self.to_path:
            return response
        value = get_in(response.data, self.to_path)
        if value is _MISSING:
            return response
        data = dissoc_in(response.data, self.to_path)
        return response.with_data(assoc_in(data, self.from_path, value))
