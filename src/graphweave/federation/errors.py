"""
Carrying delegated execution errors alongside the data they belong to.

A delegated call returns one result tree and a flat list of errors with
paths. Instead of pinning those errors onto the data as hidden attributes,
mappings in the returned tree are wrapped in ``ProxiedObject`` carriers that
hold the errors whose paths start below them. The merged resolver asks the
carrier for its own errors when a field is resolved, so each error surfaces
at the field it belongs to in the caller's query.
"""

from typing import Any, Iterator, List, Mapping, NamedTuple, Sequence, Tuple, Union

from graphql import GraphQLError

PathKey = Union[str, int]


class PathError(NamedTuple):
    """An error and its path relative to the value carrying it."""

    path: Tuple[PathKey, ...]
    error: GraphQLError


class CombinedError(GraphQLError):
    """Several delegated errors reported at a single location."""

    def __init__(self, errors: Sequence[GraphQLError]):
        super().__init__("\n".join(error.message for error in errors))
        self.errors = list(errors)


class ProxiedObject(Mapping):
    """Read-only view of a delegated result object plus the errors below it."""

    __slots__ = ("value", "errors")

    def __init__(self, value: Mapping, errors: Sequence[PathError] = ()):
        self.value = value
        self.errors = tuple(errors)

    def __getitem__(self, key: str) -> Any:
        return self.value[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.value)

    def __len__(self) -> int:
        return len(self.value)

    def __repr__(self) -> str:
        return f"ProxiedObject({self.value!r}, errors={len(self.errors)})"

    def errors_for(self, key: str) -> Tuple[List[GraphQLError], List[PathError]]:
        """
        Split the carried errors for one response key.

        Returns:
            Errors raised by the field itself, and errors of its descendants
            with paths made relative to the field's value
        """
        own: List[GraphQLError] = []
        children: List[PathError] = []
        for path, error in self.errors:
            if not path or path[0] != key:
                continue
            if len(path) == 1:
                own.append(error)
            else:
                children.append(PathError(path[1:], error))
        return own, children


def relocatable_error(errors: Sequence[GraphQLError]) -> GraphQLError:
    """
    Build an error the host engine will locate at the field raising it.

    The error carries neither path nor nodes, so graphql-core attaches the
    current field's location when it is raised from a resolver.
    """
    if len(errors) == 1:
        error = errors[0]
        return GraphQLError(
            error.message,
            original_error=error.original_error,
            extensions=error.extensions,
        )
    return CombinedError(errors)


def relative_errors(
    errors: Sequence[GraphQLError], root_key: str
) -> Tuple[List[GraphQLError], List[PathError]]:
    """
    Rebase response errors onto the delegated root field.

    Returns:
        Errors at or outside the root field, and the errors below it with
        paths relative to the root field's value
    """
    root: List[GraphQLError] = []
    nested: List[PathError] = []
    for error in errors:
        path = tuple(error.path or ())
        if len(path) > 1 and path[0] == root_key:
            nested.append(PathError(path[1:], error))
        else:
            root.append(error)
    return root, nested


def annotate_with_errors(value: Any, errors: Sequence[PathError]) -> Any:
    """
    Attach ``errors`` to ``value`` so they can be found while resolving it.

    Mappings are wrapped in ``ProxiedObject``. In lists, an item that is null
    because of an error is replaced by the error itself; graphql-core raises
    it while completing that item, which locates it at the item's index.
    """
    if not errors or value is None:
        return value

    if isinstance(value, list):
        items = []
        for index, item in enumerate(value):
            item_errors = [
                PathError(path[1:], error) for path, error in errors if path and path[0] == index
            ]
            if item is None and item_errors:
                items.append(relocatable_error([error for _, error in item_errors]))
            else:
                items.append(
                    annotate_with_errors(item, [entry for entry in item_errors if entry.path])
                )
        return items

    if isinstance(value, Mapping):
        return ProxiedObject(value, errors)

    return value
