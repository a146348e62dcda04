"""
Resolvers installed on merged and transformed schemas.
"""

from typing import Any, Mapping, Optional

from graphql import GraphQLAbstractType, GraphQLResolveInfo, default_field_resolver

from graphweave.federation.errors import ProxiedObject, annotate_with_errors, relocatable_error


def default_merged_resolver(parent: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
    """
    Resolve a proxied field from a delegated result.

    Delegated results are read by response key, so aliased fields read the
    value the subschema returned under the same alias, null included. Other
    mappings without that key are read by field name. An error carried for
    this response key is raised here, and errors of descendants are passed
    down with the value.
    """
    if parent is None:
        return None

    response_key = info.path.key
    own_errors, child_errors = [], []
    if isinstance(parent, ProxiedObject):
        own_errors, child_errors = parent.errors_for(response_key)
    if own_errors:
        raise relocatable_error(own_errors)

    if isinstance(parent, ProxiedObject) or (
        isinstance(parent, Mapping) and response_key in parent
    ):
        result = parent.get(response_key)
    elif isinstance(parent, Mapping):
        # Local parents are keyed by field name
        result = parent.get(info.field_name)
    else:
        result = default_field_resolver(parent, info, **args)

    if child_errors:
        if result is None:
            # A non-null descendant failed and nulled this field
            raise relocatable_error([error for _, error in child_errors])
        result = annotate_with_errors(result, child_errors)
    return result


def resolve_from_parent_typename(
    value: Any, info: GraphQLResolveInfo, abstract_type: GraphQLAbstractType
) -> Optional[str]:
    """Resolve interfaces and unions from the ``__typename`` in delegated data."""
    if isinstance(value, Mapping):
        return value.get("__typename")
    return getattr(value, "__typename", None)
