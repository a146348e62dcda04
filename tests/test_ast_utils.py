"""Tests for the AST node helpers."""

import pytest
from graphql import FieldNode, parse, print_ast

from graphweave.transforms.ast_utils import field_node, name_node, replace_node


def test_replace_node_builds_a_new_node_and_leaves_the_original_alone():
    operation = parse("{ bookings { id startTime } }").definitions[0]
    bookings = operation.selection_set.selections[0]

    trimmed = replace_node(
        bookings,
        selection_set=replace_node(
            bookings.selection_set, selections=bookings.selection_set.selections[:1]
        ),
    )

    assert isinstance(trimmed, FieldNode)
    assert trimmed is not bookings
    assert print_ast(trimmed) == "bookings {\n  id\n}"
    assert print_ast(bookings) == "bookings {\n  id\n  startTime\n}"
    assert trimmed.loc is bookings.loc


def test_replace_node_keeps_untouched_attributes():
    node = field_node("customer")

    aliased = replace_node(node, alias=name_node("owner"))

    assert print_ast(aliased) == "owner: customer"
    assert aliased.name is node.name
    assert node.alias is None


def test_replace_node_rejects_unknown_attributes():
    with pytest.raises(TypeError, match="selection"):
        replace_node(field_node("id"), selection=None)
