"""Tests for removing types from a subschema."""

import pytest
from graphql import build_schema, graphql

from graphweave.core.exceptions import SchemaError
from graphweave.federation import transform_schema
from graphweave.transforms import FilterTypes
from graphweave.transforms.filter_types import filter_schema_document
from graphweave.transforms.ast_utils import schema_to_document
from tests.sample_schemas import booking_schema

KEPT = {"ID", "String", "DateTime", "Query", "Booking"}


@pytest.fixture
def filtered_schema():
    return transform_schema(booking_schema, [FilterTypes(lambda type_: type_.name in KEPT)])


def test_removed_types_take_their_fields_and_arguments_along(filtered_schema):
    assert filtered_schema.get_type("Customer") is None
    assert filtered_schema.get_type("Address") is None
    assert "customerById" not in filtered_schema.query_type.fields
    assert "customer" not in filtered_schema.get_type("Booking").fields
    assert filtered_schema.query_type.fields["bookings"].args == {}


@pytest.mark.asyncio
async def test_kept_types_still_resolve(filtered_schema):
    result = await graphql(
        filtered_schema,
        """
        query($bid: ID!) {
          bookingById(id: $bid) {
            id
            propertyId
            startTime
            endTime
          }
        }
        """,
        variable_values={"bid": "b1"},
    )

    assert result.errors is None
    assert result.data == {
        "bookingById": {
            "id": "b1",
            "propertyId": "p1",
            "startTime": "2016-05-04",
            "endTime": "2016-06-03",
        }
    }


@pytest.mark.asyncio
async def test_removed_fields_cannot_be_queried(filtered_schema):
    result = await graphql(
        filtered_schema,
        """
        query($bid: ID!) {
          bookingById(id: $bid) {
            id
            customer {
              name
            }
          }
        }
        """,
        variable_values={"bid": "b1"},
    )

    assert result.data is None
    assert len(result.errors) == 1
    assert "Cannot query field 'customer' on type 'Booking'" in result.errors[0].message


def test_types_left_without_fields_are_removed():
    schema = build_schema(
        """
        type Owner { pet: Pet }
        type Pet { name: String }
        type Query { owner: Owner, count: Int }
        """
    )

    document = filter_schema_document(schema_to_document(schema), {"Owner", "Query", "Int"})
    names = {definition.name.value for definition in document.definitions}

    assert names == {"Query"}


def test_removing_the_query_root_is_an_error():
    schema = build_schema("type Query { hello: String }")

    with pytest.raises(SchemaError):
        FilterTypes(lambda type_: type_.name != "Query").transform_schema(schema)
