"""Tests for merging subschemas into one proxying schema."""

import pytest
from graphql import build_schema, graphql

from graphweave.core.exceptions import SchemaError
from graphweave.federation import Subschema, get_merge_info, merge_schemas
from graphweave.federation.executors import StrawberryExecutor
from tests.sample_schemas import RecordingExecutor, booking_schema, executable_schema, property_schema


def greeting_schema(greeting: str):
    return executable_schema(
        """
        type Query {
          hello: String
        }
        """,
        {"Query": {"hello": lambda _, info: greeting}},
    )


def test_merged_schema_contains_every_subschema(merged_schema):
    fields = merged_schema.query_type.fields

    assert {"bookingById", "customerById", "bookings", "propertyById", "properties"} <= set(fields)
    for type_name in ("Booking", "Customer", "Property", "Location", "TestInterface"):
        assert merged_schema.get_type(type_name) is not None
    assert get_merge_info(merged_schema) is not None
    assert len(get_merge_info(merged_schema).subschemas) == 2


@pytest.mark.asyncio
async def test_later_subschemas_own_redefined_root_fields():
    schema = merge_schemas([greeting_schema("first"), greeting_schema("second")])

    result = await graphql(schema, "{ hello }")

    assert result.data == {"hello": "second"}


def test_object_types_with_the_same_name_are_merged():
    first = build_schema("type User { id: ID } type Query { user: User }")
    second = build_schema("type User { id: ID name: String } type Query { users: [User] }")

    schema = merge_schemas([first, second])

    assert set(schema.get_type("User").fields) == {"id", "name"}
    assert set(schema.query_type.fields) == {"user", "users"}


def test_enum_values_and_union_members_are_unioned():
    first = build_schema(
        """
        enum Color { RED }
        type A { a: Int }
        union Thing = A
        type Query { color: Color thing: Thing }
        """
    )
    second = build_schema(
        """
        enum Color { BLUE }
        type B { b: Int }
        union Thing = B
        type Query { other: Color }
        """
    )

    schema = merge_schemas([first, second])

    assert set(schema.get_type("Color").values) == {"RED", "BLUE"}
    assert {type_.name for type_ in schema.get_type("Thing").types} == {"A", "B"}


def test_conflicting_field_types_are_rejected():
    first = build_schema("type User { id: ID } type Query { user: User }")
    second = build_schema("type User { id: Int } type Query { other: User }")

    with pytest.raises(SchemaError, match="User.id"):
        merge_schemas([first, second])


def test_conflicting_kinds_are_rejected():
    first = build_schema("type Thing { id: ID } type Query { thing: Thing }")
    second = build_schema("input Thing { id: ID } type Query { count(thing: Thing): Int }")

    with pytest.raises(SchemaError):
        merge_schemas([first, second])


def test_merge_needs_query_fields():
    with pytest.raises(SchemaError, match="no query fields"):
        merge_schemas(["type Foo { id: ID }"])


def test_invalid_type_definitions_are_reported():
    with pytest.raises(SchemaError):
        merge_schemas([booking_schema, "extend type Booking { "])


@pytest.mark.parametrize(
    "resolvers",
    [
        {"Unknown": {"field": lambda *_: None}},
        {"Booking": {"unknown": lambda *_: None}},
        {"Booking": {"id": 42}},
        {"Booking": {"__resolve_type": lambda *_: None}},
    ],
)
def test_bad_resolver_maps_are_rejected(resolvers):
    with pytest.raises(SchemaError):
        merge_schemas([booking_schema], resolvers=resolvers)


@pytest.mark.asyncio
async def test_type_definitions_can_add_root_fields_with_resolvers():
    schema = merge_schemas(
        [
            booking_schema,
            property_schema,
            "type Query { bookingCount: Int! }",
        ],
        resolvers={"Query": {"bookingCount": lambda _, info: 3}},
    )

    result = await graphql(schema, "{ bookingCount bookingById(id: \"b2\") { id } }")

    assert result.errors is None
    assert result.data == {"bookingCount": 3, "bookingById": {"id": "b2"}}


def test_subschema_type_defs_and_resolvers_are_merged():
    bookings = Subschema(
        booking_schema._schema,
        executor=StrawberryExecutor(booking_schema),
        type_defs="extend type Booking { nights: Int }",
        resolvers={"Booking": {"nights": {"fragment": "... on Booking { id }", "resolve": lambda *_: 30}}},
    )

    schema = merge_schemas([bookings])

    assert "nights" in schema.get_type("Booking").fields
    assert "Booking" in get_merge_info(schema).fragments


@pytest.mark.asyncio
async def test_shared_fragments_are_not_duplicated():
    executor = RecordingExecutor(StrawberryExecutor(booking_schema))
    schema = merge_schemas(
        [Subschema(booking_schema._schema, executor=executor)],
        resolvers={
            "Booking": {
                "customer": {"fragment": "... on Booking { id }"},
            }
        },
    )

    await graphql(
        schema,
        """
        {
          bookings(limit: 1) {
            ...BookingFields
            customer { bookings { ...BookingFields } }
          }
        }
        fragment BookingFields on Booking { id startTime }
        """,
    )

    definitions = executor.requests[0].document.definitions
    assert [definition.name.value for definition in definitions[1:]] == ["BookingFields"]


@pytest.mark.asyncio
async def test_null_aliased_value_does_not_borrow_an_unaliased_sibling():
    product_schema = executable_schema(
        """
        type Product {
          price(currency: String): Float
        }
        type Query {
          product: Product
        }
        """,
        {
            "Query": {"product": lambda _, info: {}},
            "Product": {
                "price": lambda _, info, currency=None: None if currency == "XXX" else 10.0
            },
        },
    )
    schema = merge_schemas([product_schema])

    result = await graphql(schema, '{ product { cheap: price(currency: "XXX") price } }')

    assert result.errors is None
    assert result.data == {"product": {"cheap": None, "price": 10.0}}
