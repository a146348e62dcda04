"""
Subschemas shared by the test suite.

The booking, property and post schemas are strawberry schemas; the user
schemas used by the tree-operation tests are built from SDL with graphql-core.
"""

from enum import Enum
from typing import Any, Callable, List, Mapping, NewType, Optional

import strawberry
from graphql import GraphQLSchema, build_schema

from graphweave.transforms.base import Request, Response

# ---------------------------------------------------------------------------
# Booking schema
# ---------------------------------------------------------------------------


@strawberry.type
class Address:
    street: Optional[str]
    city: Optional[str]


@strawberry.type
class Customer:
    id: strawberry.ID
    email: str
    name: str
    address: Optional[Address]

    @strawberry.field
    def bookings(self, limit: Optional[int] = None) -> List["Booking"]:
        found = [booking for booking in BOOKINGS.values() if booking.customer_id == self.id]
        return found[:limit] if limit is not None else found


@strawberry.type
class Booking:
    id: strawberry.ID
    property_id: strawberry.ID
    start_time: str
    end_time: str
    customer_id: strawberry.Private[str]

    @strawberry.field
    def customer(self) -> Customer:
        return CUSTOMERS[self.customer_id]


CUSTOMERS = {
    "c1": Customer(
        id="c1",
        email="examplec1@example.com",
        name="Exampler Customer",
        address=Address(street="Main Street 1", city="Helsinki"),
    ),
    "c2": Customer(id="c2", email="examplec2@example.com", name="Joe Doe", address=None),
}

BOOKINGS = {
    "b1": Booking(
        id="b1", property_id="p1", start_time="2016-05-04", end_time="2016-06-03", customer_id="c1"
    ),
    "b2": Booking(
        id="b2", property_id="p1", start_time="2016-06-04", end_time="2016-07-03", customer_id="c1"
    ),
    "b3": Booking(
        id="b3", property_id="p2", start_time="2016-08-04", end_time="2016-09-03", customer_id="c2"
    ),
}


@strawberry.type(name="Query")
class BookingQuery:
    @strawberry.field
    def booking_by_id(self, id: strawberry.ID) -> Optional[Booking]:
        return BOOKINGS.get(id)

    @strawberry.field
    def customer_by_id(self, id: strawberry.ID) -> Optional[Customer]:
        return CUSTOMERS.get(id)

    @strawberry.field
    def bookings(self, limit: Optional[int] = None) -> List[Booking]:
        found = list(BOOKINGS.values())
        return found[:limit] if limit is not None else found


booking_schema = strawberry.Schema(query=BookingQuery)

# ---------------------------------------------------------------------------
# Property schema
# ---------------------------------------------------------------------------

DateTime = strawberry.scalar(
    NewType("DateTime", str),
    serialize=lambda value: value,
    parse_value=lambda value: value,
)


@strawberry.type
class Location:
    name: str
    coordinates: strawberry.Private[str]


@strawberry.type
class Property:
    id: strawberry.ID
    name: str
    location: Optional[Location]


@strawberry.enum
class TestInterfaceKind(Enum):
    ONE = "ONE"
    TWO = "TWO"


@strawberry.interface
class TestInterface:
    kind: Optional[TestInterfaceKind]
    test_string: Optional[str]


@strawberry.type
class TestImpl1(TestInterface):
    foo: Optional[str]


@strawberry.type
class TestImpl2(TestInterface):
    bar: Optional[str]


@strawberry.input
class InputWithDefault:
    test: str = "Foo"


PROPERTIES = {
    "p1": Property(
        id="p1",
        name="Super great hotel",
        location=Location(name="Helsinki", coordinates="60.1698° N, 24.9386° E"),
    ),
    "p2": Property(
        id="p2",
        name="Another great hotel",
        location=Location(name="San Francisco", coordinates="37.7749° N, 122.4194° W"),
    ),
    "p3": Property(
        id="p3",
        name="BedBugs - The Affordable Hostel",
        location=Location(name="Paris", coordinates="48.8566° N, 2.3522° E"),
    ),
}


def find_property_by_location_name(name: str) -> Property:
    for prop in PROPERTIES.values():
        if prop.location is not None and prop.location.name == name:
            return prop
    raise LookupError(name)


@strawberry.type(name="Query")
class PropertyQuery:
    @strawberry.field
    def property_by_id(self, id: strawberry.ID) -> Optional[Property]:
        return PROPERTIES.get(id)

    @strawberry.field
    def properties(self, limit: Optional[int] = None) -> List[Property]:
        found = list(PROPERTIES.values())
        return found[:limit] if limit is not None else found

    @strawberry.field
    def interface_test(self, kind: TestInterfaceKind) -> Optional[TestInterface]:
        if kind == TestInterfaceKind.ONE:
            return TestImpl1(kind=kind, test_string="test", foo="foo")
        return TestImpl2(kind=kind, test_string="test", bar="bar")

    @strawberry.field
    def date_time_test(self) -> Optional[DateTime]:
        return "1987-09-25T12:00:00"

    @strawberry.field
    def default_input_test(self, input: InputWithDefault) -> str:
        return input.test


property_schema = strawberry.Schema(query=PropertyQuery, types=[TestImpl1, TestImpl2])

# ---------------------------------------------------------------------------
# Post schema (errors and fragments)
# ---------------------------------------------------------------------------


@strawberry.type
class User:
    id: strawberry.ID

    @strawberry.field
    def email(self) -> Optional[str]:
        if self.id == "u2":
            raise ValueError("Email of u2 is private")
        return f"{self.id}@example.com"


@strawberry.type
class Post:
    id: strawberry.ID
    owner_id: strawberry.Private[str]

    @strawberry.field
    def title(self) -> str:
        if self.id == "p3":
            raise ValueError("Title of p3 failed to load")
        return f"Post {self.id}"

    @strawberry.field
    def owner(self) -> User:
        return User(id=self.owner_id)


POSTS = {
    "p1": Post(id="p1", owner_id="u1"),
    "p2": Post(id="p2", owner_id="u2"),
    "p3": Post(id="p3", owner_id="u1"),
}


@strawberry.type(name="Query")
class PostQuery:
    @strawberry.field
    def post(self, id: strawberry.ID) -> Optional[Post]:
        return POSTS.get(id)

    @strawberry.field
    def posts(self) -> List[Optional[Post]]:
        return list(POSTS.values())


post_schema = strawberry.Schema(query=PostQuery)

# ---------------------------------------------------------------------------
# SDL helpers
# ---------------------------------------------------------------------------


def executable_schema(
    sdl: str, resolvers: Mapping[str, Mapping[str, Callable[..., Any]]]
) -> GraphQLSchema:
    """Build a schema from SDL and install plain field resolvers on it."""
    schema = build_schema(sdl)
    for type_name, fields in resolvers.items():
        type_ = schema.get_type(type_name)
        for field_name, resolver in fields.items():
            type_.fields[field_name].resolve = resolver
    return schema


class RecordingExecutor:
    """Executor wrapper remembering every request it was asked to run."""

    def __init__(self, inner):
        self.inner = inner
        self.requests: List[Request] = []

    async def __call__(self, request: Request, context: Any = None, root_value: Any = None) -> Response:
        self.requests.append(request)
        return await self.inner(request, context=context, root_value=root_value)


def as_dict(data: Any) -> Any:
    """Turn nested mappings into plain dicts for comparisons."""
    if isinstance(data, Mapping):
        return {key: as_dict(value) for key, value in data.items()}
    if isinstance(data, list):
        return [as_dict(item) for item in data]
    return data


