"""
Shared fixtures for the graphweave test suite.
"""

import os

os.environ.setdefault("GRAPHWEAVE_ENVIRONMENT", "testing")

import pytest  # noqa: E402

from graphweave.federation import merge_schemas  # noqa: E402
from tests.sample_schemas import booking_schema, post_schema, property_schema  # noqa: E402


@pytest.fixture
def merged_schema():
    """Booking and property schemas merged without links between them."""
    return merge_schemas([booking_schema, property_schema])


@pytest.fixture
def merged_post_schema():
    return merge_schemas([post_schema])
