"""Tests for the gateway HTTP API."""

import pytest
from fastapi.testclient import TestClient

from graphweave.api import create_app
from graphweave.core.config import settings


@pytest.fixture
def client(merged_schema):
    with TestClient(create_app(merged_schema)) as test_client:
        yield test_client


def test_root_describes_the_service(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == settings.app_name
    assert body["graphql_path"] == settings.graphql_path
    assert body["status"] == "operational"


def test_health_reports_schema_statistics(client):
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["schema"]["root_fields"]["query"] >= 5
    assert "mutation" not in body["schema"]["root_fields"]


def test_queries_are_answered(client):
    response = client.post(
        settings.graphql_path,
        json={
            "query": "query Get($id: ID!) { bookingById(id: $id) { id propertyId } }",
            "variables": {"id": "b1"},
            "operationName": "Get",
        },
    )

    assert response.status_code == 200
    assert response.json() == {"data": {"bookingById": {"id": "b1", "propertyId": "p1"}}}


def test_invalid_queries_return_errors_in_the_body(client):
    response = client.post(settings.graphql_path, json={"query": "{ nope }"})

    assert response.status_code == 200
    body = response.json()
    assert body["data"] is None
    assert "nope" in body["errors"][0]["message"]


def test_gateway_without_schema():
    with TestClient(create_app()) as client:
        assert client.get("/health").json()["status"] == "unavailable"
        response = client.post(settings.graphql_path, json={"query": "{ hello }"})

    assert response.status_code == 503
