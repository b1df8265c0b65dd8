"""
Shared pytest fixtures and configuration for keypage tests.

This module provides common fixtures used across unit and integration tests,
including sample datasets, mocked boto3 clients and LocalStack clients.
"""

import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import boto3
import pytest

if TYPE_CHECKING:
    from tests.helpers.localstack import LocalStackHelper


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line("markers", "integration: Integration tests against LocalStack")


@pytest.fixture
def scenario_rows() -> list[dict[str, Any]]:
    """The three-row dataset ordered by (t desc, id desc)."""
    return [
        {"id": 5, "t": 10},
        {"id": 4, "t": 10},
        {"id": 3, "t": 9},
    ]


@pytest.fixture
def event_rows() -> list[dict[str, Any]]:
    """
    A larger dataset with ties on every leading column.

    Ordered by (kind asc, created_at desc, id asc) there are duplicates
    on kind and on created_at, so every tie-break level is exercised.
    """
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    rows = []
    for i in range(23):
        rows.append(
            {
                "id": i + 1,
                "kind": ["alpha", "beta", "gamma"][i % 3],
                "created_at": base + timedelta(hours=i // 4),
                "amount": Decimal(i) / 4,
            }
        )
    return rows


@pytest.fixture
def mock_client():
    """
    Creates a fully mocked boto3 DynamoDB client.

    get_paginator("query").paginate(...) returns no responses unless a test
    configures it.
    """
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = []
    return client


@pytest.fixture
def sample_messages_data() -> list[dict[str, Any]]:
    """Messages of one room, in DynamoDB JSON, sorted by timestamp."""
    return [
        {
            "room_id": {"S": "general"},
            "timestamp": {"S": f"2023-01-01T{hour:02d}:00:00Z"},
            "content": {"S": f"message {hour}"},
            "likes": {"N": str(hour % 3)},
        }
        for hour in range(9, 15)
    ]


# Integration Test Fixtures


@pytest.fixture(scope="session")
def localstack_endpoint() -> str:
    """Get LocalStack endpoint URL from environment or default."""
    return os.getenv("LOCALSTACK_ENDPOINT", "http://localhost:4566")


@pytest.fixture(scope="session")
def localstack_client(localstack_endpoint: str):
    """
    Creates a boto3 client connected to LocalStack.

    This fixture is session-scoped to avoid creating multiple clients.
    """
    return boto3.client(
        "dynamodb",
        endpoint_url=localstack_endpoint,
        region_name="eu-south-1",
        aws_access_key_id="test",
        aws_secret_access_key="test",
    )


@pytest.fixture(scope="session")
def localstack_helper(localstack_endpoint: str) -> "LocalStackHelper":
    """Provides a LocalStackHelper instance for integration tests."""
    from tests.helpers.localstack import LocalStackHelper

    return LocalStackHelper(endpoint_url=localstack_endpoint)


@pytest.fixture
def messages_table(localstack_helper):
    """
    Creates a fresh messages table (room_id / timestamp) and cleans up after.
    """
    table_name = "integration_test_messages"
    localstack_helper.create_table(
        table_name=table_name, pk_name="room_id", sk_name="timestamp", sk_type="S"
    )
    localstack_helper.clear_table(table_name, pk_name="room_id", sk_name="timestamp")

    yield table_name

    localstack_helper.clear_table(table_name, pk_name="room_id", sk_name="timestamp")
