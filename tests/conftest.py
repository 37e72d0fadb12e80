"""Pytest configuration for RowFlow tests."""

import os
from typing import Generator, List

import pytest

from rowflow.connections.manager import SQLiteConnectionManager
from rowflow.connections.retry import RetryConfig, no_delay
from rowflow.schema.definitions import TableColumn, TableDefinition
from rowflow.tasks.create_table import CreateTableTask


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    """URL of an empty SQLite database file."""
    return f"sqlite:///{os.path.join(str(tmp_path), 'rowflow_test.db')}"


@pytest.fixture
def sqlite_manager(sqlite_url) -> Generator[SQLiteConnectionManager, None, None]:
    """Connection manager for the test database, closed after the test."""
    manager = SQLiteConnectionManager(
        sqlite_url, retry_config=RetryConfig(max_attempts=1, delay=no_delay)
    )
    yield manager
    manager.close()


@pytest.fixture
def orders_definition() -> TableDefinition:
    return TableDefinition(
        "orders",
        [
            TableColumn("id", "INT", allow_nulls=False, is_primary_key=True),
            TableColumn("customer", "NVARCHAR(100)"),
            TableColumn("amount", "DECIMAL(10,2)"),
        ],
    )


@pytest.fixture
def orders_table(sqlite_manager, orders_definition) -> TableDefinition:
    """Create the ``orders`` table in the test database."""
    CreateTableTask(sqlite_manager, orders_definition, disable_logging=True).create()
    return orders_definition


@pytest.fixture
def order_rows() -> List[dict]:
    return [
        {"id": i, "customer": f"customer_{i}", "amount": round(i * 1.5, 2)}
        for i in range(1, 11)
    ]
