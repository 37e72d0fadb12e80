from .bulk_insert import BulkInsertSql, TableData
from .connection_string import ConnectionString
from .dialects import Dialect, TableNameDescriptor, quote_identifier
from .manager import (
    AccessOdbcConnectionManager,
    DbConnectionManager,
    MySqlConnectionManager,
    OdbcConnectionManager,
    PostgresConnectionManager,
    SQLiteConnectionManager,
    SqlServerConnectionManager,
    connection_manager_for,
)
from .retry import RetryConfig, RetryHandler, linear_delay, no_delay

__all__ = [
    "AccessOdbcConnectionManager",
    "BulkInsertSql",
    "ConnectionString",
    "DbConnectionManager",
    "Dialect",
    "MySqlConnectionManager",
    "OdbcConnectionManager",
    "PostgresConnectionManager",
    "RetryConfig",
    "RetryHandler",
    "SQLiteConnectionManager",
    "SqlServerConnectionManager",
    "TableData",
    "TableNameDescriptor",
    "connection_manager_for",
    "linear_delay",
    "no_delay",
    "quote_identifier",
]
