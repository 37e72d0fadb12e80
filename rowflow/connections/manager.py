"""Database connection managers.

A connection manager owns exactly one physical connection. Stages and tasks
that need to work concurrently call :meth:`DbConnectionManager.clone` to get a
manager with its own connection to the same database.
"""

from __future__ import annotations

from abc import ABC
from typing import Any, Dict, Mapping, Optional, Sequence, Type, Union

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from rowflow.connections.bulk_insert import BulkInsertSql, TableData
from rowflow.connections.connection_string import ConnectionString
from rowflow.connections.dialects import Dialect, quote_identifier
from rowflow.connections.retry import RetryConfig, RetryExhaustedError, RetryHandler
from rowflow.exceptions import BulkWriteError, DbConnectionError
from rowflow.logging import get_logger

logger = get_logger(__name__)

QueryParameters = Optional[Union[Mapping[str, Any], Sequence[Any]]]


class DbConnectionManager(ABC):
    """Base class for all connection managers.

    Args:
        connection_string: Connection string or SQLAlchemy URL
        retry_config: Retry policy used by :meth:`open`
        max_login_attempts: Shortcut overriding ``retry_config.max_attempts``
        use_parameter_query: Bind bulk insert values as parameters instead of
            inlining literals
    """

    dialect: Dialect

    def __init__(
        self,
        connection_string: Union[str, ConnectionString],
        retry_config: Optional[RetryConfig] = None,
        max_login_attempts: Optional[int] = None,
        use_parameter_query: bool = True,
    ):
        self.connection_string = ConnectionString(connection_string)
        self.retry_config = retry_config or RetryConfig()
        if max_login_attempts is not None:
            self.retry_config = RetryConfig(
                max_attempts=max_login_attempts,
                delay=self.retry_config.delay,
                sleep=self.retry_config.sleep,
                retry_on_exceptions=self.retry_config.retry_on_exceptions,
            )
        self.use_parameter_query = use_parameter_query
        self._engine: Optional[Engine] = None
        self._connection: Optional[Connection] = None

    @property
    def max_login_attempts(self) -> int:
        return self.retry_config.max_attempts

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            # NullPool: closing the connection really closes it
            self._engine = create_engine(self.connection_string.url, poolclass=NullPool)
            logger.debug("Created engine for %s", self.connection_string)
        return self._engine

    @property
    def connection(self) -> Connection:
        """The open connection, opening it on first use."""
        if self._connection is None:
            self.open()
        return self._connection

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def _create_connection(self) -> Connection:
        return self.engine.connect()

    def open(self) -> None:
        """Open the physical connection, retrying failed attempts.

        Raises:
            DbConnectionError: If every login attempt failed
        """
        self.close()
        handler = RetryHandler(self.retry_config, name=f"Connect to {self.connection_string}")
        try:
            self._connection = handler.execute_with_retry(self._create_connection)
        except RetryExhaustedError as e:
            raise DbConnectionError(
                f"Could not connect to {self.connection_string} "
                f"after {e.attempts} attempts: {e.last_exception}",
                attempts=e.attempts,
            ) from e.last_exception
        except SQLAlchemyError as e:
            raise DbConnectionError(
                f"Could not connect to {self.connection_string}: {e}", attempts=1
            ) from e
        self.after_open()

    def after_open(self) -> None:
        """Hook run after every successful open."""

    def clone(self) -> "DbConnectionManager":
        """Create an independent manager for the same database."""
        return type(self)(
            self.connection_string,
            retry_config=self.retry_config,
            use_parameter_query=self.use_parameter_query,
        )

    def _execute(self, sql: str, parameters: QueryParameters = None) -> CursorResult:
        connection = self.connection
        if parameters is None:
            return connection.exec_driver_sql(sql)
        if isinstance(parameters, Mapping):
            return connection.execute(text(sql), dict(parameters))
        return connection.exec_driver_sql(sql, tuple(parameters))

    def _run(self, sql: str) -> None:
        self.connection.exec_driver_sql(sql).close()

    def execute_non_query(self, sql: str, parameters: QueryParameters = None) -> int:
        """Run a command and commit; return the number of affected rows."""
        try:
            result = self._execute(sql, parameters)
            row_count = result.rowcount
            self.connection.commit()
        except SQLAlchemyError:
            self._rollback()
            raise
        return row_count if row_count is not None and row_count >= 0 else 0

    def execute_scalar(self, sql: str, parameters: QueryParameters = None) -> Any:
        """Return the first column of the first row, or ``None``."""
        try:
            row = self._execute(sql, parameters).first()
            self.connection.commit()
        except SQLAlchemyError:
            self._rollback()
            raise
        return None if row is None else row[0]

    def execute_reader(self, sql: str, parameters: QueryParameters = None) -> CursorResult:
        """Return the open result; iterate it for rows and call ``keys()`` for names."""
        return self._execute(sql, parameters)

    def has_table(self, table_name: str, schema: Optional[str] = None) -> bool:
        inspector = inspect(self.connection)
        if inspector.has_table(table_name, schema=schema):
            return True
        return table_name in inspector.get_view_names(schema=schema)

    def create_bulk_insert_sql(self) -> BulkInsertSql:
        return BulkInsertSql(self.dialect, use_parameter_query=self.use_parameter_query)

    def before_bulk_insert(self, table_name: str) -> None:
        """Hook executed before every bulk insert."""

    def after_bulk_insert(self, table_name: str) -> None:
        """Hook executed after every bulk insert, also when it failed."""

    def bulk_insert(self, data: TableData, table_name: str) -> int:
        """Insert all rows of ``data`` into ``table_name`` in one transaction.

        The rows are split into several statements when the dialect limits the
        parameters or rows of a single statement.

        Raises:
            BulkWriteError: If an insert command failed
        """
        if len(data) == 0:
            return 0
        self.before_bulk_insert(table_name)
        try:
            for sql, parameters in self.create_bulk_insert_sql().create_statements(
                data, table_name
            ):
                self._execute(sql, parameters)
            self.connection.commit()
        except SQLAlchemyError as e:
            self._rollback()
            logger.error("Bulk insert into %s failed: %s", table_name, e)
            raise BulkWriteError(
                f"Bulk insert of {len(data)} rows into {table_name} failed: {e}",
                table_name=table_name,
                row_count=len(data),
            ) from e
        finally:
            self.after_bulk_insert(table_name)
        return len(data)

    def _rollback(self) -> None:
        if self._connection is not None:
            try:
                self._connection.rollback()
            except SQLAlchemyError as e:
                logger.warning("Rollback failed: %s", e)

    def close(self) -> None:
        """Release the physical connection; calling it again does nothing."""
        if self._connection is not None:
            connection, self._connection = self._connection, None
            connection.close()
            logger.debug("Closed connection to %s", self.connection_string)
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __enter__(self) -> "DbConnectionManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.connection_string})"


class SQLiteConnectionManager(DbConnectionManager):
    """SQLite; bulk inserts run with relaxed durability pragmas."""

    dialect = Dialect.SQLITE

    def before_bulk_insert(self, table_name: str) -> None:
        self._run("PRAGMA synchronous = OFF")
        self._run("PRAGMA journal_mode = MEMORY")

    def after_bulk_insert(self, table_name: str) -> None:
        if self._connection is None:
            return
        self._run("PRAGMA synchronous = FULL")
        self._run("PRAGMA journal_mode = DELETE")


class PostgresConnectionManager(DbConnectionManager):
    dialect = Dialect.POSTGRES


class SqlServerConnectionManager(DbConnectionManager):
    dialect = Dialect.SQLSERVER


class MySqlConnectionManager(DbConnectionManager):
    """MySQL; foreign key checks are disabled while a batch is written."""

    dialect = Dialect.MYSQL

    def before_bulk_insert(self, table_name: str) -> None:
        self._run("SET FOREIGN_KEY_CHECKS = 0")

    def after_bulk_insert(self, table_name: str) -> None:
        if self._connection is not None:
            self._run("SET FOREIGN_KEY_CHECKS = 1")


class OdbcConnectionManager(DbConnectionManager):
    """Generic ODBC driver with positional parameters."""

    dialect = Dialect.ODBC


class AccessOdbcConnectionManager(OdbcConnectionManager):
    """Microsoft Access through ODBC.

    The driver has no multi-row insert, so bulk inserts select every row from a
    one-row dummy table that exists only for the duration of the insert.
    """

    dialect = Dialect.ACCESS
    dummy_table_name = "rowflow_dummy"

    def create_bulk_insert_sql(self) -> BulkInsertSql:
        return BulkInsertSql(
            self.dialect,
            use_parameter_query=self.use_parameter_query,
            dummy_table_name=self.dummy_table_name,
        )

    def before_bulk_insert(self, table_name: str) -> None:
        if self.has_table(self.dummy_table_name):
            return
        dummy = quote_identifier(self.dummy_table_name, self.dialect)
        self._run(f"CREATE TABLE {dummy} (Field1 INTEGER)")
        self._run(f"INSERT INTO {dummy} VALUES (1)")
        self.connection.commit()

    def after_bulk_insert(self, table_name: str) -> None:
        if self._connection is None:
            return
        dummy = quote_identifier(self.dummy_table_name, self.dialect)
        self._run(f"DROP TABLE {dummy}")
        self._connection.commit()


CONNECTION_MANAGERS: Dict[Dialect, Type[DbConnectionManager]] = {
    Dialect.SQLITE: SQLiteConnectionManager,
    Dialect.POSTGRES: PostgresConnectionManager,
    Dialect.SQLSERVER: SqlServerConnectionManager,
    Dialect.MYSQL: MySqlConnectionManager,
    Dialect.ODBC: OdbcConnectionManager,
    Dialect.ACCESS: AccessOdbcConnectionManager,
}


def connection_manager_for(
    connection_string: Union[str, ConnectionString], **kwargs
) -> DbConnectionManager:
    """Create the connection manager matching the connection string's driver."""
    cs = ConnectionString(connection_string)
    return CONNECTION_MANAGERS[cs.dialect](cs, **kwargs)
