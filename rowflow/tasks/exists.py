"""Existence checks for tables, views, databases and stored procedures."""

from typing import Dict

from rowflow.connections.dialects import Dialect
from rowflow.connections.manager import DbConnectionManager
from rowflow.exceptions import UnsupportedFeatureError
from rowflow.tasks.base import Executable, HasConnection, Loggable


class IfTableOrViewExistsTask(Executable, HasConnection, Loggable):
    """Checks whether a table or view exists, through SQLAlchemy inspection."""

    def __init__(
        self,
        connection_manager: DbConnectionManager,
        object_name: str,
        disable_logging: bool = True,
    ):
        self._init_connection(connection_manager)
        self._init_logging(f"Check if {object_name} exists", disable_logging)
        self.object_name = object_name

    def execute(self) -> bool:
        return self.exists()

    def exists(self) -> bool:
        self.log_start()
        tn = self.table_name_descriptor(self.object_name)
        with self.connection_manager.clone() as conn:
            result = conn.has_table(tn.table, schema=tn.schema)
        self.log_finish()
        return result


class _CatalogExistsTask(Executable, HasConnection, Loggable):
    """Looks an object up in the server catalog with a dialect-specific count query."""

    object_kind = "object"
    catalog_sql: Dict[Dialect, str] = {}

    def __init__(
        self,
        connection_manager: DbConnectionManager,
        object_name: str,
        disable_logging: bool = True,
    ):
        self._init_connection(connection_manager)
        self._init_logging(f"Check if {self.object_kind} {object_name} exists", disable_logging)
        self.object_name = object_name

    @property
    def sql(self) -> str:
        sql = self.catalog_sql.get(self.dialect)
        if sql is None:
            raise UnsupportedFeatureError(
                f"Checking for {self.object_kind}s is not supported with {self.dialect.value}",
                dialect=self.dialect,
            )
        return sql

    def execute(self) -> bool:
        return self.exists()

    def exists(self) -> bool:
        sql = self.sql
        self.log_start()
        with self.connection_manager.clone() as conn:
            count = conn.execute_scalar(sql, {"name": self.object_name})
        self.log_finish()
        return bool(count)


class IfDatabaseExistsTask(_CatalogExistsTask):
    """Checks whether a database exists on the server."""

    object_kind = "database"
    catalog_sql = {
        Dialect.SQLSERVER: "SELECT COUNT(*) FROM sys.databases WHERE [name] = :name",
        Dialect.MYSQL: "SELECT COUNT(*) FROM INFORMATION_SCHEMA.SCHEMATA WHERE SCHEMA_NAME = :name",
        Dialect.POSTGRES: "SELECT COUNT(*) FROM pg_database WHERE datname = :name",
    }


class IfProcedureExistsTask(_CatalogExistsTask):
    """Checks whether a stored procedure exists.

    The name may be schema-qualified. An unqualified name matches any schema
    on Postgres and the current database on MySQL.
    """

    object_kind = "procedure"
    catalog_sql = {
        Dialect.SQLSERVER: (
            "SELECT COUNT(*) FROM sys.objects WHERE type = 'P' AND object_id = OBJECT_ID(:name)"
        ),
        Dialect.MYSQL: (
            "SELECT COUNT(*) FROM INFORMATION_SCHEMA.ROUTINES "
            "WHERE ROUTINE_TYPE = 'PROCEDURE' "
            "AND (CONCAT(ROUTINE_SCHEMA, '.', ROUTINE_NAME) = :name "
            "OR (ROUTINE_SCHEMA = DATABASE() AND ROUTINE_NAME = :name))"
        ),
        Dialect.POSTGRES: (
            "SELECT COUNT(*) FROM pg_catalog.pg_proc p "
            "JOIN pg_catalog.pg_namespace n ON p.pronamespace = n.oid "
            "WHERE CONCAT(n.nspname, '.', p.proname) = :name OR p.proname = :name"
        ),
    }
