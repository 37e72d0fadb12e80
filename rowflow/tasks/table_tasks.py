"""Row count and truncate tasks."""

from typing import Optional

from rowflow.connections.dialects import Dialect
from rowflow.connections.manager import DbConnectionManager
from rowflow.tasks.base import Executable, HasConnection, Loggable
from rowflow.tasks.sql_task import SqlTask


class RowCountTask(Executable, HasConnection, Loggable):
    """Counts the rows of a table, optionally filtered by a WHERE condition."""

    def __init__(
        self,
        connection_manager: DbConnectionManager,
        table_name: str,
        condition: Optional[str] = None,
        disable_logging: bool = False,
    ):
        self._init_connection(connection_manager)
        self._init_logging(f"Count rows of {table_name}", disable_logging)
        self.table_name = table_name
        self.condition = condition

    @property
    def sql(self) -> str:
        tn = self.table_name_descriptor(self.table_name)
        sql = f"SELECT COUNT(*) FROM {tn.quoted_full_name}"
        if self.condition:
            sql += f" WHERE {self.condition}"
        return sql

    def execute(self) -> int:
        return self.count()

    def count(self) -> int:
        self.log_start()
        result = SqlTask(self.connection_manager, self.sql, disable_logging=True).execute_scalar()
        self.log_finish()
        return int(result or 0)


class TruncateTableTask(Executable, HasConnection, Loggable):
    """Removes all rows of a table."""

    def __init__(
        self,
        connection_manager: DbConnectionManager,
        table_name: str,
        disable_logging: bool = False,
    ):
        self._init_connection(connection_manager)
        self._init_logging(f"Truncate table {table_name}", disable_logging)
        self.table_name = table_name

    @property
    def sql(self) -> str:
        tn = self.table_name_descriptor(self.table_name)
        if self.dialect in (Dialect.SQLITE, Dialect.ACCESS):
            return f"DELETE FROM {tn.quoted_full_name}"
        return f"TRUNCATE TABLE {tn.quoted_full_name}"

    def execute(self) -> None:
        self.truncate()

    def truncate(self) -> None:
        self.log_start()
        SqlTask(self.connection_manager, self.sql, disable_logging=True).execute()
        self.log_finish()
