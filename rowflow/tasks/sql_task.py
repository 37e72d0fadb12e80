"""Ad-hoc SQL execution."""

from typing import Any, Callable, List, Optional, Sequence

from rowflow.connections.bulk_insert import TableData
from rowflow.connections.manager import DbConnectionManager, QueryParameters
from rowflow.tasks.base import Executable, HasConnection, Loggable


class SqlTask(Executable, HasConnection, Loggable):
    """Runs one SQL command on a fresh clone of the connection manager.

    Example:
        >>> SqlTask(cm, "UPDATE orders SET state = :s", parameters={"s": "done"}).execute()
    """

    def __init__(
        self,
        connection_manager: DbConnectionManager,
        sql: str,
        name: Optional[str] = None,
        parameters: QueryParameters = None,
        disable_logging: bool = False,
    ):
        self._init_connection(connection_manager)
        self._init_logging(name or f"Execute SQL: {sql.strip()[:60]}", disable_logging)
        self.sql = sql
        self.parameters = parameters
        self.rows_affected: Optional[int] = None

    def execute(self) -> int:
        return self.execute_non_query()

    def execute_non_query(self) -> int:
        self.log_start()
        with self.connection_manager.clone() as conn:
            self.rows_affected = conn.execute_non_query(self.sql, self.parameters)
        self.log_finish()
        return self.rows_affected

    def execute_scalar(self) -> Any:
        self.log_start()
        with self.connection_manager.clone() as conn:
            result = conn.execute_scalar(self.sql, self.parameters)
        self.log_finish()
        return result

    def execute_scalar_as_bool(self) -> bool:
        result = self.execute_scalar()
        if result is None:
            return False
        if isinstance(result, str):
            return result.strip().lower() in ("1", "true", "yes")
        return bool(result)

    def execute_reader(self, row_action: Callable[[Sequence[Any]], None]) -> int:
        """Call ``row_action`` for every result row; return the row count."""
        self.log_start()
        count = 0
        with self.connection_manager.clone() as conn:
            result = conn.execute_reader(self.sql, self.parameters)
            try:
                for row in result:
                    row_action(tuple(row))
                    count += 1
            finally:
                result.close()
        self.log_progress(count)
        self.log_finish()
        return count

    def query(self) -> List[tuple]:
        rows: List[tuple] = []
        self.execute_reader(rows.append)
        return rows

    def bulk_insert(self, data: TableData, table_name: str) -> int:
        self.log_start()
        with self.connection_manager.clone() as conn:
            count = conn.bulk_insert(data, table_name)
        self.log_progress(count)
        self.log_finish()
        return count
