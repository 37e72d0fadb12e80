"""CREATE TABLE task."""

from rowflow.connections.manager import DbConnectionManager
from rowflow.exceptions import TableExistsError
from rowflow.schema.ddl import CreateTableSqlRenderer
from rowflow.schema.definitions import TableDefinition
from rowflow.tasks.base import Executable, HasConnection, Loggable
from rowflow.tasks.exists import IfTableOrViewExistsTask
from rowflow.tasks.sql_task import SqlTask


class CreateTableTask(Executable, HasConnection, Loggable):
    """Creates a table. If the table exists, the table is left unchanged.

    Example:
        >>> CreateTableTask(cm, TableDefinition("demo.table1", [
        ...     TableColumn("key", "INT", allow_nulls=False, is_primary_key=True, is_identity=True),
        ...     TableColumn("value", "NVARCHAR(100)"),
        ... ])).create()
    """

    def __init__(
        self,
        connection_manager: DbConnectionManager,
        table_definition: TableDefinition,
        throw_error_if_exists: bool = False,
        disable_logging: bool = False,
    ):
        self._init_connection(connection_manager)
        self._init_logging(f"Create table {table_definition.name}", disable_logging)
        self.table_definition = table_definition
        self.throw_error_if_exists = throw_error_if_exists

    @property
    def table_name(self) -> str:
        return self.table_definition.name

    @property
    def sql(self) -> str:
        return CreateTableSqlRenderer(self.dialect).render(self.table_definition)

    def execute(self) -> bool:
        """Create the table when absent; return whether DDL was executed.

        Raises:
            TableExistsError: If the table exists and ``throw_error_if_exists``
            UnsupportedFeatureError: If the dialect cannot express a column
        """
        sql = self.sql
        exists = IfTableOrViewExistsTask(self.connection_manager, self.table_name).exists()
        if exists and self.throw_error_if_exists:
            raise TableExistsError(self.table_name)
        if exists:
            return False
        self.log_start()
        SqlTask(self.connection_manager, sql, name=self.task_name, disable_logging=True).execute()
        self.log_finish()
        return True

    def create(self) -> bool:
        return self.execute()


def create_table(
    connection_manager: DbConnectionManager,
    table_definition: TableDefinition,
    throw_error_if_exists: bool = False,
) -> bool:
    return CreateTableTask(
        connection_manager, table_definition, throw_error_if_exists=throw_error_if_exists
    ).execute()
