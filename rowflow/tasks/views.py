"""View management."""

from rowflow.connections.dialects import Dialect
from rowflow.connections.manager import DbConnectionManager
from rowflow.tasks.base import Executable, HasConnection, Loggable
from rowflow.tasks.drop import DropViewTask
from rowflow.tasks.exists import IfTableOrViewExistsTask
from rowflow.tasks.sql_task import SqlTask

# Dialects without ALTER VIEW: an existing view is dropped and recreated
_RECREATE_DIALECTS = (Dialect.SQLITE, Dialect.POSTGRES)


class CreateViewTask(Executable, HasConnection, Loggable):
    """Creates or alters a view."""

    def __init__(
        self,
        connection_manager: DbConnectionManager,
        view_name: str,
        definition: str,
        disable_logging: bool = False,
    ):
        self._init_connection(connection_manager)
        self._init_logging(f"Create or alter view {view_name}", disable_logging)
        self.view_name = view_name
        self.definition = definition

    def sql(self, is_existing: bool) -> str:
        verb = "CREATE"
        if is_existing and self.dialect not in _RECREATE_DIALECTS:
            verb = "ALTER"
        tn = self.table_name_descriptor(self.view_name)
        return f"{verb} VIEW {tn.quoted_full_name}\nAS\n{self.definition}"

    def execute(self) -> None:
        self.log_start()
        is_existing = IfTableOrViewExistsTask(self.connection_manager, self.view_name).exists()
        if is_existing and self.dialect in _RECREATE_DIALECTS:
            DropViewTask(self.connection_manager, self.view_name, disable_logging=True).drop()
        SqlTask(
            self.connection_manager, self.sql(is_existing), name=self.task_name, disable_logging=True
        ).execute()
        self.log_finish()

    def create_or_alter(self) -> None:
        self.execute()
