"""DROP tasks for tables and views."""

from rowflow.connections.manager import DbConnectionManager
from rowflow.tasks.base import HasConnection, Loggable
from rowflow.tasks.exists import IfTableOrViewExistsTask
from rowflow.tasks.sql_task import SqlTask


class _DropTask(HasConnection, Loggable):
    object_type = "TABLE"

    def __init__(
        self,
        connection_manager: DbConnectionManager,
        object_name: str,
        disable_logging: bool = False,
    ):
        self._init_connection(connection_manager)
        self._init_logging(f"Drop {self.object_type.lower()} {object_name}", disable_logging)
        self.object_name = object_name

    @property
    def sql(self) -> str:
        tn = self.table_name_descriptor(self.object_name)
        return f"DROP {self.object_type} {tn.quoted_full_name}"

    def drop(self) -> None:
        """Drop the object; fails with the driver's error when it is missing."""
        self.log_start()
        SqlTask(self.connection_manager, self.sql, name=self.task_name, disable_logging=True).execute()
        self.log_finish()

    def drop_if_exists(self) -> bool:
        """Drop the object when it exists; return whether it was dropped."""
        if not IfTableOrViewExistsTask(self.connection_manager, self.object_name).exists():
            return False
        self.drop()
        return True


class DropTableTask(_DropTask):
    """Drops a table. Use ``drop_if_exists`` to drop it only if it exists."""

    object_type = "TABLE"


class DropViewTask(_DropTask):
    object_type = "VIEW"
