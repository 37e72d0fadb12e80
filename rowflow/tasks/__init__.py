from .base import Executable, HasConnection, Loggable
from .create_table import CreateTableTask, create_table
from .drop import DropTableTask, DropViewTask
from .exists import IfDatabaseExistsTask, IfProcedureExistsTask, IfTableOrViewExistsTask
from .sql_task import SqlTask
from .table_tasks import RowCountTask, TruncateTableTask
from .views import CreateViewTask

__all__ = [
    "CreateTableTask",
    "CreateViewTask",
    "DropTableTask",
    "DropViewTask",
    "Executable",
    "HasConnection",
    "IfDatabaseExistsTask",
    "IfProcedureExistsTask",
    "IfTableOrViewExistsTask",
    "Loggable",
    "RowCountTask",
    "SqlTask",
    "TruncateTableTask",
    "create_table",
]
