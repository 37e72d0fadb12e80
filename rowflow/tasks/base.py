"""Capabilities composed by control-flow tasks and dataflow stages.

A concrete task combines only what it needs: :class:`Executable` for a single
entry point, :class:`HasConnection` for an explicit connection manager and
:class:`Loggable` for START/END and progress logging.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from rowflow.connections.dialects import Dialect, TableNameDescriptor, quote_identifier
from rowflow.logging import get_logger

if TYPE_CHECKING:
    from rowflow.connections.manager import DbConnectionManager

logger = get_logger("rowflow.tasks")


class Executable(ABC):
    """Something that can be run once with ``execute()``."""

    @abstractmethod
    def execute(self) -> Any:
        """Run the unit of work."""


class HasConnection:
    """Holds the connection manager a task runs against."""

    connection_manager: "DbConnectionManager"

    def _init_connection(self, connection_manager: "DbConnectionManager") -> None:
        if connection_manager is None:
            raise ValueError(f"{type(self).__name__}: a connection manager is required")
        self.connection_manager = connection_manager

    @property
    def dialect(self) -> Dialect:
        return self.connection_manager.dialect

    def q(self, identifier: str) -> str:
        return quote_identifier(identifier, self.dialect)

    def table_name_descriptor(self, name: str) -> TableNameDescriptor:
        return TableNameDescriptor(name, self.dialect)


class Loggable:
    """START/END and progress logging under a task name."""

    task_name: str = "N/A"
    disable_logging: bool = False
    logging_threshold_rows: Optional[int] = None
    progress_count: int = 0

    def _init_logging(
        self,
        task_name: Optional[str] = None,
        disable_logging: bool = False,
        logging_threshold_rows: Optional[int] = None,
    ) -> None:
        if task_name:
            self.task_name = task_name
        self.disable_logging = disable_logging
        self.logging_threshold_rows = logging_threshold_rows
        self.progress_count = 0
        self._threshold_count = 1

    @property
    def task_type(self) -> str:
        return type(self).__name__

    def log_start(self) -> None:
        if not self.disable_logging:
            logger.info("START %s: %s", self.task_type, self.task_name)

    def log_finish(self) -> None:
        if self.disable_logging:
            return
        if self.logging_threshold_rows:
            logger.info(
                "%s processed %d records in total.", self.task_name, self.progress_count
            )
        logger.info("END %s: %s", self.task_type, self.task_name)

    def log_progress(self, rows_processed: int) -> None:
        self.progress_count += rows_processed
        if self.disable_logging or not self.logging_threshold_rows:
            return
        if self.progress_count >= self.logging_threshold_rows * self._threshold_count:
            logger.info("%s processed %d records.", self.task_name, self.progress_count)
            while self.progress_count >= self.logging_threshold_rows * self._threshold_count:
                self._threshold_count += 1
