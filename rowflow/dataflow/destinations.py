"""Destinations: the stages that end a dataflow.

Rows are collected into batches of ``batch_size`` and written when a batch is
full and once more on completion for the remaining partial batch. The input
channel of a destination holds at most ``batch_size`` rows, so at most two
batches are in flight per destination.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, List, Optional, Sequence, Union

from rowflow.connections.bulk_insert import TableData
from rowflow.connections.manager import DbConnectionManager
from rowflow.dataflow.rows import NamedRowAdapter, RowAdapter
from rowflow.dataflow.stage import TargetStage
from rowflow.exceptions import BulkWriteError, SchemaMismatchError
from rowflow.logging import get_logger
from rowflow.schema.definitions import ColumnMapping, TableDefinition

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 1000

BatchHook = Callable[[List[Any]], List[Any]]
ColumnMappingSpec = Union[Sequence[ColumnMapping], Sequence[str], Mapping]


def to_column_mapping(spec: ColumnMappingSpec) -> List[ColumnMapping]:
    """Normalize a mapping given as ColumnMappings, column names or a dict."""
    if isinstance(spec, Mapping):
        return [ColumnMapping(src, dest) for src, dest in spec.items()]
    mapping = []
    for item in spec:
        if isinstance(item, ColumnMapping):
            mapping.append(item)
        else:
            mapping.append(ColumnMapping.identity(str(item)))
    return mapping


class DataFlowDestination(TargetStage, ABC):
    """Base class of all batching destinations.

    Args:
        batch_size: Number of rows written at once
        before_batch_write: Called with every batch before it is written; the
            returned list is written instead
        on_completion: Called on the worker thread after the last write
    """

    produces_output = False

    def __init__(
        self,
        batch_size: int = DEFAULT_BATCH_SIZE,
        before_batch_write: Optional[BatchHook] = None,
        on_completion: Optional[Callable[[], None]] = None,
        name: Optional[str] = None,
        logging_threshold_rows: Optional[int] = None,
        disable_logging: bool = False,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        super().__init__(name, batch_size, logging_threshold_rows, disable_logging)
        self.batch_size = batch_size
        self.before_batch_write = before_batch_write
        self.on_completion = on_completion
        self.flush_count = 0
        self._batch: List[Any] = []

    def _process(self, row: Any) -> None:
        self._batch.append(row)
        if len(self._batch) >= self.batch_size:
            self.flush()

    def _on_complete(self) -> None:
        if self._batch:
            self.flush()
        if self.on_completion is not None:
            self.on_completion()

    def flush(self) -> None:
        """Write the current batch."""
        batch, self._batch = self._batch, []
        if self.before_batch_write is not None:
            batch = self.before_batch_write(batch)
        self.write_batch(batch)
        self.flush_count += 1
        logger.debug("%s: wrote batch %d with %d rows", self.name, self.flush_count, len(batch))
        self.log_progress(len(batch))

    @abstractmethod
    def write_batch(self, batch: List[Any]) -> None:
        """Persist one batch."""


class MemoryDestination(DataFlowDestination):
    """Collects every row in ``data``."""

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE, **kwargs):
        super().__init__(batch_size, **kwargs)
        self.data: List[Any] = []

    def write_batch(self, batch: List[Any]) -> None:
        self.data.extend(batch)


class CustomDestination(DataFlowDestination):
    """Calls ``write_action`` for every row."""

    def __init__(
        self, write_action: Callable[[Any], None], batch_size: int = 1, **kwargs
    ):
        super().__init__(batch_size, **kwargs)
        self.write_action = write_action

    def write_batch(self, batch: List[Any]) -> None:
        for row in batch:
            self.write_action(row)


class DbDestination(DataFlowDestination):
    """Bulk inserts rows into a database table.

    The table definition is taken from ``table_definition`` or read from the
    database. Rows are converted to values with ``adapter`` following
    ``column_mapping``, which defaults to every insertable column of the table
    matched by name.

    Example:
        >>> dest = DbDestination(cm, "dbo.orders", batch_size=500)
        >>> MemorySource([{"id": 1, "amount": 9.5}]).link_to(dest)
    """

    def __init__(
        self,
        connection_manager: DbConnectionManager,
        table_name: Optional[str] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        table_definition: Optional[TableDefinition] = None,
        column_mapping: Optional[ColumnMappingSpec] = None,
        adapter: Optional[RowAdapter] = None,
        **kwargs,
    ):
        if connection_manager is None:
            raise ValueError("DbDestination: a connection manager is required")
        if not table_name and table_definition is None:
            raise ValueError("DbDestination: either 'table_name' or 'table_definition' is required")
        super().__init__(batch_size, **kwargs)
        self.connection_manager = connection_manager
        self.table_name = table_name or table_definition.name
        self.table_definition = table_definition
        self.column_mapping = to_column_mapping(column_mapping) if column_mapping else None
        self.adapter = adapter or NamedRowAdapter()
        self._connection: Optional[DbConnectionManager] = None

    def _on_start(self) -> None:
        self._connection = self.connection_manager.clone()
        if self.table_definition is None:
            try:
                self.table_definition = TableDefinition.from_table_name(
                    self.table_name, self._connection
                )
            except SchemaMismatchError as e:
                raise SchemaMismatchError(
                    e.message, table_name=self.table_name, stage_name=self.name
                ) from e
        if self.column_mapping is None:
            self.column_mapping = self.table_definition.default_column_mapping()
        self.table_definition.validate_mapping(self.column_mapping, self.name)

    def write_batch(self, batch: List[Any]) -> None:
        try:
            rows = [self.adapter.to_values(row, self.column_mapping) for row in batch]
        except SchemaMismatchError as e:
            raise SchemaMismatchError(
                e.message,
                table_name=self.table_name,
                missing_columns=e.missing_columns,
                stage_name=self.name,
            ) from e
        try:
            self._connection.bulk_insert(TableData(self.column_mapping, rows), self.table_name)
        except BulkWriteError as e:
            raise BulkWriteError(
                e.message, table_name=e.table_name, row_count=e.row_count, stage_name=self.name
            ) from e

    def _on_finish(self) -> None:
        if self._connection is not None:
            self._connection.close()
