"""Sources: the stages that start a dataflow."""

import threading
from concurrent.futures import Future
from typing import Any, Iterable, Iterator, Optional, Sequence

from rowflow.connections.dialects import TableNameDescriptor
from rowflow.connections.manager import DbConnectionManager, QueryParameters
from rowflow.dataflow.readers import CsvRowReader, QueryRowReader, RowReader
from rowflow.dataflow.rows import NamedRowAdapter, RowAdapter
from rowflow.dataflow.stage import DataFlowStage, StageState
from rowflow.exceptions import SourceReadError
from rowflow.logging import get_logger

logger = get_logger(__name__)


class DataFlowSource(DataFlowStage):
    """Base class of all sources.

    ``execute()`` reads every row on the calling thread and pushes it through
    the links. Downstream workers are started before the first row is read.
    """

    accepts_input = False

    def _read_rows(self) -> Iterator[Any]:
        raise NotImplementedError

    def iter_rows(self) -> Iterator[Any]:
        """Read the rows without pushing them through the links."""
        return self._read_rows()

    def start_downstream(self) -> None:
        stages = self.downstream_stages()
        logger.debug("%s: starting %d downstream stages", self.name, len(stages))
        for stage in stages:
            stage.start()

    def execute(self) -> None:
        """Read the whole feed and complete the downstream stages.

        Raises:
            SourceReadError: If the feed cannot be opened or fails mid-read
        """
        self.start_downstream()
        self.state = StageState.RUNNING
        self.log_start()
        try:
            for row in self._read_rows():
                self._emit(row)
                self.log_progress(1)
        except Exception as e:
            error = e
            if not isinstance(e, SourceReadError):
                error = SourceReadError(f"Reading failed: {e}", self.name)
            self._fault(error)
            self._done.set()
            if error is e:
                raise
            raise error from e
        self.state = StageState.COMPLETING
        self._propagate_completion()
        self.state = StageState.COMPLETED
        self.log_finish()
        self._done.set()

    def execute_async(self) -> "Future[None]":
        """Run ``execute()`` on a new thread and return its future."""
        future: "Future[None]" = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                self.execute()
            except Exception as e:
                future.set_exception(e)
            else:
                future.set_result(None)

        threading.Thread(target=run, name=f"rowflow-{self.name}", daemon=True).start()
        return future


class MemorySource(DataFlowSource):
    """Emits the rows of an in-memory collection as they are."""

    def __init__(self, data: Optional[Iterable[Any]] = None, **kwargs):
        super().__init__(**kwargs)
        self.data = list(data) if data is not None else []

    def _read_rows(self) -> Iterator[Any]:
        return iter(self.data)


class ReaderSource(DataFlowSource):
    """Emits the rows of a :class:`RowReader`, shaped by a row adapter."""

    def __init__(
        self,
        reader: Optional[RowReader] = None,
        adapter: Optional[RowAdapter] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.reader = reader
        self.adapter = adapter or NamedRowAdapter()

    def create_reader(self) -> RowReader:
        if self.reader is None:
            raise ValueError(f"{self.name}: no reader configured")
        return self.reader

    def _read_rows(self) -> Iterator[Any]:
        reader = self.create_reader()
        reader.open()
        try:
            while reader.next():
                yield self.adapter.from_reader(reader)
        finally:
            reader.close()


class CsvSource(ReaderSource):
    """Reads a CSV file.

    Example:
        >>> source = CsvSource("orders.csv")
        >>> source.link_to(DbDestination(cm, "orders"))
        >>> source.execute()
    """

    def __init__(
        self,
        path: str,
        delimiter: str = ",",
        encoding: str = "utf-8",
        has_header: bool = True,
        columns: Optional[Sequence[str]] = None,
        skip_rows: int = 0,
        adapter: Optional[RowAdapter] = None,
        **kwargs,
    ):
        super().__init__(adapter=adapter, **kwargs)
        self.path = path
        self.delimiter = delimiter
        self.encoding = encoding
        self.has_header = has_header
        self.columns = columns
        self.skip_rows = skip_rows

    def create_reader(self) -> RowReader:
        return CsvRowReader(
            self.path,
            delimiter=self.delimiter,
            encoding=self.encoding,
            has_header=self.has_header,
            columns=self.columns,
            skip_rows=self.skip_rows,
        )


class DbSource(ReaderSource):
    """Reads a table or the result of a query.

    Either ``table_name`` or ``sql`` is required. The source reads on a clone
    of ``connection_manager``.
    """

    def __init__(
        self,
        connection_manager: DbConnectionManager,
        table_name: Optional[str] = None,
        sql: Optional[str] = None,
        parameters: QueryParameters = None,
        adapter: Optional[RowAdapter] = None,
        **kwargs,
    ):
        if connection_manager is None:
            raise ValueError("DbSource: a connection manager is required")
        if not table_name and not sql:
            raise ValueError("DbSource: either 'table_name' or 'sql' is required")
        super().__init__(adapter=adapter, **kwargs)
        self.connection_manager = connection_manager
        self.table_name = table_name
        self.sql = sql
        self.parameters = parameters

    @property
    def select_sql(self) -> str:
        if self.sql:
            return self.sql
        tn = TableNameDescriptor(self.table_name, self.connection_manager.dialect)
        return f"SELECT * FROM {tn.quoted_full_name}"

    def create_reader(self) -> RowReader:
        return QueryRowReader(self.connection_manager.clone(), self.select_sql, self.parameters)
