"""Row readers: cursor-style access to an external feed.

A reader is opened once, advanced with ``next()`` and read column by column.
Sources combine a reader with a row adapter to produce rows.
"""

import math
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

import pandas as pd

from rowflow.connections.manager import DbConnectionManager, QueryParameters
from rowflow.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 10000


class RowReader(ABC):
    """Forward-only reader over a tabular feed."""

    def __init__(self):
        self._current: Dict[str, Any] = {}
        self._columns: List[str] = []

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    @abstractmethod
    def open(self) -> None:
        """Open the underlying feed."""

    @abstractmethod
    def next(self) -> bool:
        """Advance to the next row; return False when exhausted."""

    def get_column(self, name: str) -> Any:
        return self._current[name]

    def is_null(self, name: str) -> bool:
        value = self._current.get(name)
        if value is None:
            return True
        return isinstance(value, float) and math.isnan(value)

    def close(self) -> None:
        """Release the underlying feed."""

    def __enter__(self) -> "RowReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class IterableRowReader(RowReader):
    """Reads tuples from any iterable, given the column names."""

    def __init__(self, rows: Iterable[Sequence[Any]], columns: Sequence[str]):
        super().__init__()
        self.rows = rows
        self._columns = list(columns)
        self._iterator: Optional[Iterator[Sequence[Any]]] = None

    def open(self) -> None:
        self._iterator = iter(self.rows)

    def next(self) -> bool:
        try:
            values = next(self._iterator)
        except StopIteration:
            return False
        self._current = dict(zip(self._columns, values))
        return True


class CsvRowReader(RowReader):
    """Reads a CSV file in chunks with pandas.

    Every column is read as text unless ``dtype`` says otherwise; empty cells
    become NULL. ``skip_rows`` lines before the header (or the first data line)
    are ignored.
    """

    def __init__(
        self,
        path: str,
        delimiter: str = ",",
        encoding: str = "utf-8",
        has_header: bool = True,
        columns: Optional[Sequence[str]] = None,
        skip_rows: int = 0,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        dtype: Any = str,
    ):
        super().__init__()
        self.path = path
        self.delimiter = delimiter
        self.encoding = encoding
        self.has_header = has_header
        self.names = list(columns) if columns else None
        self.skip_rows = skip_rows
        self.chunk_size = chunk_size
        self.dtype = dtype
        self._chunks = None
        self._records: Iterator[tuple] = iter(())

    def open(self) -> None:
        logger.debug("Opening CSV file %s", self.path)
        header = 0 if self.has_header else None
        self._chunks = pd.read_csv(
            self.path,
            delimiter=self.delimiter,
            encoding=self.encoding,
            skiprows=self.skip_rows,
            header=header,
            names=self.names,
            dtype=self.dtype,
            keep_default_na=False,
            na_values=[""],
            chunksize=self.chunk_size,
        )
        self._columns = []
        self._records = iter(())

    def next(self) -> bool:
        while True:
            record = next(self._records, None)
            if record is not None:
                self._current = {
                    column: (None if pd.isna(value) else value)
                    for column, value in zip(self._columns, record)
                }
                return True
            chunk = next(self._chunks, None)
            if chunk is None:
                return False
            if not self._columns:
                self._columns = [str(c) for c in chunk.columns]
            self._records = chunk.itertuples(index=False, name=None)

    def close(self) -> None:
        if self._chunks is not None:
            self._chunks.close()
            self._chunks = None


class QueryRowReader(RowReader):
    """Streams the result of a SELECT through a connection manager."""

    def __init__(
        self,
        connection_manager: DbConnectionManager,
        sql: str,
        parameters: QueryParameters = None,
    ):
        super().__init__()
        self.connection_manager = connection_manager
        self.sql = sql
        self.parameters = parameters
        self._result = None

    def open(self) -> None:
        self._result = self.connection_manager.execute_reader(self.sql, self.parameters)
        self._columns = list(self._result.keys())

    def next(self) -> bool:
        row = self._result.fetchone()
        if row is None:
            return False
        self._current = dict(zip(self._columns, tuple(row)))
        return True

    def close(self) -> None:
        if self._result is not None:
            self._result.close()
            self._result = None
        self.connection_manager.close()
