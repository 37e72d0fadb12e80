"""Row adapters.

A stage deals with one row shape for its whole lifetime. The adapter for that
shape is chosen when the stage is built, so the hot path never inspects a row
to find out what it is.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from rowflow.exceptions import SchemaMismatchError
from rowflow.schema.definitions import ColumnMapping


class RowAdapter(ABC):
    """Builds rows from a reader and turns rows into ordered value tuples."""

    @abstractmethod
    def from_values(self, columns: Sequence[str], values: Sequence[Any]) -> Any:
        """Build a row from column names and their values."""

    @abstractmethod
    def to_values(self, row: Any, mapping: Sequence[ColumnMapping]) -> Tuple[Any, ...]:
        """Return the values of ``row`` in the order of ``mapping``."""

    def from_reader(self, reader) -> Any:
        columns = reader.columns
        values = [
            None if reader.is_null(column) else reader.get_column(column)
            for column in columns
        ]
        return self.from_values(columns, values)


class PositionalRowAdapter(RowAdapter):
    """Rows are tuples.

    Without ``field_names`` the n-th value goes to the n-th mapped column.
    With ``field_names`` the mapping's source column is looked up by name.
    """

    def __init__(self, field_names: Optional[Sequence[str]] = None):
        self.field_names = list(field_names) if field_names is not None else None
        self._indexes: Dict[Tuple[str, ...], List[int]] = {}

    def from_values(self, columns: Sequence[str], values: Sequence[Any]) -> tuple:
        return tuple(values)

    def to_values(self, row: Sequence[Any], mapping: Sequence[ColumnMapping]) -> Tuple[Any, ...]:
        if self.field_names is None:
            if len(row) != len(mapping):
                raise SchemaMismatchError(
                    f"Row has {len(row)} values but {len(mapping)} columns are mapped"
                )
            return tuple(row)
        return tuple(row[i] for i in self._index_for(mapping))

    def _index_for(self, mapping: Sequence[ColumnMapping]) -> List[int]:
        key = tuple(m.source_column for m in mapping)
        indexes = self._indexes.get(key)
        if indexes is None:
            missing = [name for name in key if name not in self.field_names]
            if missing:
                raise SchemaMismatchError(
                    f"Source fields not found: {', '.join(missing)}",
                    missing_columns=missing,
                )
            indexes = [self.field_names.index(name) for name in key]
            self._indexes[key] = indexes
        return indexes


class NamedRowAdapter(RowAdapter):
    """Rows are mappings or objects with attributes.

    Args:
        row_factory: Called with the column values as keyword arguments to build
            a row; ``None`` builds a plain dict
    """

    def __init__(self, row_factory: Optional[Callable[..., Any]] = None):
        self.row_factory = row_factory

    def from_values(self, columns: Sequence[str], values: Sequence[Any]) -> Any:
        data = dict(zip(columns, values))
        if self.row_factory is None:
            return data
        return self.row_factory(**data)

    def to_values(self, row: Any, mapping: Sequence[ColumnMapping]) -> Tuple[Any, ...]:
        if isinstance(row, Mapping):
            return tuple(row.get(m.source_column) for m in mapping)
        return tuple(getattr(row, m.source_column, None) for m in mapping)
