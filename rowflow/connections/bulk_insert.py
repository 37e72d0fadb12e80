"""Bulk insert statement generation.

Builds the statements inserting a whole batch of rows, split into as many
statements as the dialect's parameter and row limits require. Dialects with
multi-row ``VALUES`` get a plain ``INSERT ... VALUES (...), (...)``. Drivers
without multi-row inserts (the Access ODBC driver) get a simulated bulk insert:
a ``UNION ALL`` of single-row ``SELECT``s read from a one-row dummy table.
"""

from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from rowflow.connections.dialects import (
    Dialect,
    TableNameDescriptor,
    max_statement_rows,
    quote_identifier,
    supports_multi_row_values,
    uses_named_parameters,
)
from rowflow.logging import get_logger
from rowflow.schema.definitions import ColumnMapping

logger = get_logger(__name__)

DEFAULT_DUMMY_TABLE = "rowflow_dummy"

Parameters = Optional[Union[Dict[str, Any], List[Any]]]


class TableData:
    """Rows to insert together with the mapping that orders their values.

    Each row holds one value per entry of ``column_mapping``, in the same order.
    """

    def __init__(self, column_mapping: Sequence[ColumnMapping], rows: Sequence[Sequence[Any]] = ()):
        self.column_mapping: List[ColumnMapping] = list(column_mapping)
        self.rows: List[Sequence[Any]] = list(rows)

    @property
    def source_columns(self) -> List[str]:
        return [m.source_column for m in self.column_mapping]

    @property
    def destination_columns(self) -> List[str]:
        return [m.destination_column for m in self.column_mapping]

    def __iter__(self) -> Iterator[Sequence[Any]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


class BulkInsertSql:
    """Creates the bulk insert statement for one batch.

    Args:
        dialect: Target dialect
        use_parameter_query: Bind values as parameters (default) instead of
            inlining them as quoted literals
        use_named_parameters: ``:P0, :P1, ...`` placeholders instead of ``?``;
            defaults to the dialect's preference
        dummy_table_name: One-row table used by the Access simulation
    """

    def __init__(
        self,
        dialect: Dialect,
        use_parameter_query: bool = True,
        use_named_parameters: Optional[bool] = None,
        dummy_table_name: str = DEFAULT_DUMMY_TABLE,
    ):
        self.dialect = dialect
        self.use_parameter_query = use_parameter_query
        self.use_named_parameters = (
            uses_named_parameters(dialect)
            if use_named_parameters is None
            else use_named_parameters
        )
        self.dummy_table_name = dummy_table_name
        self._parameter_count = 0
        self._parameters: Parameters = None

    def create_statement(self, data: TableData, table_name: str) -> Tuple[str, Parameters]:
        """Build the statement and its parameters for all rows of ``data``."""
        self._init_parameters()
        destination_columns = data.destination_columns
        lines = [self._begin_sql(table_name, destination_columns)]

        value_lists = [
            self._value_list_sql(self._row_values(row, destination_columns))
            for row in data
        ]
        if self.is_access_database:
            lines.append("\n UNION ALL \n".join(value_lists))
            lines.append(") a;")
        else:
            lines.append(",\n".join(value_lists))

        sql = "\n".join(lines)
        logger.debug(
            "Created bulk insert for %s with %d rows and %d parameters",
            table_name,
            len(data),
            self._parameter_count,
        )
        return sql, self._parameters

    @property
    def is_access_database(self) -> bool:
        return not supports_multi_row_values(self.dialect)

    def rows_per_statement(self, column_count: int) -> Optional[int]:
        return max_statement_rows(self.dialect, column_count, self.use_parameter_query)

    def create_statements(
        self, data: TableData, table_name: str
    ) -> Iterator[Tuple[str, Parameters]]:
        """Build as many statements as the dialect's limits require for ``data``."""
        chunk_size = self.rows_per_statement(len(data.column_mapping))
        if chunk_size is None or len(data) <= chunk_size:
            yield self.create_statement(data, table_name)
            return
        for start in range(0, len(data), chunk_size):
            chunk = TableData(data.column_mapping, data.rows[start:start + chunk_size])
            yield self.create_statement(chunk, table_name)

    def _init_parameters(self) -> None:
        self._parameter_count = 0
        if not self.use_parameter_query:
            self._parameters = None
        elif self.use_named_parameters:
            self._parameters = {}
        else:
            self._parameters = []

    def _begin_sql(self, table_name: str, destination_columns: List[str]) -> str:
        table = TableNameDescriptor(table_name, self.dialect).quoted_full_name
        columns = ", ".join(quote_identifier(c, self.dialect) for c in destination_columns)
        prologue = f"INSERT INTO {table} ({columns})"
        if self.is_access_database:
            return f"{prologue}\n  SELECT * FROM ("
        return f"{prologue}\nVALUES"

    def _row_values(self, row: Sequence[Any], destination_columns: List[str]) -> List[str]:
        values = []
        for value, column in zip(row, destination_columns):
            if value is None:
                values.append(self._null_value(column))
            else:
                values.append(self._non_null_value(value, column))
        return values

    def _null_value(self, column: str) -> str:
        if self.use_parameter_query:
            return self._create_parameter(None)
        if self.is_access_database:
            return f"NULL AS {quote_identifier(column, self.dialect)}"
        return "NULL"

    def _non_null_value(self, value: Any, column: str) -> str:
        if self.use_parameter_query:
            return self._create_parameter(value)
        literal = str(value).replace("'", "''")
        if self.is_access_database:
            return f"'{literal}' AS {quote_identifier(column, self.dialect)}"
        return f"'{literal}'"

    def _create_parameter(self, value: Any) -> str:
        if self.use_named_parameters:
            name = f"P{self._parameter_count}"
            self._parameters[name] = value
            self._parameter_count += 1
            return f":{name}"
        self._parameters.append(value)
        self._parameter_count += 1
        return "?"

    def _value_list_sql(self, values: List[str]) -> str:
        if self.is_access_database:
            dummy = quote_identifier(self.dummy_table_name, self.dialect)
            return f"SELECT {', '.join(values)} FROM {dummy}"
        return f"({', '.join(values)})"
