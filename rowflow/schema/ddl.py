"""CREATE TABLE rendering for every supported dialect."""

import re
from typing import List, Optional

from rowflow.connections.dialects import Dialect, TableNameDescriptor, quote_identifier
from rowflow.exceptions import UnsupportedFeatureError
from rowflow.schema.data_types import DataTypeConverter
from rowflow.schema.definitions import TableColumn, TableDefinition

_NUMERIC_LITERAL = re.compile(r"^\d+(\.\d+)?$")

_POSTGRES_SERIAL_TYPES = {"BIGINT": "BIGSERIAL", "SMALLINT": "SMALLSERIAL"}


def quote_default_value(value: str) -> str:
    """Quote a default value unless it is purely numeric."""
    if _NUMERIC_LITERAL.match(value):
        return value
    return "'" + value.replace("'", "''") + "'"


class CreateTableSqlRenderer:
    """Renders a :class:`TableDefinition` as a CREATE TABLE statement."""

    def __init__(self, dialect: Dialect):
        self.dialect = dialect

    def q(self, identifier: str) -> str:
        return quote_identifier(identifier, self.dialect)

    def render(self, table: TableDefinition) -> str:
        """Return the DDL for ``table``.

        Raises:
            UnsupportedFeatureError: If a column uses a feature the dialect
                cannot express
        """
        tn = TableNameDescriptor(table.name, self.dialect)
        self._check_identity(table)
        definitions = [self.column_sql(col, table) for col in table.columns]
        constraint = self._table_primary_key_sql(table, tn)
        if constraint:
            definitions.append(constraint)
        body = ",\n".join(f"  {d}" for d in definitions)
        return f"CREATE TABLE {tn.quoted_full_name} (\n{body}\n)"

    def column_sql(self, col: TableColumn, table: TableDefinition) -> str:
        parts = [
            self.q(col.name),
            self._data_type_sql(col),
            self._null_sql(col),
            self._identity_sql(col),
            self._collation_sql(col),
            self._inline_primary_key_sql(col, table),
            self._default_sql(col),
            self._computed_column_sql(col),
        ]
        return " ".join(p for p in parts if p)

    def _data_type_sql(self, col: TableColumn) -> str:
        if self.dialect is Dialect.SQLSERVER and col.has_computed_column:
            return ""
        if col.is_identity and self.dialect in (Dialect.POSTGRES, Dialect.ACCESS):
            return ""
        if col.is_identity and self.dialect is Dialect.SQLITE:
            return "INTEGER"
        return DataTypeConverter.get_db_specific_type(col.data_type, self.dialect)

    def _null_sql(self, col: TableColumn) -> str:
        if col.has_computed_column:
            return ""
        if col.is_identity and self.dialect is Dialect.POSTGRES:
            return ""
        return "NULL" if col.allow_nulls else "NOT NULL"

    def _identity_sql(self, col: TableColumn) -> str:
        if not col.is_identity or self.dialect is Dialect.SQLITE:
            return ""
        seed = col.identity_seed if col.identity_seed is not None else 1
        increment = col.identity_increment if col.identity_increment is not None else 1
        if self.dialect is Dialect.MYSQL:
            return "AUTO_INCREMENT"
        if self.dialect is Dialect.POSTGRES:
            return _POSTGRES_SERIAL_TYPES.get(col.data_type.strip().upper(), "SERIAL")
        if self.dialect is Dialect.ACCESS:
            return f"AUTOINCREMENT({seed},{increment})"
        return f"IDENTITY({seed},{increment})"

    def _collation_sql(self, col: TableColumn) -> str:
        if col.collation and col.collation.strip():
            return f"COLLATE {col.collation}"
        return ""

    def _pk_name(self, tn: TableNameDescriptor, columns: List[TableColumn]) -> str:
        return self.q("_".join(["pk", tn.table] + [c.name for c in columns]))

    def _inline_primary_key_sql(self, col: TableColumn, table: TableDefinition) -> str:
        # SQLite declares a single key column inline, which is also the only
        # way to get an auto-incrementing rowid alias
        pk_columns = table.primary_key_columns
        if self.dialect is not Dialect.SQLITE or len(pk_columns) != 1 or not col.is_primary_key:
            return ""
        tn = TableNameDescriptor(table.name, self.dialect)
        sql = f"CONSTRAINT {self._pk_name(tn, [col])} PRIMARY KEY"
        if col.is_identity:
            sql += " AUTOINCREMENT"
        return sql

    def _table_primary_key_sql(self, table: TableDefinition, tn: TableNameDescriptor) -> Optional[str]:
        pk_columns = table.primary_key_columns
        if not pk_columns:
            return None
        if self.dialect is Dialect.SQLITE and len(pk_columns) == 1:
            return None
        key_list = ", ".join(self.q(c.name) for c in pk_columns)
        return f"CONSTRAINT {self._pk_name(tn, pk_columns)} PRIMARY KEY ({key_list})"

    def _default_sql(self, col: TableColumn) -> str:
        if col.is_primary_key or col.default_value is None:
            return ""
        return f"DEFAULT {quote_default_value(col.default_value)}"

    def _computed_column_sql(self, col: TableColumn) -> str:
        if not col.has_computed_column:
            return ""
        if self.dialect in (Dialect.SQLITE, Dialect.ACCESS):
            raise UnsupportedFeatureError(
                f"{self.dialect.value} does not support computed columns "
                f"(column {col.name})",
                dialect=self.dialect,
            )
        expression = f"({col.computed_column.strip()})"
        if self.dialect is Dialect.POSTGRES:
            return f"GENERATED ALWAYS AS {expression} STORED"
        return f"AS {expression}"

    def _check_identity(self, table: TableDefinition) -> None:
        if self.dialect is not Dialect.SQLITE:
            return
        pk_columns = table.primary_key_columns
        for col in table.columns:
            if col.is_identity and not (col.is_primary_key and len(pk_columns) == 1):
                raise UnsupportedFeatureError(
                    "SQLite supports identity columns only as the single "
                    f"primary key column (column {col.name})",
                    dialect=self.dialect,
                )


def render_create_table(table: TableDefinition, dialect: Dialect) -> str:
    return CreateTableSqlRenderer(dialect).render(table)
