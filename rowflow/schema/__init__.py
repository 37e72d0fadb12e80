from .data_types import DataTypeConverter
from .ddl import CreateTableSqlRenderer, render_create_table
from .definitions import ColumnMapping, TableColumn, TableDefinition

__all__ = [
    "ColumnMapping",
    "CreateTableSqlRenderer",
    "DataTypeConverter",
    "TableColumn",
    "TableDefinition",
    "render_create_table",
]
