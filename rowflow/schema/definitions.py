"""Table and column metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from sqlalchemy import inspect

from rowflow.connections.dialects import TableNameDescriptor
from rowflow.exceptions import SchemaMismatchError
from rowflow.logging import get_logger

if TYPE_CHECKING:
    from rowflow.connections.manager import DbConnectionManager

logger = get_logger(__name__)


@dataclass(frozen=True)
class ColumnMapping:
    """Pairs a field of the incoming row with a column of the target table."""

    source_column: str
    destination_column: str

    @classmethod
    def identity(cls, name: str) -> "ColumnMapping":
        return cls(name, name)


@dataclass
class TableColumn:
    """Definition of a single table column.

    ``default_value`` is the raw literal; it is quoted at render time unless it
    is purely numeric.
    """

    name: str
    data_type: str
    allow_nulls: bool = True
    is_primary_key: bool = False
    is_identity: bool = False
    identity_seed: Optional[int] = None
    identity_increment: Optional[int] = None
    default_value: Optional[str] = None
    computed_column: Optional[str] = None
    collation: Optional[str] = None

    @property
    def has_computed_column(self) -> bool:
        return bool(self.computed_column and self.computed_column.strip())

    @property
    def is_insertable(self) -> bool:
        """Identity and computed columns are filled by the database."""
        return not (self.is_identity or self.has_computed_column)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "TableColumn":
        """Create a column from a configuration dictionary.

        Raises:
            ValueError: If ``name`` or ``data_type`` is missing
        """
        if not config.get("name"):
            raise ValueError("Column definition missing required 'name' field")
        if not config.get("data_type"):
            raise ValueError(
                f"Column '{config['name']}' missing required 'data_type' field"
            )
        default = config.get("default_value")
        return cls(
            name=config["name"],
            data_type=config["data_type"],
            allow_nulls=config.get("allow_nulls", True),
            is_primary_key=config.get("is_primary_key", False),
            is_identity=config.get("is_identity", False),
            identity_seed=config.get("identity_seed"),
            identity_increment=config.get("identity_increment"),
            default_value=None if default is None else str(default),
            computed_column=config.get("computed_column"),
            collation=config.get("collation"),
        )


@dataclass
class TableDefinition:
    """A table name (optionally ``schema.table``) and its ordered columns."""

    name: str
    columns: List[TableColumn] = field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]

    @property
    def insertable_columns(self) -> List[TableColumn]:
        return [col for col in self.columns if col.is_insertable]

    @property
    def primary_key_columns(self) -> List[TableColumn]:
        return [col for col in self.columns if col.is_primary_key]

    def get_column(self, name: str) -> Optional[TableColumn]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def default_column_mapping(self) -> List[ColumnMapping]:
        return [ColumnMapping.identity(col.name) for col in self.insertable_columns]

    def validate_mapping(
        self, mapping: Iterable[ColumnMapping], stage_name: Optional[str] = None
    ) -> None:
        """Ensure every destination column of ``mapping`` exists in this table.

        Raises:
            SchemaMismatchError: If any destination column is unknown
        """
        known = set(self.column_names)
        missing = [m.destination_column for m in mapping if m.destination_column not in known]
        if missing:
            raise SchemaMismatchError(
                f"Columns {missing} do not exist in table {self.name}",
                table_name=self.name,
                missing_columns=missing,
                stage_name=stage_name,
            )

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "TableDefinition":
        if not config.get("name"):
            raise ValueError("Table definition missing required 'name' field")
        columns = [TableColumn.from_dict(c) for c in config.get("columns", [])]
        return cls(name=config["name"], columns=columns)

    @classmethod
    def from_table_name(
        cls, table_name: str, connection_manager: "DbConnectionManager"
    ) -> "TableDefinition":
        """Read the definition of an existing table through SQLAlchemy inspection.

        Raises:
            SchemaMismatchError: If the table does not exist
        """
        descriptor = TableNameDescriptor(table_name, connection_manager.dialect)
        inspector = inspect(connection_manager.connection)
        if not inspector.has_table(descriptor.table, schema=descriptor.schema):
            raise SchemaMismatchError(
                f"Table {table_name} does not exist", table_name=table_name
            )

        pk = inspector.get_pk_constraint(descriptor.table, schema=descriptor.schema)
        pk_columns = set(pk.get("constrained_columns") or [])
        columns = []
        for col in inspector.get_columns(descriptor.table, schema=descriptor.schema):
            computed = col.get("computed") or {}
            default = col.get("default")
            columns.append(
                TableColumn(
                    name=col["name"],
                    data_type=str(col["type"]),
                    allow_nulls=bool(col.get("nullable", True)),
                    is_primary_key=col["name"] in pk_columns,
                    is_identity=bool(col.get("autoincrement") is True or col.get("identity")),
                    default_value=None if default is None else str(default),
                    computed_column=computed.get("sqltext"),
                )
            )
        logger.debug("Loaded definition of %s with %d columns", table_name, len(columns))
        return cls(name=table_name, columns=columns)
