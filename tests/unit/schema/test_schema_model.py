"""Tests for table definitions and data type translation."""

import pytest

from rowflow.connections.dialects import Dialect
from rowflow.exceptions import SchemaMismatchError
from rowflow.schema.data_types import DataTypeConverter, get_string_length, is_char_type
from rowflow.schema.definitions import ColumnMapping, TableColumn, TableDefinition


class TestDataTypeConverter:
    @pytest.mark.parametrize(
        "data_type,dialect,expected",
        [
            ("INT", Dialect.SQLITE, "INTEGER"),
            ("NVARCHAR(50)", Dialect.SQLITE, "NVARCHAR(50)"),
            ("NVARCHAR(50)", Dialect.POSTGRES, "VARCHAR(50)"),
            ("NVARCHAR(MAX)", Dialect.POSTGRES, "TEXT"),
            ("DATETIME2", Dialect.POSTGRES, "TIMESTAMP"),
            ("BIT", Dialect.POSTGRES, "BOOLEAN"),
            ("UNIQUEIDENTIFIER", Dialect.POSTGRES, "UUID"),
            ("NVARCHAR(MAX)", Dialect.MYSQL, "LONGTEXT"),
            ("UNIQUEIDENTIFIER", Dialect.MYSQL, "CHAR(36)"),
            ("NVARCHAR(300)", Dialect.ACCESS, "LONGTEXT"),
            ("NVARCHAR(100)", Dialect.ACCESS, "VARCHAR(100)"),
            ("INT", Dialect.ACCESS, "INTEGER"),
            ("NVARCHAR(100)", Dialect.SQLSERVER, "NVARCHAR(100)"),
            ("JSONB", Dialect.POSTGRES, "JSONB"),
        ],
    )
    def test_translation(self, data_type, dialect, expected):
        assert DataTypeConverter.get_db_specific_type(data_type, dialect) == expected

    def test_char_helpers(self):
        assert is_char_type("nvarchar(20)")
        assert not is_char_type("INT")
        assert get_string_length("VARCHAR(20)") == 20
        assert get_string_length("VARCHAR(MAX)") is None


class TestTableDefinition:
    def _table(self):
        return TableDefinition(
            "orders",
            [
                TableColumn("id", "INT", is_primary_key=True, is_identity=True),
                TableColumn("qty", "INT"),
                TableColumn("total", "INT", computed_column="qty * 2"),
            ],
        )

    def test_default_mapping_skips_identity_and_computed(self):
        assert self._table().default_column_mapping() == [ColumnMapping("qty", "qty")]

    def test_primary_key_columns(self):
        assert [c.name for c in self._table().primary_key_columns] == ["id"]

    def test_validate_mapping_reports_missing_columns(self):
        with pytest.raises(SchemaMismatchError) as exc_info:
            self._table().validate_mapping(
                [ColumnMapping("a", "qty"), ColumnMapping("b", "price")], stage_name="dest"
            )
        assert exc_info.value.missing_columns == ["price"]
        assert exc_info.value.stage_name == "dest"
        assert str(exc_info.value).startswith("[dest]")

    def test_from_dict(self):
        table = TableDefinition.from_dict(
            {
                "name": "items",
                "columns": [
                    {"name": "id", "data_type": "INT", "is_primary_key": True, "allow_nulls": False},
                    {"name": "price", "data_type": "DECIMAL(10,2)", "default_value": 0},
                ],
            }
        )
        assert table.column_names == ["id", "price"]
        assert table.get_column("price").default_value == "0"
        assert table.get_column("id").is_primary_key

    def test_from_dict_requires_data_type(self):
        with pytest.raises(ValueError, match="data_type"):
            TableDefinition.from_dict({"name": "t", "columns": [{"name": "a"}]})
