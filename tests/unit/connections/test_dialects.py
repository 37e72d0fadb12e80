"""Tests for dialect helpers and table name descriptors."""

import pytest

from rowflow.connections.dialects import (
    Dialect,
    TableNameDescriptor,
    dialect_from_driver_name,
    max_statement_rows,
    quote_identifier,
    supports_multi_row_values,
    uses_named_parameters,
)


class TestQuoteIdentifier:
    @pytest.mark.parametrize(
        "dialect,expected",
        [
            (Dialect.SQLSERVER, "[orders]"),
            (Dialect.ACCESS, "[orders]"),
            (Dialect.MYSQL, "`orders`"),
            (Dialect.POSTGRES, '"orders"'),
            (Dialect.SQLITE, '"orders"'),
            (Dialect.ODBC, "orders"),
        ],
    )
    def test_quotes_per_dialect(self, dialect, expected):
        assert quote_identifier("orders", dialect) == expected

    def test_escapes_embedded_end_quote(self):
        assert quote_identifier('we"ird', Dialect.POSTGRES) == '"we""ird"'
        assert quote_identifier("we]ird", Dialect.SQLSERVER) == "[we]]ird]"


class TestDialectCapabilities:
    def test_only_access_lacks_multi_row_values(self):
        assert not supports_multi_row_values(Dialect.ACCESS)
        assert supports_multi_row_values(Dialect.SQLITE)

    def test_named_parameters(self):
        assert uses_named_parameters(Dialect.POSTGRES)
        assert uses_named_parameters(Dialect.SQLSERVER)
        assert not uses_named_parameters(Dialect.SQLITE)
        assert not uses_named_parameters(Dialect.ODBC)

    @pytest.mark.parametrize(
        "dialect,columns,use_parameters,expected",
        [
            (Dialect.SQLSERVER, 3, True, 700),
            (Dialect.SQLSERVER, 1, True, 1000),
            (Dialect.SQLSERVER, 3, False, 1000),
            (Dialect.SQLITE, 10, True, 3276),
            (Dialect.POSTGRES, 5000, True, 13),
            (Dialect.SQLITE, 10, False, None),
            (Dialect.ACCESS, 3, True, None),
        ],
    )
    def test_max_statement_rows(self, dialect, columns, use_parameters, expected):
        assert max_statement_rows(dialect, columns, use_parameters) == expected

    @pytest.mark.parametrize(
        "driver,expected",
        [
            ("postgresql+psycopg2", Dialect.POSTGRES),
            ("mssql+pyodbc", Dialect.SQLSERVER),
            ("mysql+pymysql", Dialect.MYSQL),
            ("mariadb", Dialect.MYSQL),
            ("sqlite", Dialect.SQLITE),
            ("access+pyodbc", Dialect.ACCESS),
        ],
    )
    def test_dialect_from_driver_name(self, driver, expected):
        assert dialect_from_driver_name(driver) is expected

    def test_unknown_driver(self):
        with pytest.raises(ValueError, match="Unknown database driver"):
            dialect_from_driver_name("oracle+cx_oracle")


class TestTableNameDescriptor:
    def test_schema_and_table(self):
        tn = TableNameDescriptor("dbo.orders", Dialect.SQLSERVER)
        assert tn.schema == "dbo"
        assert tn.table == "orders"
        assert tn.quoted_full_name == "[dbo].[orders]"
        assert tn.quoted_table == "[orders]"

    def test_table_without_schema(self):
        tn = TableNameDescriptor("orders", Dialect.POSTGRES)
        assert tn.schema is None
        assert tn.quoted_full_name == '"orders"'

    def test_requotes_already_quoted_name(self):
        tn = TableNameDescriptor("[dbo].[order.items]", Dialect.POSTGRES)
        assert tn.schema == "dbo"
        assert tn.table == "order.items"
        assert tn.quoted_full_name == '"dbo"."order.items"'
        assert tn.unquoted_full_name == "dbo.order.items"
