"""Tests for CREATE TABLE rendering."""

import pytest

from rowflow.connections.dialects import Dialect
from rowflow.exceptions import UnsupportedFeatureError
from rowflow.schema.ddl import CreateTableSqlRenderer, quote_default_value, render_create_table
from rowflow.schema.definitions import TableColumn, TableDefinition


@pytest.fixture
def orders():
    return TableDefinition(
        "orders",
        [
            TableColumn("id", "INT", allow_nulls=False, is_primary_key=True, is_identity=True),
            TableColumn("name", "NVARCHAR(100)"),
            TableColumn("qty", "INT", allow_nulls=False, default_value="0"),
            TableColumn("status", "NVARCHAR(10)", default_value="new"),
        ],
    )


class TestDialectDdl:
    def test_sqlserver(self, orders):
        assert render_create_table(orders, Dialect.SQLSERVER) == (
            "CREATE TABLE [orders] (\n"
            "  [id] INT NOT NULL IDENTITY(1,1),\n"
            "  [name] NVARCHAR(100) NULL,\n"
            "  [qty] INT NOT NULL DEFAULT 0,\n"
            "  [status] NVARCHAR(10) NULL DEFAULT 'new',\n"
            "  CONSTRAINT [pk_orders_id] PRIMARY KEY ([id])\n"
            ")"
        )

    def test_mysql(self, orders):
        assert render_create_table(orders, Dialect.MYSQL) == (
            "CREATE TABLE `orders` (\n"
            "  `id` INT NOT NULL AUTO_INCREMENT,\n"
            "  `name` VARCHAR(100) NULL,\n"
            "  `qty` INT NOT NULL DEFAULT 0,\n"
            "  `status` VARCHAR(10) NULL DEFAULT 'new',\n"
            "  CONSTRAINT `pk_orders_id` PRIMARY KEY (`id`)\n"
            ")"
        )

    def test_postgres(self, orders):
        assert render_create_table(orders, Dialect.POSTGRES) == (
            'CREATE TABLE "orders" (\n'
            '  "id" SERIAL,\n'
            '  "name" VARCHAR(100) NULL,\n'
            '  "qty" INT NOT NULL DEFAULT 0,\n'
            '  "status" VARCHAR(10) NULL DEFAULT \'new\',\n'
            '  CONSTRAINT "pk_orders_id" PRIMARY KEY ("id")\n'
            ")"
        )

    def test_sqlite(self, orders):
        assert render_create_table(orders, Dialect.SQLITE) == (
            'CREATE TABLE "orders" (\n'
            '  "id" INTEGER NOT NULL CONSTRAINT "pk_orders_id" PRIMARY KEY AUTOINCREMENT,\n'
            '  "name" NVARCHAR(100) NULL,\n'
            '  "qty" INTEGER NOT NULL DEFAULT 0,\n'
            '  "status" NVARCHAR(10) NULL DEFAULT \'new\'\n'
            ")"
        )

    def test_four_dialects_differ(self, orders):
        rendered = {
            render_create_table(orders, d)
            for d in (Dialect.SQLSERVER, Dialect.MYSQL, Dialect.POSTGRES, Dialect.SQLITE)
        }
        assert len(rendered) == 4

    def test_schema_qualified_name(self):
        table = TableDefinition("dbo.items", [TableColumn("a", "INT")])
        assert render_create_table(table, Dialect.SQLSERVER).startswith("CREATE TABLE [dbo].[items] (")

    def test_postgres_bigserial(self):
        table = TableDefinition(
            "t", [TableColumn("id", "BIGINT", is_primary_key=True, is_identity=True)]
        )
        assert '"id" BIGSERIAL' in render_create_table(table, Dialect.POSTGRES)

    def test_access_identity(self):
        table = TableDefinition(
            "t", [TableColumn("id", "INT", allow_nulls=False, is_identity=True, identity_seed=10, identity_increment=5)]
        )
        assert "AUTOINCREMENT(10,5)" in render_create_table(table, Dialect.ACCESS)

    def test_collation(self):
        table = TableDefinition("t", [TableColumn("a", "VARCHAR(10)", collation="Latin1_General_CI_AS")])
        assert "[a] VARCHAR(10) NULL COLLATE Latin1_General_CI_AS" in render_create_table(
            table, Dialect.SQLSERVER
        )


class TestPrimaryKeys:
    def test_composite_key_on_sqlite_is_table_constraint(self):
        table = TableDefinition(
            "t",
            [
                TableColumn("a", "INT", allow_nulls=False, is_primary_key=True),
                TableColumn("b", "INT", allow_nulls=False, is_primary_key=True),
            ],
        )
        sql = render_create_table(table, Dialect.SQLITE)
        assert 'CONSTRAINT "pk_t_a_b" PRIMARY KEY ("a", "b")' in sql

    def test_default_skipped_on_primary_key(self):
        table = TableDefinition(
            "t", [TableColumn("a", "INT", is_primary_key=True, default_value="1")]
        )
        assert "DEFAULT" not in render_create_table(table, Dialect.SQLSERVER)

    def test_sqlite_identity_must_be_single_primary_key(self):
        table = TableDefinition("t", [TableColumn("id", "INT", is_identity=True)])
        with pytest.raises(UnsupportedFeatureError):
            render_create_table(table, Dialect.SQLITE)


class TestComputedColumns:
    def _table(self):
        return TableDefinition(
            "t",
            [
                TableColumn("qty", "INT"),
                TableColumn("total", "INT", computed_column="qty * 2"),
            ],
        )

    def test_sqlserver_omits_type_and_nullability(self):
        assert "  [total] AS (qty * 2)\n" in render_create_table(self._table(), Dialect.SQLSERVER)

    def test_postgres_generated_column(self):
        sql = render_create_table(self._table(), Dialect.POSTGRES)
        assert '"total" INT GENERATED ALWAYS AS (qty * 2) STORED' in sql

    def test_mysql_computed_column(self):
        assert "`total` INT AS (qty * 2)" in render_create_table(self._table(), Dialect.MYSQL)

    @pytest.mark.parametrize("dialect", [Dialect.SQLITE, Dialect.ACCESS])
    def test_unsupported_dialects(self, dialect):
        with pytest.raises(UnsupportedFeatureError) as exc_info:
            CreateTableSqlRenderer(dialect).render(self._table())
        assert exc_info.value.dialect is dialect


class TestQuoteDefaultValue:
    @pytest.mark.parametrize(
        "value,expected",
        [("0", "0"), ("12.5", "12.5"), ("abc", "'abc'"), ("it's", "'it''s'"), ("-1", "'-1'")],
    )
    def test_quoting(self, value, expected):
        assert quote_default_value(value) == expected
