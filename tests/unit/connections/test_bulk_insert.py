"""Tests for the bulk insert statement builder."""

from rowflow.connections.bulk_insert import BulkInsertSql, TableData
from rowflow.connections.dialects import Dialect
from rowflow.schema.definitions import ColumnMapping


def _data(rows):
    return TableData([ColumnMapping.identity("id"), ColumnMapping("label", "name")], rows)


class TestTableData:
    def test_columns_and_rows(self):
        data = _data([(1, "a"), (2, "b")])
        assert data.source_columns == ["id", "label"]
        assert data.destination_columns == ["id", "name"]
        assert len(data) == 2
        assert list(data) == [(1, "a"), (2, "b")]


class TestNamedParameters:
    def test_postgres_statement(self):
        sql, params = BulkInsertSql(Dialect.POSTGRES).create_statement(
            _data([(1, "a"), (2, None)]), "public.items"
        )
        assert sql == (
            'INSERT INTO "public"."items" ("id", "name")\n'
            "VALUES\n"
            "(:P0, :P1),\n"
            "(:P2, :P3)"
        )
        assert params == {"P0": 1, "P1": "a", "P2": 2, "P3": None}

    def test_parameter_numbering_restarts_per_statement(self):
        builder = BulkInsertSql(Dialect.SQLSERVER)
        builder.create_statement(_data([(1, "a")]), "items")
        sql, params = builder.create_statement(_data([(5, "e")]), "items")
        assert "(:P0, :P1)" in sql
        assert params == {"P0": 5, "P1": "e"}


class TestPositionalParameters:
    def test_sqlite_statement(self):
        sql, params = BulkInsertSql(Dialect.SQLITE).create_statement(
            _data([(1, "a"), (2, "b")]), "items"
        )
        assert sql == 'INSERT INTO "items" ("id", "name")\nVALUES\n(?, ?),\n(?, ?)'
        assert params == [1, "a", 2, "b"]

    def test_null_is_bound_as_none(self):
        _, params = BulkInsertSql(Dialect.ODBC).create_statement(_data([(None, None)]), "items")
        assert params == [None, None]

    def test_named_override(self):
        sql, params = BulkInsertSql(Dialect.SQLITE, use_named_parameters=True).create_statement(
            _data([(1, "a")]), "items"
        )
        assert "(:P0, :P1)" in sql
        assert params == {"P0": 1, "P1": "a"}


class TestLiteralValues:
    def test_literals_are_quoted_and_escaped(self):
        sql, params = BulkInsertSql(Dialect.MYSQL, use_parameter_query=False).create_statement(
            _data([(1, "O'Brien"), (2, None)]), "items"
        )
        assert params is None
        assert sql == (
            "INSERT INTO `items` (`id`, `name`)\n"
            "VALUES\n"
            "('1', 'O''Brien'),\n"
            "('2', NULL)"
        )


class TestAccessSimulation:
    def test_parameterized_union_all(self):
        sql, params = BulkInsertSql(Dialect.ACCESS).create_statement(
            _data([(1, "a"), (2, "b")]), "items"
        )
        assert sql == (
            "INSERT INTO [items] ([id], [name])\n"
            "  SELECT * FROM (\n"
            "SELECT ?, ? FROM [rowflow_dummy]\n"
            " UNION ALL \n"
            "SELECT ?, ? FROM [rowflow_dummy]\n"
            ") a;"
        )
        assert params == [1, "a", 2, "b"]

    def test_literal_values_carry_column_aliases(self):
        sql, _ = BulkInsertSql(Dialect.ACCESS, use_parameter_query=False).create_statement(
            _data([(1, None)]), "items"
        )
        assert "SELECT '1' AS [id], NULL AS [name] FROM [rowflow_dummy]" in sql

    def test_custom_dummy_table(self):
        sql, _ = BulkInsertSql(Dialect.ACCESS, dummy_table_name="one_row").create_statement(
            _data([(1, "a")]), "items"
        )
        assert "FROM [one_row]" in sql


class TestStatementLimits:
    def _wide_data(self, row_count, column_count=3):
        mapping = [ColumnMapping.identity(f"c{i}") for i in range(column_count)]
        return TableData(mapping, [tuple(range(column_count))] * row_count)

    def test_sqlserver_batch_split_below_parameter_limit(self):
        statements = list(
            BulkInsertSql(Dialect.SQLSERVER).create_statements(self._wide_data(1000), "t")
        )

        assert len(statements) == 2
        assert all(len(params) <= 2100 for _, params in statements)
        assert sum(len(params) for _, params in statements) == 3000
        assert all("(:P0, :P1, :P2)" in sql for sql, _ in statements)

    def test_sqlserver_values_list_capped_at_1000_rows(self):
        statements = list(
            BulkInsertSql(Dialect.SQLSERVER, use_parameter_query=False).create_statements(
                self._wide_data(2500, column_count=1), "t"
            )
        )
        assert [sql.count("\n(") for sql, _ in statements] == [1000, 1000, 500]

    def test_rows_keep_their_order_across_statements(self):
        mapping = [ColumnMapping.identity("id")]
        data = TableData(mapping, [(i,) for i in range(1500)])
        statements = BulkInsertSql(Dialect.SQLSERVER).create_statements(data, "t")
        values = [v for _, params in statements for v in params.values()]
        assert values == list(range(1500))

    def test_small_batch_is_one_statement(self):
        builder = BulkInsertSql(Dialect.SQLITE)
        statements = list(builder.create_statements(_data([(1, "a"), (2, "b")]), "t"))
        assert len(statements) == 1
        assert statements[0][1] == [1, "a", 2, "b"]

    def test_access_is_not_split(self):
        statements = list(
            BulkInsertSql(Dialect.ACCESS).create_statements(self._wide_data(5000), "t")
        )
        assert len(statements) == 1
