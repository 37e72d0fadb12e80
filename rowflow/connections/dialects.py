"""Dialect identifiers and identifier quoting.

Every dialect-conditional branch in the statement builder and the DDL renderer
is driven by the :class:`Dialect` enumeration defined here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class Dialect(Enum):
    """Database products RowFlow can target."""

    SQLSERVER = "sqlserver"
    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"
    ACCESS = "access"
    ODBC = "odbc"


_QUOTATIONS = {
    Dialect.SQLSERVER: ("[", "]"),
    Dialect.ACCESS: ("[", "]"),
    Dialect.MYSQL: ("`", "`"),
    Dialect.POSTGRES: ('"', '"'),
    Dialect.SQLITE: ('"', '"'),
    Dialect.ODBC: ("", ""),
}

# SQLAlchemy driver name prefixes, longest match first
_DRIVER_PREFIXES: List[Tuple[str, Dialect]] = [
    ("access", Dialect.ACCESS),
    ("mssql", Dialect.SQLSERVER),
    ("mysql", Dialect.MYSQL),
    ("mariadb", Dialect.MYSQL),
    ("postgresql", Dialect.POSTGRES),
    ("postgres", Dialect.POSTGRES),
    ("sqlite", Dialect.SQLITE),
    ("odbc", Dialect.ODBC),
]

# Bound parameters allowed in one statement
_MAX_PARAMETERS = {
    Dialect.SQLSERVER: 2100,
    Dialect.SQLITE: 32766,
    Dialect.POSTGRES: 65535,
    Dialect.MYSQL: 65535,
}

_MAX_VALUES_ROWS = {
    Dialect.SQLSERVER: 1000,
}


def quote_identifier(identifier: str, dialect: Dialect) -> str:
    """Quote a single identifier, escaping embedded end quotes."""
    qb, qe = _QUOTATIONS[dialect]
    if qe:
        identifier = identifier.replace(qe, qe + qe)
    return f"{qb}{identifier}{qe}"


def supports_multi_row_values(dialect: Dialect) -> bool:
    """Whether ``INSERT ... VALUES (...), (...)`` is available."""
    return dialect is not Dialect.ACCESS


def max_statement_rows(
    dialect: Dialect, column_count: int, use_parameters: bool = True
) -> Optional[int]:
    """Most rows one bulk insert statement may carry, ``None`` for no limit.

    Bound parameters are capped per statement by the server or driver, and
    SQL Server also caps a ``VALUES`` list at 1000 rows.
    """
    limits = []
    max_parameters = _MAX_PARAMETERS.get(dialect)
    if use_parameters and max_parameters is not None and column_count > 0:
        limits.append(max(1, max_parameters // column_count))
    max_rows = _MAX_VALUES_ROWS.get(dialect)
    if max_rows is not None:
        limits.append(max_rows)
    return min(limits) if limits else None


def uses_named_parameters(dialect: Dialect) -> bool:
    """Default parameter style for the dialect's drivers."""
    return dialect in (Dialect.SQLSERVER, Dialect.MYSQL, Dialect.POSTGRES)


def dialect_from_driver_name(drivername: str) -> Dialect:
    """Resolve a SQLAlchemy driver name such as ``postgresql+psycopg2``.

    Raises:
        ValueError: If the driver name belongs to no known dialect
    """
    name = drivername.lower()
    for prefix, dialect in _DRIVER_PREFIXES:
        if name.startswith(prefix):
            return dialect
    raise ValueError(f"Unknown database driver: {drivername}")


def _strip_quotes(part: str) -> str:
    part = part.strip()
    if len(part) >= 2 and (part[0], part[-1]) in (("[", "]"), ('"', '"'), ("`", "`")):
        return part[1:-1]
    return part


@dataclass(frozen=True)
class TableNameDescriptor:
    """Splits an optionally schema-qualified table name and quotes its parts.

    Already quoted input such as ``[dbo].[Orders]`` or ``"public"."orders"``
    is accepted; the quotes are removed before requoting for the target dialect.
    """

    full_name: str
    dialect: Dialect

    @property
    def _parts(self) -> List[str]:
        return [_strip_quotes(p) for p in self._split(self.full_name)]

    @staticmethod
    def _split(name: str) -> List[str]:
        parts, current, closing = [], "", None
        for char in name:
            if closing:
                current += char
                if char == closing:
                    closing = None
            elif char in '["`':
                closing = "]" if char == "[" else char
                current += char
            elif char == ".":
                parts.append(current)
                current = ""
            else:
                current += char
        parts.append(current)
        return parts

    @property
    def schema(self) -> Optional[str]:
        parts = self._parts
        return parts[-2] if len(parts) > 1 else None

    @property
    def table(self) -> str:
        return self._parts[-1]

    @property
    def unquoted_full_name(self) -> str:
        return ".".join(self._parts)

    @property
    def quoted_table(self) -> str:
        return quote_identifier(self.table, self.dialect)

    @property
    def quoted_full_name(self) -> str:
        return ".".join(quote_identifier(p, self.dialect) for p in self._parts)
