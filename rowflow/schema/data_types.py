"""Translation of logical data types into dialect-specific type names."""

import re
from typing import Optional

from rowflow.connections.dialects import Dialect

_CHAR_TYPE = re.compile(r"^(N?)(VAR)?CHAR(\s*\(\s*(\d+|MAX)\s*\))?$", re.IGNORECASE)

# Longest string Access stores as TEXT; longer ones become LONGTEXT
ACCESS_MAX_TEXT_LENGTH = 255


def is_char_type(data_type: str) -> bool:
    return bool(_CHAR_TYPE.match(data_type.strip()))


def get_string_length(data_type: str) -> Optional[int]:
    """Return the declared length of a char type, ``None`` for MAX or no length."""
    match = _CHAR_TYPE.match(data_type.strip())
    if not match or not match.group(4) or match.group(4).upper() == "MAX":
        return None
    return int(match.group(4))


class DataTypeConverter:
    """Maps SQL Server flavoured type names to the target dialect.

    Unknown names are passed through unchanged so that callers can always use
    a dialect's native type directly.
    """

    @classmethod
    def get_db_specific_type(cls, data_type: str, dialect: Dialect) -> str:
        type_name = data_type.strip().upper()
        converter = {
            Dialect.SQLITE: cls._to_sqlite,
            Dialect.POSTGRES: cls._to_postgres,
            Dialect.MYSQL: cls._to_mysql,
            Dialect.ACCESS: cls._to_access,
        }.get(dialect)
        if converter is None:
            return data_type
        return converter(type_name) or data_type

    @staticmethod
    def _to_sqlite(type_name: str) -> Optional[str]:
        if type_name in ("INT", "BIGINT", "SMALLINT", "TINYINT"):
            return "INTEGER"
        return None

    @staticmethod
    def _to_postgres(type_name: str) -> Optional[str]:
        if is_char_type(type_name):
            length = get_string_length(type_name)
            if length is None and "MAX" in type_name:
                return "TEXT"
            return type_name[1:] if type_name.startswith("N") else type_name
        if type_name.startswith("DATETIME"):
            return "TIMESTAMP"
        if type_name == "TINYINT":
            return "SMALLINT"
        if type_name == "BIT":
            return "BOOLEAN"
        if type_name == "UNIQUEIDENTIFIER":
            return "UUID"
        if type_name == "FLOAT":
            return "DOUBLE PRECISION"
        return None

    @staticmethod
    def _to_mysql(type_name: str) -> Optional[str]:
        if is_char_type(type_name):
            if "MAX" in type_name:
                return "LONGTEXT"
            return type_name[1:] if type_name.startswith("N") else type_name
        if type_name.startswith("DATETIME2"):
            return "DATETIME"
        if type_name == "UNIQUEIDENTIFIER":
            return "CHAR(36)"
        return None

    @staticmethod
    def _to_access(type_name: str) -> Optional[str]:
        if type_name == "INT":
            return "INTEGER"
        if is_char_type(type_name):
            length = get_string_length(type_name)
            if "MAX" in type_name or (length or 0) > ACCESS_MAX_TEXT_LENGTH:
                return "LONGTEXT"
            return type_name[1:] if type_name.startswith("N") else type_name
        if type_name.startswith("DATETIME"):
            return "DATETIME"
        return None
