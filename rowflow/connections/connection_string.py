"""Connection string value object backed by a SQLAlchemy URL."""

from typing import Optional, Union

from sqlalchemy.engine import URL, make_url

from rowflow.connections.dialects import Dialect, dialect_from_driver_name

# Administrative catalog used by "master" connections
_MASTER_CATALOGS = {
    Dialect.SQLSERVER: "master",
    Dialect.POSTGRES: "postgres",
    Dialect.MYSQL: "mysql",
}


class ConnectionString:
    """Immutable wrapper around a driver-ready SQLAlchemy URL.

    Example:
        >>> cs = ConnectionString("postgresql+psycopg2://etl:secret@db:5432/sales")
        >>> cs.database_name
        'sales'
        >>> cs.master_catalog().database_name
        'postgres'
    """

    def __init__(self, value: Union[str, URL, "ConnectionString"]):
        if isinstance(value, ConnectionString):
            value = value.url
        self._url: URL = make_url(value)

    @property
    def url(self) -> URL:
        return self._url

    @property
    def value(self) -> str:
        """Connection string including the password, ready for the driver."""
        return self._url.render_as_string(hide_password=False)

    @property
    def database_name(self) -> Optional[str]:
        return self._url.database

    @property
    def dialect(self) -> Dialect:
        return dialect_from_driver_name(self._url.drivername)

    def without_catalog(self) -> "ConnectionString":
        # URL.set() treats None as "unchanged"
        return ConnectionString(self._url._replace(database=None))

    def master_catalog(self) -> "ConnectionString":
        catalog = _MASTER_CATALOGS.get(self.dialect)
        if catalog is None:
            raise ValueError(f"No administrative catalog for {self.dialect.value}")
        return ConnectionString(self._url.set(database=catalog))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConnectionString):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"ConnectionString({self._url.render_as_string(hide_password=True)!r})"

    def __str__(self) -> str:
        return self._url.render_as_string(hide_password=True)
