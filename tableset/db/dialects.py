"""Mapping from configured database types to SQLAlchemy dialects."""
import enum
import logging

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from tableset.exceptions import ConnectionOpenError, UnsupportedDatabaseError

logger = logging.getLogger(__name__)


class DataType(str, enum.Enum):
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    SQLSERVER = "sqlserver"

    @classmethod
    def parse(cls, value) -> "DataType":
        """Return the DataType for `value`, ignoring case."""
        if isinstance(value, DataType):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            logger.error("Unrecognized database type: %r", value)
            raise UnsupportedDatabaseError(str(value)) from None


# Dialect+driver used when the connection string does not name one.
DRIVERS = {
    DataType.MYSQL: "mysql+pymysql",
    DataType.POSTGRESQL: "postgresql+psycopg2",
    DataType.SQLITE: "sqlite",
    DataType.SQLSERVER: "mssql+pyodbc",
}


def resolve_url(data_type, connection_string: str) -> URL:
    """Build the SQLAlchemy URL for `connection_string` on backend `data_type`.

    Accepts either a full URL whose backend matches `data_type` (an explicit
    driver such as ``postgresql+psycopg://`` is kept) or the part after
    ``://``, in which case the default driver for the backend is prefixed.
    For sqlite a bare value is a file path, or ``:memory:``.
    """
    kind = DataType.parse(data_type)
    driver = DRIVERS[kind]
    backend = driver.split("+", 1)[0]
    connection_string = connection_string or ""

    if "://" not in connection_string:
        if kind is DataType.SQLITE:
            return URL.create(driver, database=connection_string or None)
        connection_string = f"{driver}://{connection_string}"

    try:
        url = make_url(connection_string)
    except (ArgumentError, ValueError) as exc:
        logger.error("Could not parse %s connection string", kind.value)
        raise ConnectionOpenError(f"<{kind.value} connection string>", exc) from exc

    if url.get_backend_name() != backend:
        raise UnsupportedDatabaseError(
            url.get_backend_name(),
            reason=f"does not match configured database type '{kind.value}'",
        )
    if "+" not in url.drivername:
        url = url.set(drivername=driver)
    return url
