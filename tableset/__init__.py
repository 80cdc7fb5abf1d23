"""Fluent table access on top of SQLAlchemy."""
from .db import DbContext, DataType
from .domain import DbConfig, PageList, CONN_MAX_LIFETIME
from .exceptions import DatabaseError, UnsupportedDatabaseError, ConnectionOpenError, InvalidConfigError
from .repository import TableSet

__all__ = [
    "DbContext",
    "DataType",
    "DbConfig",
    "PageList",
    "CONN_MAX_LIFETIME",
    "TableSet",
    "DatabaseError",
    "UnsupportedDatabaseError",
    "ConnectionOpenError",
    "InvalidConfigError",
]
