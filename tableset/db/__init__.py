from .context import DbContext
from .dialects import DataType, DRIVERS, resolve_url
from .engine import make_engine, pool_options

__all__ = [
    "DbContext",
    "DataType",
    "DRIVERS",
    "resolve_url",
    "make_engine",
    "pool_options",
]
