import logging
import threading
from typing import Dict, Optional, Tuple, Type, TypeVar

from sqlalchemy import MetaData, Table
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from tableset.db.engine import make_engine
from tableset.domain import DbConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DbContext:
    """Owns the configuration and the lazily opened Engine for one database.

    The Engine (and its connection pool) is created on first use and shared
    by every TableSet built from this context.
    """

    def __init__(self, db_config: DbConfig):
        self.db_config = db_config
        self._engine: Optional[Engine] = None
        self._lock = threading.Lock()
        self._renamed: Dict[Tuple[Table, str], Table] = {}

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            with self._lock:
                if self._engine is None:
                    self._engine = make_engine(self.db_config)
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def get_session(self) -> Session:
        return Session(self.engine)

    def renamed_table(self, table: Table, name: str) -> Table:
        """Copy of `table` with the same columns under `name`, built once per context."""
        key = (table, name)
        with self._lock:
            renamed = self._renamed.get(key)
            if renamed is None:
                renamed = table.to_metadata(MetaData(), name=name)
                self._renamed[key] = renamed
        return renamed

    def table(self, record_class: Type[T], table_name: Optional[str] = None):
        """Return a TableSet for `record_class`, optionally on another table."""
        from tableset.repository.table_set import TableSet

        return TableSet(self, record_class, table_name)

    def dispose(self):
        """Close pooled connections. The next use, from any TableSet, opens a new Engine."""
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
                logger.info("Disposed engine for %r", self.db_config)
