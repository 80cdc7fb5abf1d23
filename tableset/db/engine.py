import logging
from typing import Type

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import Pool, QueuePool

from tableset.db.dialects import resolve_url
from tableset.domain import CONN_MAX_LIFETIME, DbConfig
from tableset.exceptions import ConnectionOpenError

logger = logging.getLogger(__name__)

# QueuePool's own default for pool_size.
DEFAULT_POOL_SIZE = 5


def pool_options(db_config: DbConfig, pool_class: Type[Pool]) -> dict:
    """Translate configured pool bounds into `create_engine` keyword arguments.

    `pool_min_size` is the number of idle connections kept open
    (``pool_size``); `pool_max_size` caps all open connections, which
    QueuePool expresses as ``pool_size + max_overflow``. Bounds that are not
    configured (0) are left out so SQLAlchemy's defaults apply.
    """
    options = {"pool_recycle": CONN_MAX_LIFETIME}
    min_size = db_config.pool_min_size
    max_size = db_config.pool_max_size

    if not issubclass(pool_class, QueuePool):
        if min_size > 0 or max_size > 0:
            logger.warning(
                "Pool bounds %d/%d ignored: %s has no size limits",
                min_size, max_size, pool_class.__name__,
            )
        return options

    pool_size = None
    if min_size > 0:
        pool_size = min_size
    if max_size > 0:
        if pool_size is None:
            pool_size = DEFAULT_POOL_SIZE
        # Idle connections can never exceed open connections.
        if pool_size > max_size:
            pool_size = max_size
        options["max_overflow"] = max_size - pool_size
    if pool_size is not None and (min_size > 0 or pool_size != DEFAULT_POOL_SIZE):
        options["pool_size"] = pool_size
    return options


def make_engine(db_config: DbConfig) -> Engine:
    """Create a SQLAlchemy Engine for `db_config` and check that it connects.

    Raises `UnsupportedDatabaseError` for an unknown database type and
    `ConnectionOpenError` when the driver is missing, the URL is invalid or
    the database cannot be reached.
    """
    url = resolve_url(db_config.data_type, db_config.connection_string)
    safe_url = url.render_as_string(hide_password=True)
    engine = None
    try:
        pool_class = url.get_dialect().get_pool_class(url)
        options = pool_options(db_config, pool_class)
        engine = create_engine(url, **options)
        with engine.connect():
            pass
    except (SQLAlchemyError, ImportError) as exc:
        logger.exception("Failed to open database %s", safe_url)
        if engine is not None:
            engine.dispose()
        raise ConnectionOpenError(safe_url, exc) from exc
    logger.info("Opened database %s with %s", safe_url, options)
    return engine
