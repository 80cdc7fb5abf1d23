"""Dependency injection container for the application."""
from dependency_injector import containers, providers

from tableset import config as env
from tableset.db.context import DbContext
from tableset.domain import DbConfig


# Environment variables used by the container (read via `tableset.config` helpers).
#
# DATABASE_TYPE (str, default: "postgresql")
#   One of mysql, postgresql, sqlite, sqlserver (case-insensitive). Checked
#   when the first connection is opened.
#
# DATABASE_URL (str | optional)
#   SQLAlchemy URL, or the part after "://" for the backend's default driver.
#   For sqlite, a file path or ":memory:".
#
# DATABASE_POOL_MIN_SIZE (int, default: 0)
#   Idle connections kept in the pool. 0 leaves SQLAlchemy's default.
#
# DATABASE_POOL_MAX_SIZE (int, default: 0)
#   Upper bound on open connections. 0 leaves SQLAlchemy's default.
ENV = {
    "DATABASE_TYPE": env.get_str_env("DATABASE_TYPE", "postgresql"),
    "DATABASE_URL": env.get_optional_str_env("DATABASE_URL"),
    "DATABASE_POOL_MIN_SIZE": env.get_int_env("DATABASE_POOL_MIN_SIZE", 0),
    "DATABASE_POOL_MAX_SIZE": env.get_int_env("DATABASE_POOL_MAX_SIZE", 0),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for tableset."""

    config = providers.Configuration(default=ENV)

    db_config = providers.Singleton(
        DbConfig,
        data_type=config.DATABASE_TYPE,
        connection_string=config.DATABASE_URL,
        pool_min_size=config.DATABASE_POOL_MIN_SIZE.as_(int),
        pool_max_size=config.DATABASE_POOL_MAX_SIZE.as_(int),
    )

    # Singleton so every consumer shares one connection pool
    db_context = providers.Singleton(
        DbContext,
        db_config=db_config,
    )
