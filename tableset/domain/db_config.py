from dataclasses import dataclass

# Connections older than this are recycled by the pool.
CONN_MAX_LIFETIME = 3600


@dataclass(frozen=True)
class DbConfig:
    """Settings for one database.

    `data_type` is kept as given; it is only resolved to a backend when the
    first connection is opened. Pool sizes of 0 mean "use the pool default".
    """
    data_type: str
    connection_string: str
    pool_min_size: int = 0
    pool_max_size: int = 0

    def __repr__(self):
        return f"<DbConfig type={self.data_type} pool={self.pool_min_size}/{self.pool_max_size}>"
