"""Domain objects for tableset - explicit re-exports to satisfy linters."""
from .db_config import DbConfig as DbConfig, CONN_MAX_LIFETIME as CONN_MAX_LIFETIME
from .page_list import PageList as PageList

__all__ = ["DbConfig", "CONN_MAX_LIFETIME", "PageList"]
