import os
import logging
from typing import Dict

import yaml

from tableset.domain import DbConfig
from tableset.exceptions import InvalidConfigError

logger = logging.getLogger(__name__)


def _parse_pool_size(source: str, name: str, value) -> int:
    if value is None:
        return 0
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise InvalidConfigError(source, f"{name} must be an integer, got {value!r}") from None
    if size < 0:
        raise InvalidConfigError(source, f"{name} must not be negative")
    return size


def load_db_configs(path: str) -> Dict[str, DbConfig]:
    """Load named database settings from the YAML file at `path`.

    The file holds a ``databases`` mapping; each entry must contain:
      - data_type: mysql, postgresql, sqlite or sqlserver
      - connection_string: URL or DSN for that backend
    and may contain pool_min_size / pool_max_size.
    """
    if not os.path.isfile(path):
        raise InvalidConfigError(path, "file not found")
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise InvalidConfigError(path, f"invalid YAML: {exc}") from exc

    databases = (data or {}).get("databases")
    if not isinstance(databases, dict) or not databases:
        raise InvalidConfigError(path, "missing 'databases' section")

    configs = {}
    for name, entry in databases.items():
        if not isinstance(entry, dict):
            raise InvalidConfigError(path, f"database '{name}' must be a mapping")
        data_type = entry.get("data_type")
        connection_string = entry.get("connection_string")
        if not data_type or not connection_string:
            raise InvalidConfigError(path, f"database '{name}' needs data_type and connection_string")
        configs[name] = DbConfig(
            data_type=str(data_type),
            connection_string=str(connection_string),
            pool_min_size=_parse_pool_size(path, "pool_min_size", entry.get("pool_min_size")),
            pool_max_size=_parse_pool_size(path, "pool_max_size", entry.get("pool_max_size")),
        )
    logger.info("Loaded %d database config(s) from %s", len(configs), path)
    return configs
