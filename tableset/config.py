import os
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from tableset.domain import DbConfig

loaded = load_dotenv()
if not loaded and Path(".env").exists():
	raise RuntimeError(".env file present but failed to load")


def get_str_env(name: str, default: str) -> str:
	raw = os.getenv(name)
	if raw is None or raw == "":
		return default
	return raw


def get_optional_str_env(name: str) -> Optional[str]:
	raw = os.getenv(name)
	if raw is None or raw == "":
		return None
	return raw


def get_int_env(name: str, default: int) -> int:
	raw = os.getenv(name)
	if raw is None or raw == "":
		return default
	try:
		return int(raw)
	except Exception:
		logging.exception("Invalid %s: %r", name, raw)
		return default


def get_optional_int_env(name: str) -> Optional[int]:
	raw = os.getenv(name)
	if raw is None or raw == "":
		return None
	try:
		return int(raw)
	except Exception:
		logging.exception("Invalid %s: %r", name, raw)
		return None


def load_db_config(prefix: str = "DATABASE") -> Optional[DbConfig]:
	"""Build a DbConfig from ``{prefix}_TYPE``, ``{prefix}_URL`` and the pool size variables.

	Returns None when no connection string is set.
	"""
	url = get_optional_str_env(f"{prefix}_URL")
	if url is None:
		return None
	return DbConfig(
		data_type=get_str_env(f"{prefix}_TYPE", "postgresql"),
		connection_string=url,
		pool_min_size=get_int_env(f"{prefix}_POOL_MIN_SIZE", 0),
		pool_max_size=get_int_env(f"{prefix}_POOL_MAX_SIZE", 0),
	)
