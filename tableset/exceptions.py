"""Custom exceptions for tableset."""


class DatabaseError(Exception):
    """Base class for fatal database configuration and connection errors."""


class UnsupportedDatabaseError(DatabaseError):
    """Raised when a configured database type is not one of the known backends."""

    def __init__(self, data_type: str, reason: str = "is not a supported database type"):
        self.data_type = data_type
        self.reason = reason
        super().__init__(f"Database type '{data_type}' {reason}")


class ConnectionOpenError(DatabaseError):
    """Raised when an engine cannot be created or its first connection fails."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"Could not open database connection for {url}: {original}")


class InvalidConfigError(DatabaseError):
    """Raised when database settings from env or a YAML file are malformed."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid database config in '{source}': {reason}")
