"""
Custom error classes for SDR Pulse.
Structured error handling with error codes across the data layer, engine
commands and jobs.

Hierarchy:
    PulseError
    ├── StoreError
    │   ├── StoreNotConfiguredError
    │   ├── DataFetchError
    │   └── DataWriteError
    ├── DataError
    │   ├── ConfigError
    │   └── SchemaValidationError
    └── NotificationError
"""


class PulseError(Exception):
    """Base exception for all SDR Pulse errors."""

    def __init__(self, message: str, code: str = "UNKNOWN", details: dict = None):
        self.code = code
        self.details = details or {}
        super().__init__(f"[{code}] {message}")


# --- Store Errors ---

class StoreError(PulseError):
    """Base class for Supabase store errors."""

    def __init__(self, message: str, code: str = "STORE_ERROR",
                 table: str = None, **kwargs):
        self.table = table
        details = {"table": table, **kwargs}
        super().__init__(message, code=code, details=details)


class StoreNotConfiguredError(StoreError):
    """Supabase credentials are missing."""

    def __init__(self):
        super().__init__(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in .env",
            code="STORE_NOT_CONFIGURED",
        )


class DataFetchError(StoreError):
    """Failed to fetch rows from the store."""

    def __init__(self, message: str, table: str = None, cause: Exception = None):
        if cause:
            message = f"{message}: {cause}"
        super().__init__(message, code="DATA_FETCH_FAILED", table=table)


class DataWriteError(StoreError):
    """Failed to update or insert rows in the store."""

    def __init__(self, message: str, table: str = None, row_id: str = None,
                 cause: Exception = None):
        if cause:
            message = f"{message}: {cause}"
        super().__init__(
            message, code="DATA_WRITE_FAILED", table=table, row_id=row_id,
        )


# --- Data Errors ---

class DataError(PulseError):
    """Base class for data processing errors."""
    pass


class ConfigError(DataError):
    """Configuration value error."""

    def __init__(self, message: str, key: str = None):
        super().__init__(
            message, code="CONFIG_ERROR",
            details={"key": key},
        )


class SchemaValidationError(DataError):
    """A store row doesn't match the expected record shape."""

    def __init__(self, message: str, table: str = None):
        super().__init__(
            message, code="SCHEMA_INVALID", details={"table": table},
        )


# --- Notification Errors ---

class NotificationError(PulseError):
    """Slack (or other) notification delivery failed."""

    def __init__(self, message: str, channel: str = "slack"):
        super().__init__(
            message, code="NOTIFICATION_FAILED", details={"channel": channel},
        )
