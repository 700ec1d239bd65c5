class MarketMonitorError(Exception):
    """Base exception for market monitor errors."""


class ConfigurationError(MarketMonitorError):
    """Raised when a configuration value is missing or invalid."""


class StorageError(MarketMonitorError):
    """Raised by a storage backend when an operation cannot be completed."""


class StorageQuotaExceededError(StorageError):
    """Raised by a storage backend when a write would exceed its quota."""
