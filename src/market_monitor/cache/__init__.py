from market_monitor.cache.protocol import StorageBackend
from market_monitor.cache.storage import MemoryStorage, SqliteStorage
from market_monitor.cache.store import CacheStats, TtlCache
from market_monitor.cache.wrapper import cached, fetch_with_cache

__all__ = ["CacheStats", "MemoryStorage", "SqliteStorage", "StorageBackend", "TtlCache", "cached", "fetch_with_cache"]
