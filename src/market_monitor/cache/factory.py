from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from market_monitor.cache.storage import MemoryStorage, SqliteStorage
from market_monitor.cache.store import TtlCache
from market_monitor.config import as_bool

if TYPE_CHECKING:
    from market_monitor.cache.protocol import StorageBackend
    from market_monitor.config import AppConfig


def create_storage(config: AppConfig | None = None) -> StorageBackend:
    """Build the storage backend named by ``cache.persist`` and ``cache.db_path``."""
    if config is None:
        from market_monitor.config import create_config

        config = create_config()
    if not as_bool(config["cache.persist"]):
        return MemoryStorage()
    return SqliteStorage(Path(str(config["cache.db_path"])).expanduser())


def create_cache(config: AppConfig | None = None) -> TtlCache:
    """Build a TtlCache over the configured backend with ``cache.prefix``."""
    if config is None:
        from market_monitor.config import create_config

        config = create_config()
    return TtlCache(create_storage(config), prefix=str(config["cache.prefix"]))
