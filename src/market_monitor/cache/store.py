"""TTL cache over a flat key-value storage backend.

Entries are JSON records ``{"data": ..., "timestamp": <epoch ms>, "ttl": <ms>}``
stored under ``prefix + key``. Expiry is checked lazily on read; there is no
background sweep and no size bound.

Every interaction with the backend is guarded: a broken or full backend
degrades the cache to "always miss" instead of raising.

Usage:
    cache = TtlCache(SqliteStorage(Path("~/.config/market-monitor/cache.db").expanduser()))
    cache.set("fear_greed_hourly", {"value": 55}, ttl_seconds=3600)
    cache.get("fear_greed_hourly")  # {"value": 55}
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from market_monitor.cache.protocol import StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "sm_cache_"


@dataclass(frozen=True)
class CacheStats:
    total: int
    valid: int
    expired: int


class MalformedEntryError(ValueError):
    """A stored record could not be decoded into a cache entry."""


def _decode(raw: str) -> tuple[Any, int, int]:
    try:
        record = json.loads(raw)
        return record["data"], int(record["timestamp"]), int(record["ttl"])
    except (ValueError, TypeError, KeyError) as e:
        raise MalformedEntryError(str(e)) from e


class TtlCache:
    def __init__(
        self,
        storage: StorageBackend,
        prefix: str = DEFAULT_PREFIX,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._prefix = prefix
        self._clock = clock

    @property
    def prefix(self) -> str:
        return self._prefix

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _owned_keys(self) -> list[str]:
        return [k for k in self._storage.keys() if k.startswith(self._prefix)]

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        try:
            record = json.dumps({"data": value, "timestamp": self._now_ms(), "ttl": int(ttl_seconds * 1000)})
            self._storage.set_item(self._prefix + key, record)
        except Exception:
            logger.exception("Failed to store cache entry %s", key)
            return
        logger.debug("Stored %s (ttl=%ss)", key, ttl_seconds)

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when missing, expired or unreadable."""
        storage_key = self._prefix + key
        try:
            raw = self._storage.get_item(storage_key)
            if raw is None:
                return None
            data, timestamp, ttl = _decode(raw)
        except MalformedEntryError as e:
            logger.warning("Malformed cache entry %s: %s", key, e)
            return None
        except Exception:
            logger.exception("Failed to read cache entry %s", key)
            return None

        age = self._now_ms() - timestamp
        if age > ttl:
            self._remove_quietly(storage_key)
            logger.debug("Expired %s (age=%ds)", key, round(age / 1000))
            return None

        logger.debug("Cache hit for %s (age=%ds)", key, round(age / 1000))
        return data

    def is_valid(self, key: str) -> bool:
        return self.get(key) is not None

    def remove(self, key: str) -> None:
        self._remove_quietly(self._prefix + key)

    def _remove_quietly(self, storage_key: str) -> bool:
        try:
            self._storage.remove_item(storage_key)
        except Exception:
            logger.exception("Failed to remove cache entry %s", storage_key)
            return False
        return True

    def clear_all(self) -> int:
        """Delete every entry under this cache's prefix. Returns the number removed."""
        try:
            keys = self._owned_keys()
        except Exception:
            logger.exception("Failed to enumerate cache entries")
            return 0
        removed = sum(1 for k in keys if self._remove_quietly(k))
        logger.info("Cleared %d cache entries", removed)
        return removed

    def stats(self) -> CacheStats:
        """Count entries under the prefix, split by validity at the time of the call."""
        try:
            keys = self._owned_keys()
        except Exception:
            logger.exception("Failed to enumerate cache entries")
            return CacheStats(total=0, valid=0, expired=0)

        now = self._now_ms()
        valid = 0
        expired = 0
        for k in keys:
            try:
                raw = self._storage.get_item(k)
                if raw is None:
                    # Removed since the key listing.
                    continue
                _, timestamp, ttl = _decode(raw)
            except Exception:
                # Malformed or unreadable records count as expired.
                expired += 1
                continue
            if now - timestamp <= ttl:
                valid += 1
            else:
                expired += 1
        return CacheStats(total=valid + expired, valid=valid, expired=expired)
