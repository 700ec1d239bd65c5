from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

if TYPE_CHECKING:
    from pathlib import Path

from market_monitor.cache.factory import create_cache, create_storage
from market_monitor.cache.storage import MemoryStorage, SqliteStorage


def _config(values: dict[str, object]) -> MagicMock:
    config = MagicMock()
    config.__getitem__ = MagicMock(side_effect=lambda k: values[k])
    return config


class TestCreateStorage:
    def test_returns_sqlite_storage_with_correct_path(self, tmp_path: Path) -> None:
        config = _config({"cache.persist": True, "cache.db_path": str(tmp_path / "cache.db")})

        storage = create_storage(config)

        assert isinstance(storage, SqliteStorage)
        assert storage.db_path == tmp_path / "cache.db"

    def test_persist_false_returns_memory_storage(self) -> None:
        storage = create_storage(_config({"cache.persist": "false", "cache.db_path": "unused"}))
        assert isinstance(storage, MemoryStorage)


class TestCreateCache:
    def test_uses_configured_prefix(self, tmp_path: Path) -> None:
        config = _config({"cache.persist": True, "cache.db_path": str(tmp_path / "c.db"), "cache.prefix": "mm_"})

        cache = create_cache(config)

        assert cache.prefix == "mm_"

    @patch("market_monitor.config.create_config")
    def test_falls_back_to_create_config(self, mock_create_config: MagicMock) -> None:
        mock_create_config.return_value = _config(
            {"cache.persist": False, "cache.db_path": "unused", "cache.prefix": "sm_cache_"}
        )

        cache = create_cache()

        mock_create_config.assert_called_once()
        assert cache.prefix == "sm_cache_"
