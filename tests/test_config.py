from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from config import ConfigurationSet

from market_monitor.config import api_key, as_bool, create_config

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all MARKET_MONITOR__ env vars so tests are isolated from the shell."""
    for key in list(os.environ):
        if key.startswith("MARKET_MONITOR__"):
            monkeypatch.delenv(key)


def test_create_config_returns_defaults() -> None:
    cfg = create_config(yaml_path="/nonexistent/config.yaml")
    assert isinstance(cfg, ConfigurationSet)
    assert cfg["cache.db_path"] == "~/.config/market-monitor/cache.db"
    assert cfg["cache.prefix"] == "sm_cache_"
    assert cfg["api.fred_key"] == ""
    assert cfg["http.timeout"] == 15.0


def test_yaml_overrides_defaults(tmp_path: Path) -> None:
    yaml_file = tmp_path / "config.yaml"
    yaml_file.write_text("api:\n  fred_key: yaml_key\ncache:\n  prefix: mm_\n")
    cfg = create_config(yaml_path=str(yaml_file))
    assert cfg["api.fred_key"] == "yaml_key"
    assert cfg["cache.prefix"] == "mm_"
    # Defaults still apply for unset keys
    assert cfg["api.finnhub_key"] == ""


def test_env_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    yaml_file = tmp_path / "config.yaml"
    yaml_file.write_text("api:\n  fred_key: yaml_key\n")

    monkeypatch.setenv("MARKET_MONITOR__API__FRED_KEY", "env_key")

    cfg = create_config(yaml_path=str(yaml_file))
    assert cfg["api.fred_key"] == "env_key"


def test_explicit_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MARKET_MONITOR__CACHE__PERSIST", "true")
    cfg = create_config(yaml_path="/nonexistent/config.yaml", overrides={"cache": {"persist": False}})
    assert cfg["cache.persist"] is False


class TestApiKey:
    def test_empty_is_none(self) -> None:
        cfg = create_config(yaml_path="/nonexistent/config.yaml")
        assert api_key(cfg, "fred_key") is None

    def test_placeholder_is_none(self) -> None:
        cfg = create_config(yaml_path="/nonexistent/config.yaml", overrides={"api": {"fred_key": "your_key_here"}})
        assert api_key(cfg, "fred_key") is None

    def test_real_key(self) -> None:
        cfg = create_config(yaml_path="/nonexistent/config.yaml", overrides={"api": {"fred_key": " abc123 "}})
        assert api_key(cfg, "fred_key") == "abc123"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(True, True), (False, False), ("true", True), ("1", True), ("no", False), ("False", False)],
)
def test_as_bool(raw: object, expected: bool) -> None:
    assert as_bool(raw) is expected
