from __future__ import annotations

from typing import Protocol

from config import ConfigurationSet, config_from_dict, config_from_env, config_from_yaml


class AppConfig(Protocol):
    def __getitem__(self, key: str) -> object: ...


_DEFAULTS: dict[str, object] = {
    "cache": {
        "db_path": "~/.config/market-monitor/cache.db",
        "prefix": "sm_cache_",
        "persist": True,
    },
    "api": {
        "fred_key": "",
        "alpha_vantage_key": "",
        "finnhub_key": "",
    },
    "http": {
        "timeout": 15.0,
        "connect_timeout": 5.0,
    },
    "news": {
        "delay_between_categories": 1.0,
    },
}


def create_config(
    yaml_path: str = "config.yaml",
    env_prefix: str = "MARKET_MONITOR",
    defaults: dict[str, object] | None = None,
    *,
    overrides: dict[str, object] | None = None,
) -> ConfigurationSet:
    """Create a layered configuration.

    Priority (highest to lowest): explicit overrides > env vars > YAML file > defaults dict.

    Args:
        yaml_path: Path to the YAML config file.
        env_prefix: Prefix for environment variables.
        defaults: Default configuration values.
        overrides: Nested dict of values that win over every other layer.
    """
    if defaults is None:
        defaults = _DEFAULTS

    layers = [
        config_from_env(env_prefix, separator="__", lowercase_keys=True),
        config_from_yaml(yaml_path, read_from_file=True, ignore_missing_paths=True),
        config_from_dict(defaults),
    ]
    if overrides:
        layers.insert(0, config_from_dict(overrides))

    return ConfigurationSet(*layers)


def api_key(cfg: AppConfig, name: str) -> str | None:
    """Return the configured API key, or None when unset or still a placeholder."""
    raw = str(cfg[f"api.{name}"] or "").strip()
    if not raw or "your" in raw.lower():
        return None
    return raw


def as_bool(value: object) -> bool:
    """Interpret a config value that may arrive as a string from env vars."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")
