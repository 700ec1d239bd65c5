"""Centralized service container for CLI dependency injection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx
    from config import ConfigurationSet

    from market_monitor.cache.store import TtlCache
    from market_monitor.providers.alpha_vantage import AlphaVantageProvider
    from market_monitor.providers.fear_greed import FearGreedProvider
    from market_monitor.providers.markets import MarketsProvider
    from market_monitor.providers.move_index import MoveIndexProvider
    from market_monitor.providers.news import NewsProvider
    from market_monitor.providers.polymarket import PolymarketProvider
    from market_monitor.providers.treasury import TreasuryProvider
    from market_monitor.services.dashboard import Dashboard

logger = logging.getLogger(__name__)


@dataclass
class ServiceConfig:
    """Configuration options for service creation.

    Attributes:
        no_persist: Keep the cache in memory instead of the SQLite file.
        config_path: YAML config file to layer under env vars.
    """

    no_persist: bool = False
    config_path: str = "config.yaml"


class ServiceContainer:
    """Lazily-initialized container for CLI service dependencies.

    Supports explicit injection for testing via constructor parameters.
    When dependencies are not provided, they are created on first access
    using the default implementations.
    """

    def __init__(
        self,
        config: ServiceConfig | None = None,
        *,
        app_config: ConfigurationSet | None = None,
        cache: TtlCache | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or ServiceConfig()
        self._app_config = app_config
        self._cache = cache
        self._http_client = http_client

    @property
    def config(self) -> ServiceConfig:
        return self._config

    @cached_property
    def app_config(self) -> ConfigurationSet:
        if self._app_config is not None:
            return self._app_config
        from market_monitor.config import create_config

        overrides: dict[str, object] | None = {"cache": {"persist": False}} if self._config.no_persist else None
        return create_config(yaml_path=self._config.config_path, overrides=overrides)

    @cached_property
    def cache(self) -> TtlCache:
        if self._cache is not None:
            return self._cache
        from market_monitor.cache.factory import create_cache

        return create_cache(self.app_config)

    @cached_property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        from market_monitor.providers._http import create_http_client

        return create_http_client(
            timeout=float(str(self.app_config["http.timeout"])),
            connect_timeout=float(str(self.app_config["http.connect_timeout"])),
        )

    def _api_key(self, name: str) -> str | None:
        from market_monitor.config import api_key

        return api_key(self.app_config, name)

    @cached_property
    def treasury(self) -> TreasuryProvider:
        from market_monitor.providers.treasury import TreasuryProvider

        return TreasuryProvider(self.http_client, self.cache, self._api_key("fred_key"))

    @cached_property
    def fear_greed(self) -> FearGreedProvider:
        from market_monitor.providers.fear_greed import FearGreedProvider

        return FearGreedProvider(self.http_client, self.cache)

    @cached_property
    def move_index(self) -> MoveIndexProvider:
        from market_monitor.providers.move_index import MoveIndexProvider

        return MoveIndexProvider(self.http_client, self.cache)

    @cached_property
    def alpha_vantage(self) -> AlphaVantageProvider:
        from market_monitor.providers.alpha_vantage import AlphaVantageProvider

        return AlphaVantageProvider(self.http_client, self.cache, self._api_key("alpha_vantage_key"))

    @cached_property
    def markets(self) -> MarketsProvider:
        from market_monitor.providers.markets import MarketsProvider

        return MarketsProvider(self.http_client, self.cache, self._api_key("finnhub_key"))

    @cached_property
    def news(self) -> NewsProvider:
        from market_monitor.providers.news import NewsProvider

        return NewsProvider(
            self.http_client,
            self.cache,
            delay_between_categories=float(str(self.app_config["news.delay_between_categories"])),
        )

    @cached_property
    def polymarket(self) -> PolymarketProvider:
        from market_monitor.providers.polymarket import PolymarketProvider

        return PolymarketProvider(self.http_client, self.cache)

    @cached_property
    def dashboard(self) -> Dashboard:
        from market_monitor.services.dashboard import Dashboard

        return Dashboard(
            treasury=self.treasury,
            fear_greed=self.fear_greed,
            move_index=self.move_index,
            markets=self.markets,
            news=self.news,
            polymarket=self.polymarket,
        )

    async def aclose(self) -> None:
        """Close the HTTP client if one was created."""
        if "http_client" in self.__dict__:
            await self.http_client.aclose()
            logger.debug("Closed HTTP client")
