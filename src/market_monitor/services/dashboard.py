from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from market_monitor.providers.fear_greed import FearGreedHistory, FearGreedProvider
    from market_monitor.providers.markets import CryptoPrice, MarketQuote, MarketsProvider
    from market_monitor.providers.move_index import MoveIndex, MoveIndexProvider
    from market_monitor.providers.news import NewsItem, NewsProvider
    from market_monitor.providers.polymarket import Prediction, PolymarketProvider
    from market_monitor.providers.treasury import TreasuryProvider, YieldCurve
    from market_monitor.result import ProviderResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardSnapshot:
    treasury: ProviderResult[YieldCurve]
    fear_greed: ProviderResult[FearGreedHistory]
    move_index: ProviderResult[MoveIndex]
    crypto: ProviderResult[list[CryptoPrice]]
    indices: ProviderResult[list[MarketQuote]]
    sectors: ProviderResult[list[MarketQuote]]
    commodities: ProviderResult[list[MarketQuote]]
    predictions: ProviderResult[list[Prediction]]
    finance_news: ProviderResult[list[NewsItem]]

    def panels(self) -> dict[str, ProviderResult[object]]:
        return {
            "treasury": self.treasury,
            "fear_greed": self.fear_greed,
            "move_index": self.move_index,
            "crypto": self.crypto,
            "indices": self.indices,
            "sectors": self.sectors,
            "commodities": self.commodities,
            "predictions": self.predictions,
            "finance_news": self.finance_news,
        }


class Dashboard:
    """Fetches every panel concurrently.

    Providers never raise for upstream failures, so one panel falling back
    to demo data does not affect the others.
    """

    def __init__(
        self,
        *,
        treasury: TreasuryProvider,
        fear_greed: FearGreedProvider,
        move_index: MoveIndexProvider,
        markets: MarketsProvider,
        news: NewsProvider,
        polymarket: PolymarketProvider,
    ) -> None:
        self._treasury = treasury
        self._fear_greed = fear_greed
        self._move_index = move_index
        self._markets = markets
        self._news = news
        self._polymarket = polymarket

    async def snapshot(self, *, force_refresh: bool = False) -> DashboardSnapshot:
        (
            treasury,
            fear_greed,
            move_index,
            crypto,
            indices,
            sectors,
            commodities,
            predictions,
            finance_news,
        ) = await asyncio.gather(
            self._treasury.yield_curve(force_refresh=force_refresh),
            self._fear_greed.history(force_refresh=force_refresh),
            self._move_index.latest(force_refresh=force_refresh),
            self._markets.crypto(force_refresh=force_refresh),
            self._markets.indices(force_refresh=force_refresh),
            self._markets.sectors(force_refresh=force_refresh),
            self._markets.commodities(force_refresh=force_refresh),
            self._polymarket.predictions(force_refresh=force_refresh),
            self._news.category_news("finance", force_refresh=force_refresh),
        )
        snapshot = DashboardSnapshot(
            treasury=treasury,
            fear_greed=fear_greed,
            move_index=move_index,
            crypto=crypto,
            indices=indices,
            sectors=sectors,
            commodities=commodities,
            predictions=predictions,
            finance_news=finance_news,
        )
        live = sum(1 for r in snapshot.panels().values() if r.is_live())
        logger.info("Dashboard snapshot: %d/%d panels live", live, len(snapshot.panels()))
        return snapshot
