"""Crypto prices from CoinGecko; indices, sectors and commodities from Finnhub.

Finnhub's free tier only covers US-listed securities, so indices and
commodities are read through proxy ETFs. Index prices are scaled back to
approximate index levels.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Literal

from market_monitor.cache.keys import MARKETS
from market_monitor.providers._http import FETCH_ERRORS, HttpProvider
from market_monitor.result import Fallback, Live, Unavailable

if TYPE_CHECKING:
    import httpx

    from market_monitor.cache.store import TtlCache
    from market_monitor.providers._http import RetryDecorator
    from market_monitor.result import ProviderResult

logger = logging.getLogger(__name__)

COINGECKO_URL = "https://api.coingecko.com/api/v3/simple/price"
FINNHUB_QUOTE_URL = "https://finnhub.io/api/v1/quote"

Group = Literal["indices", "sectors", "commodities"]


@dataclass(frozen=True)
class Instrument:
    symbol: str
    name: str
    proxy: str
    multiplier: float = 1.0


CRYPTO: tuple[tuple[str, str, str], ...] = (
    ("bitcoin", "BTC", "Bitcoin"),
    ("ethereum", "ETH", "Ethereum"),
    ("solana", "SOL", "Solana"),
)

INSTRUMENTS: dict[Group, tuple[Instrument, ...]] = {
    "indices": (
        Instrument("^DJI", "Dow Jones", "DIA", 100),
        Instrument("^GSPC", "S&P 500", "SPY", 10),
        Instrument("^IXIC", "NASDAQ", "QQQ", 37.5),
        Instrument("^RUT", "Russell 2000", "IWM", 8.5),
    ),
    "sectors": (
        Instrument("XLK", "Technology", "XLK"),
        Instrument("XLF", "Financials", "XLF"),
        Instrument("XLE", "Energy", "XLE"),
        Instrument("XLI", "Industrials", "XLI"),
        Instrument("XLP", "Consumer Staples", "XLP"),
        Instrument("XLRE", "Real Estate", "XLRE"),
        Instrument("XLU", "Utilities", "XLU"),
        Instrument("XLB", "Materials", "XLB"),
        Instrument("XLC", "Communication Services", "XLC"),
        Instrument("XLV", "Health Care", "XLV"),
    ),
    "commodities": (
        Instrument("^VIX", "VIX", "VIXY"),
        Instrument("GC=F", "Gold", "GLD"),
        Instrument("CL=F", "Crude Oil", "USO"),
        Instrument("NG=F", "Natural Gas", "UNG"),
        Instrument("SI=F", "Silver", "SLV"),
        Instrument("HG=F", "Copper", "CPER"),
    ),
}

# Last-known (close, change, change %) per proxy ETF.
DEMO_QUOTES: dict[str, tuple[float, float, float]] = {
    "DIA": (438.50, 1.25, 0.29),
    "SPY": (605.50, 1.25, 0.21),
    "QQQ": (615.00, 2.50, 0.41),
    "IWM": (223.40, -0.85, -0.38),
    "XLK": (247.50, 1.85, 0.75),
    "XLF": (50.25, 0.15, 0.30),
    "XLE": (96.80, -0.45, -0.46),
    "XLI": (138.20, 0.42, 0.30),
    "XLP": (81.50, 0.08, 0.10),
    "XLRE": (43.85, -0.12, -0.27),
    "XLU": (77.40, 0.25, 0.32),
    "XLB": (92.15, 0.35, 0.38),
    "XLC": (88.60, 0.55, 0.62),
    "XLV": (149.30, -0.25, -0.17),
    "VIXY": (12.85, -0.35, -2.65),
    "GLD": (268.50, 2.15, 0.81),
    "USO": (78.25, -0.45, -0.57),
    "UNG": (14.35, 0.08, 0.56),
    "SLV": (29.80, 0.25, 0.84),
    "CPER": (28.45, 0.12, 0.42),
}


@dataclass(frozen=True)
class CryptoPrice:
    id: str
    symbol: str
    name: str
    price: float
    change_24h_percent: float


@dataclass(frozen=True)
class MarketQuote:
    symbol: str
    name: str
    price: float
    change: float
    change_percent: float


def _scaled(instrument: Instrument, quote: tuple[float, float, float] | None) -> MarketQuote:
    if quote is None:
        return MarketQuote(instrument.symbol, instrument.name, math.nan, math.nan, math.nan)
    close, change, change_percent = quote
    return MarketQuote(
        symbol=instrument.symbol,
        name=instrument.name,
        price=close * instrument.multiplier,
        change=change * instrument.multiplier,
        change_percent=change_percent,
    )


def demo_group(group: Group) -> list[MarketQuote]:
    return [_scaled(i, DEMO_QUOTES.get(i.proxy)) for i in INSTRUMENTS[group]]


def parse_crypto(payload: dict[str, Any]) -> list[CryptoPrice]:
    if not any((payload.get(coin_id) or {}).get("usd", 0) > 0 for coin_id, _, _ in CRYPTO):
        raise ValueError("CoinGecko returned no prices")
    prices = []
    for coin_id, symbol, name in CRYPTO:
        entry = payload.get(coin_id) or {}
        prices.append(
            CryptoPrice(
                id=coin_id,
                symbol=symbol,
                name=name,
                price=float(entry.get("usd") or 0),
                change_24h_percent=float(entry.get("usd_24h_change") or 0),
            )
        )
    return prices


class MarketsProvider(HttpProvider):
    name = "markets"

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: TtlCache,
        finnhub_key: str | None = None,
        *,
        retry: RetryDecorator | None = None,
    ) -> None:
        super().__init__(client, cache, retry)
        self._finnhub_key = finnhub_key

    async def _fetch_crypto(self) -> list[dict[str, Any]]:
        payload = await self._fetch_json(
            COINGECKO_URL,
            {
                "ids": ",".join(coin_id for coin_id, _, _ in CRYPTO),
                "vs_currencies": "usd",
                "include_24hr_change": "true",
            },
        )
        return [asdict(p) for p in parse_crypto(payload)]

    async def crypto(self, *, force_refresh: bool = False) -> ProviderResult[list[CryptoPrice]]:
        try:
            prices = await self._cached_fetch(
                f"{MARKETS.key}crypto",
                self._fetch_crypto,
                MARKETS.ttl_seconds,
                lambda rows: [CryptoPrice(**row) for row in rows],
                force_refresh=force_refresh,
            )
        except FETCH_ERRORS as e:
            logger.warning("Crypto prices unavailable: %s", e)
            return Unavailable(str(e))
        return Live(prices)

    async def finnhub_quote(self, symbol: str) -> tuple[float, float, float] | None:
        """(close, change, change %) for ``symbol``, or None if Finnhub has nothing."""
        try:
            data = await self._fetch_json(FINNHUB_QUOTE_URL, {"symbol": symbol, "token": self._finnhub_key})
            # Unknown symbols come back as all zeros.
            if not data.get("c") and not data.get("pc"):
                return None
            return float(data["c"]), float(data.get("d") or 0), float(data.get("dp") or 0)
        except FETCH_ERRORS as e:
            logger.warning("Finnhub quote for %s failed: %s", symbol, e)
            return None

    async def _fetch_group(self, group: Group) -> list[dict[str, Any]]:
        instruments = INSTRUMENTS[group]
        quotes = await asyncio.gather(*(self.finnhub_quote(i.proxy) for i in instruments))
        if not any(q is not None and q[0] > 0 for q in quotes):
            raise ValueError(f"Finnhub returned no valid {group} quotes")
        return [asdict(_scaled(i, q)) for i, q in zip(instruments, quotes, strict=True)]

    async def group(self, group: Group, *, force_refresh: bool = False) -> ProviderResult[list[MarketQuote]]:
        if self._finnhub_key is None:
            return Fallback(demo_group(group), "Finnhub API key not configured")
        try:
            quotes = await self._cached_fetch(
                f"{MARKETS.key}{group}",
                lambda: self._fetch_group(group),
                MARKETS.ttl_seconds,
                lambda rows: [MarketQuote(**row) for row in rows],
                force_refresh=force_refresh,
            )
        except FETCH_ERRORS as e:
            logger.warning("Using demo %s data: %s", group, e)
            return Fallback(demo_group(group), str(e))
        return Live(quotes)

    async def indices(self, *, force_refresh: bool = False) -> ProviderResult[list[MarketQuote]]:
        return await self.group("indices", force_refresh=force_refresh)

    async def sectors(self, *, force_refresh: bool = False) -> ProviderResult[list[MarketQuote]]:
        return await self.group("sectors", force_refresh=force_refresh)

    async def commodities(self, *, force_refresh: bool = False) -> ProviderResult[list[MarketQuote]]:
        return await self.group("commodities", force_refresh=force_refresh)

    async def all_markets(self, *, force_refresh: bool = False) -> dict[str, ProviderResult[Any]]:
        crypto, indices, sectors, commodities = await asyncio.gather(
            self.crypto(force_refresh=force_refresh),
            self.indices(force_refresh=force_refresh),
            self.sectors(force_refresh=force_refresh),
            self.commodities(force_refresh=force_refresh),
        )
        return {"crypto": crypto, "indices": indices, "sectors": sectors, "commodities": commodities}
