"""Stock quotes and earnings from Alpha Vantage.

The free tier allows 25 calls per day, so every response is cached per
symbol: quotes for 15 minutes, earnings for 6 hours.
"""

from __future__ import annotations

import datetime
import logging
import math
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from market_monitor.cache.keys import EARNINGS_CALENDAR, STOCK_QUOTES, symbol_key
from market_monitor.providers._http import FETCH_ERRORS, HttpProvider
from market_monitor.result import Live, Unavailable

if TYPE_CHECKING:
    import httpx

    from market_monitor.cache.store import TtlCache
    from market_monitor.providers._http import RetryDecorator
    from market_monitor.result import ProviderResult

logger = logging.getLogger(__name__)

ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"

FREE_TIER_DAILY_LIMIT = 25


@dataclass(frozen=True)
class StockQuote:
    symbol: str
    price: float
    change: float
    change_percent: float
    volume: int


@dataclass(frozen=True)
class EarningsRecord:
    symbol: str
    quarter: str
    eps: float | None
    eps_estimated: float | None
    reported_date: str | None


def _to_float(raw: object) -> float | None:
    if raw is None:
        return None
    try:
        value = float(str(raw).rstrip("%"))
    except ValueError:
        return None
    return None if math.isnan(value) else value


def _check_throttle(payload: dict[str, Any]) -> None:
    # Rate limiting and bad keys come back as 200 with a single message field.
    for field in ("Note", "Information", "Error Message"):
        if field in payload:
            raise ValueError(f"Alpha Vantage: {payload[field]}")


def parse_global_quote(payload: dict[str, Any]) -> StockQuote:
    _check_throttle(payload)
    quote = payload.get("Global Quote") or {}
    if not quote:
        raise ValueError("No quote data")
    return StockQuote(
        symbol=quote["01. symbol"],
        price=float(quote["05. price"]),
        change=float(quote["09. change"]),
        change_percent=float(quote["10. change percent"].rstrip("%")),
        volume=int(quote["06. volume"]),
    )


def parse_earnings(symbol: str, payload: dict[str, Any]) -> list[EarningsRecord]:
    _check_throttle(payload)
    return [
        EarningsRecord(
            symbol=symbol,
            quarter=str(q.get("fiscalDateEnding", "")),
            eps=_to_float(q.get("reportedEPS")),
            eps_estimated=_to_float(q.get("estimatedEPS")),
            reported_date=q.get("reportedDate"),
        )
        for q in payload.get("quarterlyEarnings") or []
    ]


def days_until_next(records: list[EarningsRecord], today: datetime.date) -> int:
    """Days until the first reported date after ``today``, or -1 if none."""
    for record in records:
        if not record.reported_date:
            continue
        try:
            reported = datetime.date.fromisoformat(record.reported_date)
        except ValueError:
            continue
        if reported > today:
            return (reported - today).days
    return -1


class AlphaVantageProvider(HttpProvider):
    name = "Alpha Vantage"

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: TtlCache,
        api_key: str | None = None,
        *,
        retry: RetryDecorator | None = None,
    ) -> None:
        super().__init__(client, cache, retry)
        self._api_key = api_key

    @property
    def is_configured(self) -> bool:
        return self._api_key is not None

    async def _query(self, function: str, symbol: str) -> dict[str, Any]:
        return await self._fetch_json(
            ALPHA_VANTAGE_URL, {"function": function, "symbol": symbol, "apikey": self._api_key}
        )

    async def quote(self, symbol: str, *, force_refresh: bool = False) -> ProviderResult[StockQuote]:
        if not self.is_configured:
            return Unavailable("Alpha Vantage API key not configured")
        symbol = symbol.upper()

        async def produce() -> dict[str, Any]:
            return asdict(parse_global_quote(await self._query("GLOBAL_QUOTE", symbol)))

        try:
            quote = await self._cached_fetch(
                symbol_key(STOCK_QUOTES, symbol),
                produce,
                STOCK_QUOTES.ttl_seconds,
                lambda data: StockQuote(**data),
                force_refresh=force_refresh,
            )
        except FETCH_ERRORS as e:
            logger.warning("Error fetching %s quote: %s", symbol, e)
            return Unavailable(str(e))
        return Live(quote)

    async def earnings(self, symbol: str, *, force_refresh: bool = False) -> ProviderResult[list[EarningsRecord]]:
        if not self.is_configured:
            return Unavailable("Alpha Vantage API key not configured")
        symbol = symbol.upper()

        async def produce() -> list[dict[str, Any]]:
            return [asdict(r) for r in parse_earnings(symbol, await self._query("EARNINGS", symbol))]

        try:
            records = await self._cached_fetch(
                symbol_key(EARNINGS_CALENDAR, symbol),
                produce,
                EARNINGS_CALENDAR.ttl_seconds,
                lambda rows: [EarningsRecord(**row) for row in rows],
                force_refresh=force_refresh,
            )
        except FETCH_ERRORS as e:
            logger.warning("Error fetching %s earnings: %s", symbol, e)
            return Unavailable(str(e))
        return Live(records)

    async def days_to_earnings(self, symbol: str, today: datetime.date | None = None) -> int:
        today = today or datetime.datetime.now(datetime.UTC).date()
        result = await self.earnings(symbol)
        return days_until_next(result.unwrap_or([]), today)
