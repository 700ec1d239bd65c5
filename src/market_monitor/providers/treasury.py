"""US Treasury yields from FRED (Federal Reserve Economic Data)."""

from __future__ import annotations

import asyncio
import datetime
import logging
import math
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from market_monitor.cache.keys import TREASURY_YIELDS, daily_key
from market_monitor.exceptions import ConfigurationError
from market_monitor.providers._http import FETCH_ERRORS, HttpProvider
from market_monitor.result import Fallback, Live

if TYPE_CHECKING:
    import httpx

    from market_monitor.cache.store import TtlCache
    from market_monitor.providers._http import RetryDecorator
    from market_monitor.result import ProviderResult

logger = logging.getLogger(__name__)

FRED_URL = "https://api.stlouisfed.org/fred/series/observations"

TWO_YEAR = "DGS2"
TEN_YEAR = "DGS10"
VALID_SERIES = ("DGS2", "DGS5", "DGS10", "DGS30")


@dataclass(frozen=True)
class TreasuryYield:
    date: str
    value: float


@dataclass(frozen=True)
class YieldCurve:
    two_year: TreasuryYield
    ten_year: TreasuryYield
    spread: float
    is_inverted: bool
    last_updated: str

    @classmethod
    def from_yields(cls, two_year: TreasuryYield, ten_year: TreasuryYield, last_updated: str) -> YieldCurve:
        spread = round(ten_year.value - two_year.value, 4)
        return cls(two_year, ten_year, spread, spread < 0, last_updated)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> YieldCurve:
        return cls(
            two_year=TreasuryYield(**data["two_year"]),
            ten_year=TreasuryYield(**data["ten_year"]),
            spread=float(data["spread"]),
            is_inverted=bool(data["is_inverted"]),
            last_updated=str(data["last_updated"]),
        )


@dataclass(frozen=True)
class YieldHistory:
    dates: list[str]
    two_year: list[float]
    ten_year: list[float]
    spread: list[float]


def demo_yield_curve(today: datetime.date | None = None) -> YieldCurve:
    today = today or datetime.datetime.now(datetime.UTC).date()
    return YieldCurve.from_yields(
        TreasuryYield(today.isoformat(), 4.25),
        TreasuryYield(today.isoformat(), 4.55),
        last_updated=today.isoformat(),
    )


def parse_observation(payload: dict[str, Any]) -> TreasuryYield:
    """Extract the most recent observation from a FRED observations payload.

    FRED reports missing values as ``"."``, which is rejected.
    """
    observations = payload.get("observations") or []
    if not observations:
        raise ValueError("FRED returned no observations")
    obs = observations[0]
    value = float(obs["value"])
    if math.isnan(value):
        raise ValueError(f"FRED observation for {obs.get('date')} has no value")
    return TreasuryYield(date=str(obs["date"]), value=value)


class TreasuryProvider(HttpProvider):
    name = "FRED treasury"

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

    async def latest_yield(self, series_id: str) -> TreasuryYield:
        if series_id not in VALID_SERIES:
            raise ConfigurationError(f"Invalid series_id: {series_id}")
        payload = await self._fetch_json(
            FRED_URL,
            {
                "series_id": series_id,
                "sort_order": "desc",
                "limit": 1,
                "api_key": self._api_key,
                "file_type": "json",
            },
        )
        return parse_observation(payload)

    async def _fetch_curve(self) -> dict[str, Any]:
        two_year, ten_year = await asyncio.gather(self.latest_yield(TWO_YEAR), self.latest_yield(TEN_YEAR))
        curve = YieldCurve.from_yields(
            two_year, ten_year, last_updated=datetime.datetime.now(datetime.UTC).isoformat(timespec="seconds")
        )
        logger.info("FRED yields: 2Y=%.2f 10Y=%.2f", two_year.value, ten_year.value)
        return asdict(curve)

    async def yield_curve(
        self, *, force_refresh: bool = False, today: datetime.date | None = None
    ) -> ProviderResult[YieldCurve]:
        """2Y/10Y yields and their spread, cached under a date-qualified key."""
        if not self.is_configured:
            return Fallback(demo_yield_curve(today), "FRED API key not configured")
        try:
            curve = await self._cached_fetch(
                daily_key(TREASURY_YIELDS, today),
                self._fetch_curve,
                TREASURY_YIELDS.ttl_seconds,
                YieldCurve.from_dict,
                force_refresh=force_refresh,
            )
        except FETCH_ERRORS as e:
            logger.warning("Using demo treasury data: %s", e)
            return Fallback(demo_yield_curve(today), str(e))
        return Live(curve)

    async def yield_curve_history(
        self, days: int = 90, today: datetime.date | None = None
    ) -> ProviderResult[YieldHistory]:
        """Synthetic 2Y/10Y history for charting; always a Fallback."""
        today = today or datetime.datetime.now(datetime.UTC).date()
        history = YieldHistory(dates=[], two_year=[], ten_year=[], spread=[])
        for i in range(days, -1, -1):
            base_2y = 4.25 + math.sin(i / 10) * 0.3
            base_10y = 4.55 + math.sin(i / 10) * 0.25
            history.dates.append((today - datetime.timedelta(days=i)).isoformat())
            history.two_year.append(round(base_2y, 2))
            history.ten_year.append(round(base_10y, 2))
            history.spread.append(round(base_10y - base_2y, 2))
        return Fallback(history, "historical yields are synthetic")
