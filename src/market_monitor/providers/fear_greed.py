"""Bitcoin Fear & Greed Index from alternative.me."""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from market_monitor.cache.keys import FEAR_GREED, FEAR_GREED_HISTORY
from market_monitor.providers._http import FETCH_ERRORS, HttpProvider
from market_monitor.providers._numbers import round_half_up
from market_monitor.result import Fallback, Live

if TYPE_CHECKING:
    from market_monitor.result import ProviderResult

logger = logging.getLogger(__name__)

FEAR_GREED_URL = "https://api.alternative.me/fng/"

# Upper bound (inclusive) of each band, checked in order.
_BANDS: tuple[tuple[int, str, str], ...] = (
    (24, "extreme-fear", "Extreme Fear - Potential buying opportunity"),
    (44, "fear", "Fear - Market caution"),
    (55, "neutral", "Neutral - Balanced sentiment"),
    (74, "greed", "Greed - Growing optimism"),
)
_TOP_BAND = ("extreme-greed", "Extreme Greed - Potential overvaluation")


@dataclass(frozen=True)
class FearGreedReading:
    value: int
    classification: str
    timestamp: int
    time_until_update: int | None = None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> FearGreedReading:
        until = item.get("time_until_update")
        return cls(
            value=_to_int(item.get("value")),
            classification=str(item.get("value_classification", "")),
            timestamp=_to_int(item.get("timestamp")),
            time_until_update=int(until) if until not in (None, "") else None,
        )


@dataclass(frozen=True)
class FearGreedHistory:
    current: FearGreedReading
    history: list[FearGreedReading]
    percentile: int | None


def _to_int(raw: object) -> int:
    # The API sends numbers as strings; unparseable values count as 0.
    try:
        return int(str(raw))
    except ValueError:
        return 0


def classify(value: int) -> str:
    for upper, band, _ in _BANDS:
        if value <= upper:
            return band
    return _TOP_BAND[0]


def status_text(value: int) -> str:
    for upper, _, text in _BANDS:
        if value <= upper:
            return text
    return _TOP_BAND[1]


def percentile_of(current: int, history: list[int]) -> int | None:
    """Percentage of ``history`` strictly below ``current``, or None if undefined."""
    if not history or current <= 0:
        return None
    lower = sum(1 for v in history if v < current)
    return round_half_up(lower / len(history) * 100)


def demo_reading() -> FearGreedReading:
    return FearGreedReading(value=55, classification="Neutral", timestamp=int(time.time()), time_until_update=3600)


class FearGreedProvider(HttpProvider):
    name = "Fear & Greed"

    async def _fetch_readings(self, limit: int) -> list[dict[str, Any]]:
        payload = await self._fetch_json(FEAR_GREED_URL, {"limit": limit})
        error = (payload.get("metadata") or {}).get("error")
        data = payload.get("data") or []
        if error or not data:
            raise ValueError(error or "No data returned")
        return [asdict(FearGreedReading.from_api(item)) for item in data]

    async def current(self, *, force_refresh: bool = False) -> ProviderResult[FearGreedReading]:
        async def produce() -> dict[str, Any]:
            return (await self._fetch_readings(1))[0]

        try:
            reading = await self._cached_fetch(
                FEAR_GREED.key,
                produce,
                FEAR_GREED.ttl_seconds,
                lambda data: FearGreedReading(**data),
                force_refresh=force_refresh,
            )
        except FETCH_ERRORS as e:
            logger.warning("Using demo Fear & Greed data: %s", e)
            return Fallback(demo_reading(), str(e))
        return Live(reading)

    async def history(self, days: int = 365, *, force_refresh: bool = False) -> ProviderResult[FearGreedHistory]:
        """Current reading, ``days`` of history, and where today sits within it."""
        try:
            history = await self._cached_fetch(
                f"{FEAR_GREED_HISTORY.key}{days}",
                lambda: self._fetch_readings(days),
                FEAR_GREED_HISTORY.ttl_seconds,
                _build_history,
                force_refresh=force_refresh,
            )
        except FETCH_ERRORS as e:
            logger.warning("Fear & Greed history unavailable: %s", e)
            return Fallback(FearGreedHistory(current=demo_reading(), history=[], percentile=None), str(e))

        logger.debug(
            "Fear & Greed percentile %s (current=%d, n=%d)",
            history.percentile,
            history.current.value,
            len(history.history) - 1,
        )
        return Live(history)


def _build_history(rows: list[dict[str, Any]]) -> FearGreedHistory:
    readings = [FearGreedReading(**row) for row in rows]
    current = readings[0]
    return FearGreedHistory(
        current=current,
        history=readings,
        percentile=percentile_of(current.value, [r.value for r in readings[1:]]),
    )
