"""Prediction market odds from the Polymarket Gamma API (no auth required)."""

from __future__ import annotations

import datetime
import json
import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from market_monitor.cache.keys import PREDICTIONS
from market_monitor.providers._http import FETCH_ERRORS, HttpProvider
from market_monitor.providers._numbers import round_half_up
from market_monitor.result import Live, Unavailable

if TYPE_CHECKING:
    from market_monitor.result import ProviderResult

logger = logging.getLogger(__name__)

GAMMA_EVENTS_URL = "https://gamma-api.polymarket.com/events"


@dataclass(frozen=True)
class Prediction:
    id: str
    question: str
    yes: int
    no: int
    volume: str
    updated: str


def format_volume(volume: float | None) -> str:
    if not volume:
        return "0"
    if volume >= 1_000_000:
        return f"${volume / 1_000_000:.1f}M"
    if volume >= 1_000:
        return f"${volume / 1_000:.0f}K"
    return f"${volume:.0f}"


def _outcome_prices(market: dict[str, Any]) -> tuple[float, float]:
    # outcomePrices is a JSON-encoded list of strings, e.g. '["0.62", "0.38"]'.
    try:
        prices = json.loads(market.get("outcomePrices") or "[]")
        if len(prices) >= 2:
            return float(prices[0]) or 0.5, float(prices[1]) or 0.5
    except (ValueError, TypeError):
        logger.debug("Unparseable outcome prices for market %s", market.get("id"))
    return 0.5, 0.5


def _updated_date(event: dict[str, Any]) -> str:
    raw = event.get("updatedAt") or event.get("createdAt")
    if not raw:
        return ""
    try:
        return datetime.datetime.fromisoformat(str(raw).replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return str(raw)


def parse_events(events: list[dict[str, Any]]) -> list[Prediction]:
    if not isinstance(events, list):
        raise TypeError("Gamma API did not return a list of events")
    predictions = []
    for event in events:
        markets = event.get("markets") or []
        if not markets:
            continue
        market = markets[0]
        yes, no = _outcome_prices(market)
        predictions.append(
            Prediction(
                id=str(event.get("id", "")),
                question=market.get("question") or event.get("title") or "",
                yes=round_half_up(yes * 100),
                no=round_half_up(no * 100),
                volume=format_volume(float(event.get("volume") or 0)),
                updated=_updated_date(event),
            )
        )
    return predictions


class PolymarketProvider(HttpProvider):
    name = "Polymarket"

    async def _fetch(self) -> list[dict[str, Any]]:
        events = await self._fetch_json(GAMMA_EVENTS_URL, {"active": "true", "closed": "false", "limit": 10})
        return [asdict(p) for p in parse_events(events)]

    async def predictions(self, *, force_refresh: bool = False) -> ProviderResult[list[Prediction]]:
        try:
            predictions = await self._cached_fetch(
                PREDICTIONS.key,
                self._fetch,
                PREDICTIONS.ttl_seconds,
                lambda rows: [Prediction(**row) for row in rows],
                force_refresh=force_refresh,
            )
        except FETCH_ERRORS as e:
            logger.warning("Polymarket unavailable: %s", e)
            return Unavailable(str(e))
        return Live(predictions)
