"""ICE BofA MOVE Index (bond market volatility) from Yahoo Finance."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from market_monitor.cache.keys import MOVE_INDEX
from market_monitor.providers._http import BROWSER_USER_AGENT, FETCH_ERRORS, HttpProvider
from market_monitor.result import Fallback, Live

if TYPE_CHECKING:
    from market_monitor.result import ProviderResult

logger = logging.getLogger(__name__)

YAHOO_MOVE_URL = "https://query1.finance.yahoo.com/v8/finance/chart/%5EMOVE"


@dataclass(frozen=True)
class MoveIndex:
    value: float
    change: float
    change_percent: float


DEMO_MOVE_INDEX = MoveIndex(value=95.2, change=2.5, change_percent=2.7)


def parse_chart(payload: dict[str, Any]) -> MoveIndex:
    """Latest close and its change against the previous close."""
    result = payload["chart"]["result"][0]
    closes = [c for c in result["indicators"]["quote"][0]["close"] if c is not None]
    if not closes:
        raise ValueError("MOVE chart has no closing prices")
    latest = float(closes[-1])
    previous = float(closes[-2]) if len(closes) > 1 else latest
    change = latest - previous
    change_percent = change / previous * 100 if previous else 0.0
    return MoveIndex(value=latest, change=round(change, 2), change_percent=round(change_percent, 2))


class MoveIndexProvider(HttpProvider):
    name = "MOVE index"

    async def _fetch(self) -> dict[str, Any]:
        payload = await self._fetch_json(
            YAHOO_MOVE_URL,
            {"interval": "1d", "range": "5d"},
            headers={"User-Agent": BROWSER_USER_AGENT},
        )
        move = parse_chart(payload)
        logger.info("MOVE index %.2f (%+.2f%%)", move.value, move.change_percent)
        return asdict(move)

    async def latest(self, *, force_refresh: bool = False) -> ProviderResult[MoveIndex]:
        try:
            move = await self._cached_fetch(
                MOVE_INDEX.key,
                self._fetch,
                MOVE_INDEX.ttl_seconds,
                lambda data: MoveIndex(**data),
                force_refresh=force_refresh,
            )
        except FETCH_ERRORS as e:
            logger.warning("Using demo MOVE data: %s", e)
            return Fallback(DEMO_MOVE_INDEX, str(e))
        return Live(move)
