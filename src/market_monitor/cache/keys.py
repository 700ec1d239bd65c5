from __future__ import annotations

import datetime
from dataclasses import dataclass


@dataclass(frozen=True)
class CachePolicy:
    key: str
    ttl_seconds: int


_MINUTE = 60
_HOUR = 60 * _MINUTE

TREASURY_YIELDS = CachePolicy("treasury_yields_daily", 1 * _HOUR)
MOVE_INDEX = CachePolicy("move_index_hourly", 30 * _MINUTE)
FEAR_GREED = CachePolicy("fear_greed_hourly", 1 * _HOUR)
FEAR_GREED_HISTORY = CachePolicy("fear_greed_history_", 1 * _HOUR)
STOCK_QUOTES = CachePolicy("stock_quote_", 15 * _MINUTE)
EARNINGS_CALENDAR = CachePolicy("earnings_calendar_", 6 * _HOUR)
MARKETS = CachePolicy("markets_", 15 * _MINUTE)
NEWS = CachePolicy("news_", 30 * _MINUTE)
PREDICTIONS = CachePolicy("polymarket_predictions", 5 * _MINUTE)


def daily_key(policy: CachePolicy, today: datetime.date | None = None) -> str:
    """Qualify ``policy.key`` with the calendar date so it rolls over at midnight UTC."""
    if today is None:
        today = datetime.datetime.now(datetime.UTC).date()
    return f"{policy.key}_{today.isoformat()}"


def symbol_key(policy: CachePolicy, symbol: str) -> str:
    return f"{policy.key}{symbol.upper()}"
