"""Headline feeds from the GDELT DOC 2.0 API, one query per category."""

from __future__ import annotations

import asyncio
import datetime
import hashlib
import logging
import re
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from market_monitor.cache.keys import NEWS
from market_monitor.exceptions import ConfigurationError
from market_monitor.providers._http import FETCH_ERRORS, HttpProvider
from market_monitor.result import Live, Unavailable

if TYPE_CHECKING:
    import httpx

    from market_monitor.cache.store import TtlCache
    from market_monitor.providers._http import RetryDecorator
    from market_monitor.result import ProviderResult

logger = logging.getLogger(__name__)

GDELT_URL = "https://api.gdeltproject.org/api/v2/doc/doc"
MAX_ARTICLES = 10

CATEGORY_QUERIES: dict[str, str] = {
    "politics": "(politics OR government OR election OR congress) sourcelang:english",
    "tech": '(technology OR software OR "artificial intelligence") sourcelang:english',
    "finance": '(finance OR "stock market" OR economy) sourcelang:english',
    "gov": '("federal government" OR "white house") sourcelang:english',
    "ai": '("artificial intelligence" OR AI OR "machine learning") sourcelang:english',
    "intel": "(intelligence OR military OR defense) sourcelang:english",
}
CATEGORIES = tuple(CATEGORY_QUERIES)

_GDELT_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})Z$")


@dataclass(frozen=True)
class NewsItem:
    id: str
    title: str
    link: str
    published: str
    source: str
    category: str


def parse_gdelt_date(raw: str | None) -> datetime.datetime | None:
    """Parse GDELT's ``YYYYMMDDTHHMMSSZ`` timestamps (UTC)."""
    if not raw:
        return None
    match = _GDELT_DATE.match(raw)
    if match:
        return datetime.datetime(*(int(part) for part in match.groups()), tzinfo=datetime.UTC)
    try:
        return datetime.datetime.fromisoformat(raw)
    except ValueError:
        return None


def _url_hash(url: str) -> str:
    return hashlib.sha1(url.encode()).hexdigest()[:10]


def parse_articles(category: str, payload: dict[str, Any]) -> list[NewsItem]:
    items = []
    for index, article in enumerate((payload.get("articles") or [])[:MAX_ARTICLES]):
        url = article.get("url") or ""
        published = parse_gdelt_date(article.get("seendate"))
        items.append(
            NewsItem(
                id=f"gdelt-{category}-{_url_hash(url)}-{index}",
                title=article.get("title") or "",
                link=url,
                published=published.isoformat() if published else "",
                source=article.get("domain") or "Unknown",
                category=category,
            )
        )
    return items


class NewsProvider(HttpProvider):
    name = "GDELT news"

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: TtlCache,
        *,
        delay_between_categories: float = 1.0,
        retry: RetryDecorator | None = None,
    ) -> None:
        super().__init__(client, cache, retry)
        self._delay = delay_between_categories

    async def _fetch_category(self, category: str) -> list[dict[str, Any]]:
        payload = await self._fetch_json(
            GDELT_URL,
            {
                "query": CATEGORY_QUERIES[category],
                "timespan": "3d",
                "mode": "artlist",
                "maxrecords": MAX_ARTICLES,
                "format": "json",
                "sort": "date",
            },
        )
        items = parse_articles(category, payload)
        logger.info("Fetched %d %s articles", len(items), category)
        return [asdict(item) for item in items]

    async def category_news(self, category: str, *, force_refresh: bool = False) -> ProviderResult[list[NewsItem]]:
        if category not in CATEGORY_QUERIES:
            raise ConfigurationError(f"Unknown news category {category!r}; expected one of {', '.join(CATEGORIES)}")
        try:
            items = await self._cached_fetch(
                f"{NEWS.key}{category}",
                lambda: self._fetch_category(category),
                NEWS.ttl_seconds,
                lambda rows: [NewsItem(**row) for row in rows],
                force_refresh=force_refresh,
            )
        except FETCH_ERRORS as e:
            logger.warning("News for %s unavailable: %s", category, e)
            return Unavailable(str(e))
        return Live(items)

    async def all_news(self, *, force_refresh: bool = False) -> dict[str, ProviderResult[list[NewsItem]]]:
        """Every category, fetched one after another to stay under GDELT's rate limit."""
        results: dict[str, ProviderResult[list[NewsItem]]] = {}
        for i, category in enumerate(CATEGORIES):
            if i > 0 and self._delay > 0:
                await asyncio.sleep(self._delay)
            results[category] = await self.category_news(category, force_refresh=force_refresh)
        return results
