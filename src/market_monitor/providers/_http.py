from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from market_monitor.cache.wrapper import fetch_with_cache

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from market_monitor.cache.store import TtlCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

RetryDecorator = Callable[[Callable[..., Any]], Callable[..., Any]]

# Failures a provider turns into a Fallback/Unavailable result: HTTP errors
# after retries, and payloads that don't have the expected shape.
FETCH_ERRORS: tuple[type[Exception], ...] = (
    httpx.HTTPError,
    ValueError,
    KeyError,
    TypeError,
    IndexError,
    AttributeError,
)

# Rebuilding a cached record whose shape no longer matches the model.
_REBUILD_ERRORS: tuple[type[Exception], ...] = (TypeError, KeyError, ValueError, IndexError, AttributeError)


def default_http_retry(label: str) -> RetryDecorator:
    """Return a tenacity retry decorator configured for HTTP calls.

    *label* is interpolated into the warning message emitted before each
    retry attempt, e.g. ``"Retrying <label> (attempt 2): <error>"``.
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning("Retrying %s (attempt %d): %s", label, retry_state.attempt_number, retry_state.outcome)

    return retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=1, max=10),
        retry=retry_if_exception_type((httpx.TransportError, httpx.HTTPStatusError)),
        before_sleep=_log_retry,
        reraise=True,
    )


def create_http_client(timeout: float = 15.0, connect_timeout: float = 5.0) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout, connect=connect_timeout),
        headers={"Accept": "application/json"},
        follow_redirects=True,
    )


def _redact(params: dict[str, Any] | None) -> dict[str, Any] | None:
    if params is None:
        return None
    return {k: ("***" if k in ("api_key", "apikey", "token") else v) for k, v in params.items()}


class HttpProvider:
    """Shared plumbing for providers: an HTTP client, a cache and a retry policy."""

    name = "http"

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: TtlCache,
        retry: RetryDecorator | None = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._fetch_json = (retry or default_http_retry(self.name))(self._do_fetch_json)

    async def _do_fetch_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        logger.debug("GET %s params=%s", url, _redact(params))
        response = await self._client.get(url, params=params, headers=headers)
        response.raise_for_status()
        return response.json()

    async def _cached_fetch(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        ttl_seconds: float,
        build: Callable[[Any], T],
        *,
        force_refresh: bool = False,
    ) -> T:
        """Fetch through the cache and rebuild the model from the stored payload.

        A cached record that no longer fits ``build`` is dropped and refetched
        once from upstream.
        """
        data = await fetch_with_cache(self._cache, key, producer, ttl_seconds, force_refresh=force_refresh)
        try:
            return build(data)
        except _REBUILD_ERRORS as e:
            if force_refresh:
                raise
            logger.warning("Discarding cached %s with unexpected shape: %s", key, e)
            self._cache.remove(key)
        data = await fetch_with_cache(self._cache, key, producer, ttl_seconds, force_refresh=True)
        return build(data)
