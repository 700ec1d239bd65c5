"""Cache-aside wrappers for asynchronous producers.

Usage:
    quote = await fetch_with_cache(
        cache,
        symbol_key(STOCK_QUOTES, "AAPL"),
        lambda: client.fetch_quote("AAPL"),
        ttl_seconds=STOCK_QUOTES.ttl_seconds,
    )

    @cached(cache, key_fn=lambda symbol: f"stock_quote_{symbol}", ttl_seconds=900)
    async def fetch_quote(symbol: str) -> dict[str, float]: ...

    await fetch_quote("AAPL")                      # cache-aside
    await fetch_quote("AAPL", force_refresh=True)  # bypasses the cached entry
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from market_monitor.cache.store import TtlCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def fetch_with_cache(
    cache: TtlCache,
    key: str,
    producer: Callable[[], Awaitable[T]],
    ttl_seconds: float = 3600,
    *,
    force_refresh: bool = False,
) -> T:
    """Return the cached value for ``key``, calling ``producer`` on a miss.

    Exceptions from ``producer`` propagate unchanged and nothing is cached.

    Args:
        cache: The TTL cache to read from and populate.
        key: Cache key, without the namespace prefix.
        producer: Zero-argument coroutine function that fetches fresh data.
        ttl_seconds: Time-to-live for the stored result.
        force_refresh: Skip the lookup and always call the producer.
    """
    if force_refresh:
        logger.debug("Force refresh: %s", key)
    else:
        cached_value = cache.get(key)
        if cached_value is not None:
            return cached_value

    data = await producer()
    cache.set(key, data, ttl_seconds)
    return data


def cached(
    cache: TtlCache,
    key_fn: Callable[..., str],
    ttl_seconds: float = 3600,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorate a coroutine function with cache-aside semantics.

    The wrapped function gains a keyword-only ``force_refresh`` flag. The cache
    key is ``key_fn(*args, **kwargs)`` of the original call arguments.
    """

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, force_refresh: bool = False, **kwargs: Any) -> T:
            return await fetch_with_cache(
                cache,
                key_fn(*args, **kwargs),
                lambda: fn(*args, **kwargs),
                ttl_seconds,
                force_refresh=force_refresh,
            )

        return wrapper

    return decorator
