from __future__ import annotations

import asyncio

import pytest

from market_monitor.cache.store import TtlCache
from market_monitor.cache.wrapper import cached, fetch_with_cache
from tests.fakes.clock import FakeClock
from tests.fakes.storage import BrokenStorage


class SequenceProducer:
    """Returns the given values in order and counts calls."""

    def __init__(self, *values: object) -> None:
        self._values = list(values)
        self.calls = 0

    async def __call__(self) -> object:
        value = self._values[self.calls]
        self.calls += 1
        return value


class TestFetchWithCache:
    async def test_miss_calls_producer_and_stores(self, cache: TtlCache) -> None:
        producer = SequenceProducer("A")

        result = await fetch_with_cache(cache, "k", producer, ttl_seconds=60)

        assert result == "A"
        assert producer.calls == 1
        assert cache.get("k") == "A"

    async def test_hit_skips_producer(self, cache: TtlCache) -> None:
        producer = SequenceProducer("A", "B")

        first = await fetch_with_cache(cache, "k", producer, ttl_seconds=60)
        second = await fetch_with_cache(cache, "k", producer, ttl_seconds=60)

        assert (first, second) == ("A", "A")
        assert producer.calls == 1

    async def test_force_refresh_replaces_entry(self, cache: TtlCache) -> None:
        producer = SequenceProducer("A", "B", "C")

        await fetch_with_cache(cache, "k", producer, ttl_seconds=60)
        refreshed = await fetch_with_cache(cache, "k", producer, ttl_seconds=60, force_refresh=True)
        after = await fetch_with_cache(cache, "k", producer, ttl_seconds=60)

        assert refreshed == "B"
        assert after == "B"
        assert producer.calls == 2

    async def test_refetches_after_expiry(self, cache: TtlCache, clock: FakeClock) -> None:
        producer = SequenceProducer("A", "B")

        await fetch_with_cache(cache, "k", producer, ttl_seconds=60)
        clock.advance(61)
        result = await fetch_with_cache(cache, "k", producer, ttl_seconds=60)

        assert result == "B"
        assert producer.calls == 2

    async def test_producer_error_propagates_uncached(self, cache: TtlCache) -> None:
        calls = 0

        async def failing() -> str:
            nonlocal calls
            calls += 1
            raise RuntimeError("upstream down")

        with pytest.raises(RuntimeError, match="upstream down"):
            await fetch_with_cache(cache, "k", failing, ttl_seconds=60)

        assert calls == 1
        assert cache.get("k") is None

    async def test_producer_error_keeps_previous_entry_on_force_refresh(self, cache: TtlCache) -> None:
        cache.set("k", "old", ttl_seconds=60)

        async def failing() -> str:
            raise RuntimeError("upstream down")

        with pytest.raises(RuntimeError):
            await fetch_with_cache(cache, "k", failing, ttl_seconds=60, force_refresh=True)

        assert cache.get("k") == "old"

    async def test_concurrent_producers_for_distinct_keys(self, cache: TtlCache) -> None:
        async def quote(symbol: str) -> dict[str, str]:
            await asyncio.sleep(0)
            return {"symbol": symbol}

        results = await asyncio.gather(
            *(fetch_with_cache(cache, f"q_{s}", lambda s=s: quote(s), ttl_seconds=60) for s in ("AAPL", "MSFT", "SPY"))
        )

        assert [r["symbol"] for r in results] == ["AAPL", "MSFT", "SPY"]
        assert cache.get("q_MSFT") == {"symbol": "MSFT"}

    async def test_broken_cache_degrades_to_always_fetch(self, clock: FakeClock) -> None:
        cache = TtlCache(BrokenStorage(), clock=clock)
        producer = SequenceProducer("A", "B")

        assert await fetch_with_cache(cache, "k", producer, ttl_seconds=60) == "A"
        assert await fetch_with_cache(cache, "k", producer, ttl_seconds=60) == "B"


class TestCachedDecorator:
    async def test_keys_by_arguments(self, cache: TtlCache) -> None:
        calls: list[str] = []

        @cached(cache, key_fn=lambda symbol: f"quote_{symbol}", ttl_seconds=60)
        async def fetch_quote(symbol: str) -> dict[str, object]:
            calls.append(symbol)
            return {"symbol": symbol, "n": len(calls)}

        assert await fetch_quote("AAPL") == {"symbol": "AAPL", "n": 1}
        assert await fetch_quote("AAPL") == {"symbol": "AAPL", "n": 1}
        assert await fetch_quote("MSFT") == {"symbol": "MSFT", "n": 2}
        assert calls == ["AAPL", "MSFT"]

    async def test_force_refresh_keyword(self, cache: TtlCache) -> None:
        counter = 0

        @cached(cache, key_fn=lambda: "counter", ttl_seconds=60)
        async def bump() -> int:
            nonlocal counter
            counter += 1
            return counter

        assert await bump() == 1
        assert await bump(force_refresh=True) == 2
        assert await bump() == 2

    def test_preserves_metadata(self, cache: TtlCache) -> None:
        @cached(cache, key_fn=lambda: "k")
        async def fetch_thing() -> int:
            """Fetch the thing."""
            return 1

        assert fetch_thing.__name__ == "fetch_thing"
        assert fetch_thing.__doc__ == "Fetch the thing."
