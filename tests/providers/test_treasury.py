import datetime

import pytest

from market_monitor.cache.store import TtlCache
from market_monitor.exceptions import ConfigurationError
from market_monitor.providers.treasury import TreasuryProvider, parse_observation
from market_monitor.result import Fallback, Live
from tests.fakes.http import NO_WAIT_RETRY, FailNTransport, FakeTransport, client_for

_TODAY = datetime.date(2025, 3, 14)


def _observations(value: str, date: str = "2025-03-13") -> dict[str, object]:
    return {"observations": [{"date": date, "value": value}]}


_PAYLOADS = {"DGS2": _observations("4.10"), "DGS10": _observations("4.30")}


def _provider(transport: FakeTransport, cache: TtlCache, api_key: str | None = "test-key") -> TreasuryProvider:
    return TreasuryProvider(client_for(transport), cache, api_key, retry=NO_WAIT_RETRY)


class TestParseObservation:
    def test_latest_observation(self) -> None:
        obs = parse_observation(_observations("4.30"))
        assert obs.date == "2025-03-13"
        assert obs.value == 4.30

    def test_missing_value_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_observation(_observations("."))

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError, match="no observations"):
            parse_observation({"observations": []})


class TestYieldCurve:
    async def test_live_curve(self, cache: TtlCache) -> None:
        transport = FakeTransport.by_param("series_id", _PAYLOADS)

        result = await _provider(transport, cache).yield_curve(today=_TODAY)

        assert isinstance(result, Live)
        curve = result.unwrap()
        assert curve.two_year.value == 4.10
        assert curve.ten_year.value == 4.30
        assert curve.spread == pytest.approx(0.2)
        assert curve.is_inverted is False

    async def test_inverted_curve(self, cache: TtlCache) -> None:
        transport = FakeTransport.by_param(
            "series_id", {"DGS2": _observations("4.60"), "DGS10": _observations("4.20")}
        )

        curve = (await _provider(transport, cache).yield_curve(today=_TODAY)).unwrap()

        assert curve.spread == pytest.approx(-0.4)
        assert curve.is_inverted is True

    async def test_cached_under_daily_key(self, cache: TtlCache) -> None:
        transport = FakeTransport.by_param("series_id", _PAYLOADS)
        provider = _provider(transport, cache)

        await provider.yield_curve(today=_TODAY)
        second = await provider.yield_curve(today=_TODAY)

        assert transport.call_count == 2
        assert second.is_live()
        assert cache.get("treasury_yields_daily_2025-03-14") is not None

    async def test_cached_record_with_wrong_shape_is_refetched(self, cache: TtlCache) -> None:
        cache.set("treasury_yields_daily_2025-03-14", [4.1, 4.3], ttl_seconds=60)
        transport = FakeTransport.by_param("series_id", _PAYLOADS)

        result = await _provider(transport, cache).yield_curve(today=_TODAY)

        assert isinstance(result, Live)
        assert result.unwrap().ten_year.value == 4.30
        assert transport.call_count == 2
        assert cache.get("treasury_yields_daily_2025-03-14")["spread"] == pytest.approx(0.2)

    async def test_next_day_refetches(self, cache: TtlCache) -> None:
        transport = FakeTransport.by_param("series_id", _PAYLOADS)
        provider = _provider(transport, cache)

        await provider.yield_curve(today=_TODAY)
        await provider.yield_curve(today=_TODAY + datetime.timedelta(days=1))

        assert transport.call_count == 4

    async def test_sends_series_and_key(self, cache: TtlCache) -> None:
        transport = FakeTransport.by_param("series_id", _PAYLOADS)

        await _provider(transport, cache).yield_curve(today=_TODAY)

        series = sorted(r.url.params["series_id"] for r in transport.requests)
        assert series == ["DGS10", "DGS2"]
        assert all(r.url.params["api_key"] == "test-key" for r in transport.requests)

    async def test_no_api_key_returns_demo(self, cache: TtlCache) -> None:
        transport = FakeTransport.by_param("series_id", _PAYLOADS)

        result = await _provider(transport, cache, api_key=None).yield_curve(today=_TODAY)

        assert isinstance(result, Fallback)
        assert result.reason == "FRED API key not configured"
        assert result.unwrap().two_year.value == 4.25
        assert result.unwrap().ten_year.value == 4.55
        assert transport.call_count == 0

    async def test_upstream_failure_returns_demo_and_caches_nothing(self, cache: TtlCache) -> None:
        result = await _provider(FakeTransport.status(500), cache).yield_curve(today=_TODAY)

        assert isinstance(result, Fallback)
        assert result.unwrap().spread == pytest.approx(0.3)
        assert cache.get("treasury_yields_daily_2025-03-14") is None


class TestLatestYield:
    async def test_retries_then_succeeds(self, cache: TtlCache) -> None:
        transport = FailNTransport(2, _observations("4.30"))

        obs = await _provider(transport, cache).latest_yield("DGS10")

        assert obs.value == 4.30
        assert transport.call_count == 3

    async def test_invalid_series(self, cache: TtlCache) -> None:
        with pytest.raises(ConfigurationError, match="Invalid series_id"):
            await _provider(FakeTransport.json({}), cache).latest_yield("DGS7")


class TestYieldCurveHistory:
    async def test_synthetic_history_is_fallback(self, cache: TtlCache) -> None:
        result = await _provider(FakeTransport.json({}), cache).yield_curve_history(days=30, today=_TODAY)

        assert isinstance(result, Fallback)
        history = result.unwrap()
        assert len(history.dates) == 31
        assert history.dates[-1] == "2025-03-14"
        assert len(history.spread) == len(history.two_year) == len(history.ten_year) == 31
