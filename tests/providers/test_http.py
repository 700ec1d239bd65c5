import logging

import httpx
import pytest
from tenacity import wait_none

from market_monitor.cache.store import TtlCache
from market_monitor.providers._http import HttpProvider, _redact, create_http_client, default_http_retry
from tests.fakes.http import NO_WAIT_RETRY, FailNTransport, FakeTransport, client_for


class TestDefaultHttpRetry:
    async def test_retries_async_transport_error(self) -> None:
        calls: list[int] = []

        @default_http_retry("Test")
        async def flaky() -> str:
            calls.append(1)
            if len(calls) < 3:
                raise httpx.TransportError("connection failed")
            return "ok"

        flaky.retry.wait = wait_none()  # type: ignore[attr-defined]
        assert await flaky() == "ok"
        assert len(calls) == 3

    async def test_log_message_includes_label(self, caplog: pytest.LogCaptureFixture) -> None:
        calls: list[int] = []

        @default_http_retry("MyLabel")
        async def flaky() -> str:
            calls.append(1)
            if len(calls) < 2:
                raise httpx.ConnectError("refused")
            return "ok"

        flaky.retry.wait = wait_none()  # type: ignore[attr-defined]
        with caplog.at_level(logging.WARNING):
            assert await flaky() == "ok"

        assert "Retrying MyLabel (attempt 1)" in caplog.text

    async def test_does_not_retry_value_errors(self) -> None:
        calls: list[int] = []

        @default_http_retry("Test")
        async def broken() -> None:
            calls.append(1)
            raise ValueError("bad payload")

        with pytest.raises(ValueError):
            await broken()
        assert len(calls) == 1


class TestHttpProvider:
    async def test_gives_up_after_three_attempts(self, cache: TtlCache) -> None:
        transport = FailNTransport(5, {"ok": True})
        provider = HttpProvider(client_for(transport), cache, retry=NO_WAIT_RETRY)

        with pytest.raises(httpx.HTTPStatusError):
            await provider._fetch_json("https://example.com/data")
        assert transport.call_count == 3

    async def test_recovers_from_transient_failure(self, cache: TtlCache) -> None:
        transport = FailNTransport(1, {"ok": True})
        provider = HttpProvider(client_for(transport), cache, retry=NO_WAIT_RETRY)

        assert await provider._fetch_json("https://example.com/data") == {"ok": True}
        assert transport.call_count == 2

    async def test_sends_params_and_headers(self, cache: TtlCache) -> None:
        transport = FakeTransport.json({"a": 1})
        provider = HttpProvider(client_for(transport), cache, retry=NO_WAIT_RETRY)

        result = await provider._fetch_json("https://example.com/data", {"q": "x"}, headers={"X-Test": "1"})

        assert result == {"a": 1}
        assert transport.requests[0].url.params["q"] == "x"
        assert transport.requests[0].headers["X-Test"] == "1"


def test_redact_hides_credentials() -> None:
    assert _redact({"api_key": "s", "apikey": "s", "token": "s", "symbol": "SPY"}) == {
        "api_key": "***",
        "apikey": "***",
        "token": "***",
        "symbol": "SPY",
    }
    assert _redact(None) is None


async def test_create_http_client_timeouts() -> None:
    client = create_http_client(timeout=12.0, connect_timeout=3.0)
    try:
        assert client.timeout.read == 12.0
        assert client.timeout.connect == 3.0
        assert client.follow_redirects is True
    finally:
        await client.aclose()
