"""Tests for timeout retries in the Retry Fetcher."""

from __future__ import annotations

import httpx
import pytest

from news_relay.core.types import RequestPolicy
from news_relay.fetch.fetcher import FetchError, FetchTimeoutError, RetryFetcher, next_timeout


def _fetcher(handler, sleeps):
    return RetryFetcher(transport=httpx.MockTransport(handler), sleep=sleeps.append)


def test_timeouts_grow_and_stay_under_the_ceiling():
    seen = []
    sleeps = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.extensions["timeout"]["read"])
        raise httpx.ReadTimeout("timed out", request=request)

    policy = RequestPolicy(max_retries=3, initial_timeout=1.0, max_timeout=5.0, retry_delay=0.25)

    with pytest.raises(FetchTimeoutError) as excinfo:
        _fetcher(handler, sleeps).fetch("https://example.com/rss", policy)

    assert seen == pytest.approx([1.0, 1.5, 2.25, 3.375])
    assert all(timeout <= 5.0 for timeout in seen)
    assert excinfo.value.attempts == 4
    assert sleeps == [0.25, 0.25, 0.25]
    assert isinstance(excinfo.value.__cause__, httpx.TimeoutException)


def test_timeout_growth_is_capped():
    policy = RequestPolicy(max_retries=3, initial_timeout=4.0, max_timeout=5.0)

    assert next_timeout(4.0, policy) == 5.0
    assert next_timeout(5.0, policy) == 5.0
    assert next_timeout(2.0, policy) == 3.0


def test_success_after_timeout_returns_body():
    calls = []
    sleeps = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        if len(calls) == 1:
            raise httpx.ConnectTimeout("slow", request=request)
        return httpx.Response(200, text="<rss/>")

    body = _fetcher(handler, sleeps).fetch("https://example.com/rss", RequestPolicy(retry_delay=1.0))

    assert body == "<rss/>"
    assert len(calls) == 2
    assert sleeps == [1.0]


def test_http_error_status_fails_without_retry():
    calls = []
    sleeps = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        return httpx.Response(503, text="busy")

    with pytest.raises(FetchError) as excinfo:
        _fetcher(handler, sleeps).fetch("https://example.com/rss", RequestPolicy())

    assert not isinstance(excinfo.value, FetchTimeoutError)
    assert excinfo.value.status_code == 503
    assert len(calls) == 1
    assert sleeps == []


def test_connection_error_fails_without_retry():
    calls = []
    sleeps = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(FetchError) as excinfo:
        _fetcher(handler, sleeps).fetch("https://example.com/rss", RequestPolicy())

    assert excinfo.value.status_code is None
    assert excinfo.value.url == "https://example.com/rss"
    assert len(calls) == 1
    assert sleeps == []


def test_zero_retries_makes_a_single_attempt():
    calls = []
    sleeps = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(FetchTimeoutError):
        _fetcher(handler, sleeps).fetch("https://example.com/", RequestPolicy(max_retries=0))

    assert len(calls) == 1
    assert sleeps == []
