from __future__ import annotations

import asyncio

import httpx

from catalogsync.adapters.http_resilience import ResilientClient, _ShouldCacheResponseFilter
from catalogsync.config.github import is_contents_payload
from catalogsync.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy


def _fetch(config: ResilienceConfig, handler: httpx.MockTransport, path: str) -> httpx.Response:
    async def scenario() -> httpx.Response:
        async with ResilientClient(config, transport=handler) as client:
            return await client.get(path)

    return asyncio.run(scenario())


def test_transient_server_errors_are_retried() -> None:
    statuses = [503, 200]
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(statuses.pop(0), json=[])

    config = ResilienceConfig(
        name="test",
        base_url="https://example.test",
        retry=RetryPolicy(total=2, backoff_factor=0.0, backoff_jitter=0.0),
    )

    response = _fetch(config, httpx.MockTransport(handler), "/listing")

    assert response.status_code == 200
    assert seen == ["/listing", "/listing"]


def test_rate_limit_statuses_are_not_retried_by_transport() -> None:
    calls: list[int] = []

    def handler(_: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(429, headers={"retry-after": "0"})

    config = ResilienceConfig(
        name="test",
        base_url="https://example.test",
        retry=RetryPolicy(total=3, backoff_factor=0.0, backoff_jitter=0.0),
    )

    response = _fetch(config, httpx.MockTransport(handler), "/listing")

    assert response.status_code == 429
    assert calls == [1]


def test_default_headers_and_pacing_apply() -> None:
    received: list[httpx.Headers] = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(request.headers)
        return httpx.Response(200, json=[])

    config = ResilienceConfig(
        name="test",
        base_url="https://example.test",
        retry=RetryPolicy(total=0),
        ratelimit=RateLimit(max_calls=100, per_seconds=1.0),
        default_headers={"User-Agent": "catalogsync-test"},
    )

    _fetch(config, httpx.MockTransport(handler), "/listing")

    assert received[0]["User-Agent"] == "catalogsync-test"


def test_cache_filter_keeps_only_contents_payloads() -> None:
    cache_filter = _ShouldCacheResponseFilter(is_contents_payload)

    assert cache_filter.needs_body()
    assert cache_filter.apply(None, b'[{"name": "hue"}]')  # type: ignore[arg-type]
    assert cache_filter.apply(None, b'{"content": "e30="}')  # type: ignore[arg-type]
    assert not cache_filter.apply(None, b'{"message": "API rate limit exceeded"}')  # type: ignore[arg-type]
    assert not cache_filter.apply(None, b"<html>")  # type: ignore[arg-type]
