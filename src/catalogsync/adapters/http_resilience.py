"""Async HTTP client for crawling: transport retries, request pacing, optional response cache."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import RetryTransport

if TYPE_CHECKING:
    from types import TracebackType

    from catalogsync.config.http_resilience import CacheConfig, ResilienceConfig, ShouldCacheHook

log = logging.getLogger(__name__)


class ResilientClient:
    """GET-only client; one instance per crawl session.

    ``transport`` replaces the network transport underneath the retry layer,
    which is how tests serve canned responses.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        self._client = _build_client(config, transport)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, *, params: dict[str, str] | None = None) -> httpx.Response:
        if self._limiter is None:
            return await self._client.get(url, params=params)
        async with self._limiter:
            return await self._client.get(url, params=params)


def _build_client(
    config: ResilienceConfig,
    transport: httpx.AsyncBaseTransport | None,
) -> httpx.AsyncClient:
    retry_transport = RetryTransport(transport=transport, retry=config.retry.build())
    headers = dict(config.default_headers or {})
    base_url = config.base_url or ""

    if config.cache is None:
        return httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=config.timeout_seconds,
            transport=retry_transport,
        )

    storage, policy = _cache_components(config.cache)
    log.debug("HTTP cache for %s at %s", config.name, config.cache.sqlite_path or ":memory:")
    return AsyncCacheClient(
        base_url=base_url,
        headers=headers,
        timeout=config.timeout_seconds,
        transport=retry_transport,
        storage=storage,
        policy=policy,
    )


class _ShouldCacheResponseFilter(BaseFilter[HishelCacheResponse]):
    """Hishel response filter that delegates to a predicate over the decoded JSON body."""

    def __init__(self, predicate: ShouldCacheHook) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return True
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            # Not JSON, so not a contents payload.
            return False
        return bool(self._predicate(payload))


def _cache_components(config: CacheConfig) -> tuple[AsyncSqliteStorage, FilterPolicy | None]:
    storage = AsyncSqliteStorage(
        database_path=config.sqlite_path or ":memory:",
        default_ttl=config.ttl_seconds,
    )
    if config.should_cache is None:
        return storage, None
    return storage, FilterPolicy(response_filters=[_ShouldCacheResponseFilter(config.should_cache)])
