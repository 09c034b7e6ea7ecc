"""Configuration types for the resilient HTTP client used by source crawlers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
from httpx_retries import Retry

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

ShouldCacheHook = Callable[[object], bool]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Transport-level retries for transient failures.

    ``total`` counts retries, so a request is attempted at most ``total + 1`` times.
    403 and 429 are absent from ``status_forcelist``: rate-limit responses carry
    reset information that the source client waits on itself.
    """

    total: int = 2
    backoff_factor: float = 1.0
    max_backoff_wait: float = 60.0
    backoff_jitter: float = 1.0
    status_forcelist: frozenset[int] = field(
        default_factory=lambda: frozenset({500, 502, 503, 504})
    )
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )

    def build(self) -> Retry:
        # Crawling only ever reads.
        return Retry(
            total=self.total,
            backoff_factor=self.backoff_factor,
            max_backoff_wait=self.max_backoff_wait,
            backoff_jitter=self.backoff_jitter,
            allowed_methods=("GET", "HEAD"),
            status_forcelist=tuple(self.status_forcelist),
            retry_on_exceptions=self.retry_on_exceptions,
        )


@dataclass(slots=True, frozen=True)
class RateLimit:
    """Client-side pacing: at most ``max_calls`` requests per ``per_seconds``."""

    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """On-disk response cache; ``sqlite_path=None`` keeps it in memory."""

    sqlite_path: str | None = None
    ttl_seconds: float | None = None
    should_cache: ShouldCacheHook | None = None

    @classmethod
    def on_disk(cls, path: Path, *, should_cache: ShouldCacheHook | None = None) -> CacheConfig:
        return cls(sqlite_path=str(path), should_cache=should_cache)


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    default_headers: Mapping[str, str] | None = None
