"""GitHub contents API client for integration manifests and brand listings."""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import time
from logging import getLogger
from typing import TYPE_CHECKING, Any, Self

import httpx
from pydantic import TypeAdapter, ValidationError

from catalogsync.adapters.http_resilience import ResilientClient

from .schema import GitHubContent, Manifest

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

    from catalogsync.config.github import GitHubSourceConfig
    from catalogsync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

RATE_LIMIT_STATUSES = frozenset({403, 429})
RATE_LIMIT_GRACE_SECONDS = 1.0
BRAND_LISTINGS = ("core_integrations", "custom_integrations")
EXCLUDED_DOMAINS = frozenset({"tests"})

_CONTENT_LISTING = TypeAdapter(list[GitHubContent])


class SourceError(RuntimeError):
    """Base class for upstream source failures."""


class SourceFetchError(SourceError):
    """Raised when a request fails for good or returns an unusable payload."""

    def __init__(self, message: str, *, path: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.status_code = status_code


class RateLimitExceededError(SourceError):
    """Raised when honouring the rate limit would exceed the configured wait cap."""

    def __init__(self, path: str, *, waited: float, required: float, cap: float) -> None:
        super().__init__(
            f"Rate limit wait for {path} would reach {waited + required:.0f}s (cap {cap:.0f}s)"
        )
        self.path = path
        self.waited = waited
        self.required = required


class GitHubClient:
    """Async client for one crawl session; use as ``async with``.

    Transient transport failures are retried by the resilient client. Rate-limit
    responses are handled here by sleeping until GitHub's reset time, and those
    waits do not count as retries.
    """

    def __init__(
        self,
        *,
        config: GitHubSourceConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._sleep = sleep
        self._clock = clock
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> Self:
        self._client = self._client_factory(self._resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def list_domains(self) -> list[str]:
        """Integration directory names of the core repository, sorted."""

        path = self._contents_path(self._config.core_repository, self._config.components_path)
        items = await self._fetch_listing(path)
        return sorted(
            item.name
            for item in items
            if item.is_dir and not item.name.startswith("__") and item.name not in EXCLUDED_DOMAINS
        )

    async def fetch_manifest(self, domain: str) -> Manifest | None:
        """Return the domain's manifest, or ``None`` when it has none."""

        path = self._contents_path(
            self._config.core_repository,
            f"{self._config.components_path}/{domain}/manifest.json",
        )
        payload = await self._fetch_json(path, allow_missing=True)
        if payload is None:
            return None
        try:
            content = GitHubContent.model_validate(payload)
        except ValidationError as exc:
            raise SourceFetchError(f"Unexpected contents payload for {domain}", path=path) from exc
        if content.encoding != "base64" or not content.content:
            raise SourceFetchError(
                f"Unexpected content encoding for {domain}: {content.encoding!r}", path=path
            )
        try:
            document = json.loads(base64.b64decode(content.content).decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            raise SourceFetchError(f"Invalid manifest for {domain}: {exc}", path=path) from exc
        if not isinstance(document, dict):
            raise SourceFetchError(f"Manifest for {domain} is not a JSON object", path=path)
        try:
            return Manifest.model_validate(document)
        except ValidationError as exc:
            raise SourceFetchError(f"Invalid manifest for {domain}: {exc}", path=path) from exc

    async def fetch_brand_domains(self) -> set[str]:
        """Domains with a brand image; a failing listing counts as empty."""

        listings = await asyncio.gather(*(self._brand_listing(name) for name in BRAND_LISTINGS))
        domains: set[str] = set()
        for listing in listings:
            domains.update(listing)
        return domains

    def brand_image_url(self, domain: str) -> str:
        return f"{self._config.brands_base_url}/{domain}/icon.png"

    async def _brand_listing(self, directory: str) -> set[str]:
        path = self._contents_path(self._config.brands_repository, directory)
        try:
            items = await self._fetch_listing(path)
        except SourceError as exc:
            log.warning("Could not fetch brand listing %s: %s", directory, exc)
            return set()
        return {item.name for item in items if item.is_dir}

    async def _fetch_listing(self, path: str) -> list[GitHubContent]:
        payload = await self._fetch_json(path)
        try:
            return _CONTENT_LISTING.validate_python(payload)
        except ValidationError as exc:
            raise SourceFetchError(f"Unexpected directory listing at {path}", path=path) from exc

    async def _fetch_json(self, path: str, *, allow_missing: bool = False) -> Any:
        response = await self._get(path)
        if response.status_code == httpx.codes.NOT_FOUND:
            if allow_missing:
                return None
            raise SourceFetchError(f"Not found: {path}", path=path, status_code=404)
        if not response.is_success:
            raise SourceFetchError(
                f"HTTP {response.status_code} {response.reason_phrase} for {path}",
                path=path,
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise SourceFetchError(f"Invalid JSON from {path}", path=path) from exc

    async def _get(self, path: str) -> httpx.Response:
        client = self._require_client()
        waited = 0.0
        while True:
            try:
                response = await client.get(path)
            except httpx.HTTPError as exc:
                raise SourceFetchError(f"GET {path} failed: {exc}", path=path) from exc
            delay = self._rate_limit_delay(response)
            if delay is None:
                return response
            cap = self._config.max_rate_limit_wait_seconds
            if cap is not None and waited + delay > cap:
                raise RateLimitExceededError(path, waited=waited, required=delay, cap=cap)
            log.warning("GitHub rate limit reached; waiting %.0fs before retrying %s", delay, path)
            await self._sleep(delay)
            waited += delay

    def _rate_limit_delay(self, response: httpx.Response) -> float | None:
        if response.status_code not in RATE_LIMIT_STATUSES:
            return None
        headers = response.headers
        reset = headers.get("x-ratelimit-reset")
        if headers.get("x-ratelimit-remaining") == "0" and reset:
            try:
                reset_at = float(reset)
            except ValueError:
                reset_at = None
            if reset_at is not None:
                return max(reset_at - self._clock(), 0.0) + RATE_LIMIT_GRACE_SECONDS
        retry_after = headers.get("retry-after")
        if retry_after:
            try:
                return max(float(retry_after), 0.0)
            except ValueError:
                return None
        return None

    def _contents_path(self, repository: str, path: str) -> str:
        return f"/repos/{repository}/contents/{path}"

    def _require_client(self) -> ResilientClient:
        if self._client is None:
            raise SourceError("GitHubClient used outside of 'async with'")
        return self._client
