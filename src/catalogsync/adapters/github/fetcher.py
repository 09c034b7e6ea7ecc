"""Catalog source backed by the Home Assistant repositories on GitHub."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Self

from .client import GitHubClient
from .translator import translate_manifest, translate_missing_manifest

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from catalogsync.adapters.http_resilience import ResilientClient
    from catalogsync.config.github import GitHubSourceConfig
    from catalogsync.config.http_resilience import ResilienceConfig
    from catalogsync.domain.model import CatalogEntry

log = getLogger(__name__)


class GitHubCatalogSource:
    """Produces one ``CatalogEntry`` per integration directory."""

    def __init__(
        self,
        *,
        config: GitHubSourceConfig,
        client: GitHubClient | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client = client or GitHubClient(config=config, client_factory=client_factory)

    async def __aenter__(self) -> Self:
        await self._client.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._client.__aexit__(exc_type, exc, tb)

    @property
    def fetch_concurrency(self) -> int:
        return self._config.fetch_concurrency

    async def list_domains(self) -> list[str]:
        return await self._client.list_domains()

    async def fetch_brand_domains(self) -> set[str]:
        domains = await self._client.fetch_brand_domains()
        log.info("Found %d domains with brand images", len(domains))
        return domains

    async def fetch_entry(self, domain: str, *, brand_domains: set[str]) -> CatalogEntry:
        manifest = await self._client.fetch_manifest(domain)
        if manifest is None:
            log.info("No manifest for %s; using fallback entry", domain)
            entry = translate_missing_manifest(domain)
        else:
            entry = translate_manifest(manifest, domain)
        if entry.domain in brand_domains:
            entry.brand_image_url = self._client.brand_image_url(entry.domain)
        return entry


def github_source_factory(
    config: GitHubSourceConfig,
    *,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> Callable[[], GitHubCatalogSource]:
    """Return a factory opening a fresh source (and HTTP client) per sync run."""

    def factory() -> GitHubCatalogSource:
        return GitHubCatalogSource(config=config, client_factory=client_factory)

    return factory
