"""GitHub adapter: crawls Home Assistant integration manifests."""

from __future__ import annotations

from .client import GitHubClient, RateLimitExceededError, SourceError, SourceFetchError
from .fetcher import GitHubCatalogSource, github_source_factory
from .schema import GitHubContent, Manifest
from .translator import translate_manifest, translate_missing_manifest

__all__ = [
    "GitHubCatalogSource",
    "GitHubClient",
    "GitHubContent",
    "Manifest",
    "RateLimitExceededError",
    "SourceError",
    "SourceFetchError",
    "github_source_factory",
    "translate_manifest",
    "translate_missing_manifest",
]
