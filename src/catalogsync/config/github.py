"""Upstream source (GitHub) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_flag, env_float, env_int, optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .storage import StorageConfig, get_storage_config

GITHUB_API_BASE = "https://api.github.com"
CORE_REPOSITORY = "home-assistant/core"
COMPONENTS_PATH = "homeassistant/components"
BRANDS_REPOSITORY = "home-assistant/brands"
BRANDS_BASE_URL = "https://brands.home-assistant.io"
USER_AGENT = "catalogsync"
GITHUB_TIMEOUT_SECONDS = 30.0

# Anonymous clients get 60 requests/hour from GitHub, authenticated ones 5000.
ANONYMOUS_RATE_LIMIT = RateLimit(max_calls=1, per_seconds=1.0)
AUTHENTICATED_RATE_LIMIT = RateLimit(max_calls=10, per_seconds=1.0)


@dataclass(frozen=True, slots=True)
class GitHubSourceConfig:
    """Where integrations are crawled from and how politely."""

    resilience: ResilienceConfig
    token: str | None = None
    core_repository: str = CORE_REPOSITORY
    components_path: str = COMPONENTS_PATH
    brands_repository: str = BRANDS_REPOSITORY
    brands_base_url: str = BRANDS_BASE_URL
    fetch_concurrency: int = 1
    max_rate_limit_wait_seconds: float | None = None

    @property
    def authenticated(self) -> bool:
        return self.token is not None


def is_contents_payload(payload: object) -> bool:
    """Only directory listings and file payloads are worth caching, never error bodies."""

    if isinstance(payload, list):
        return True
    return isinstance(payload, dict) and "content" in payload


def pacing_for(token: str | None) -> RateLimit:
    """Pick the request pacing for a credential tier."""

    return AUTHENTICATED_RATE_LIMIT if token else ANONYMOUS_RATE_LIMIT


def build_resilience_config(
    *,
    token: str | None,
    cache_enabled: bool = False,
    storage: StorageConfig | None = None,
) -> ResilienceConfig:
    headers = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": USER_AGENT,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"

    cache: CacheConfig | None = None
    if cache_enabled:
        storage_config = storage or get_storage_config()
        cache = CacheConfig.on_disk(
            storage_config.http_cache_path(), should_cache=is_contents_payload
        )

    return ResilienceConfig(
        name="github",
        base_url=GITHUB_API_BASE,
        timeout_seconds=GITHUB_TIMEOUT_SECONDS,
        retry=RetryPolicy(),
        ratelimit=pacing_for(token),
        cache=cache,
        default_headers=headers,
    )


def get_github_config(*, resilience: ResilienceConfig | None = None) -> GitHubSourceConfig:
    token = optional_env_var("GITHUB_TOKEN")
    return GitHubSourceConfig(
        resilience=resilience
        or build_resilience_config(
            token=token,
            cache_enabled=env_flag("CATALOGSYNC_HTTP_CACHE", default=False),
        ),
        token=token,
        fetch_concurrency=env_int("CATALOGSYNC_FETCH_CONCURRENCY", default=1),
        max_rate_limit_wait_seconds=env_float("CATALOGSYNC_MAX_RATE_LIMIT_WAIT"),
    )
