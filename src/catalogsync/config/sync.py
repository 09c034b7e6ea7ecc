"""Reconciliation defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .env import env_flag, env_int, optional_env_var

DEFAULT_SYNC_WORKERS = 2
DEFAULT_EXTENSIONS_DIR = "extensions"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    # Domains whose fetch failed in a run are left alone instead of deprecated.
    protect_failed_domains: bool = True
    max_workers: int = DEFAULT_SYNC_WORKERS
    extensions_dir: Path = Path(DEFAULT_EXTENSIONS_DIR)


def get_sync_config() -> SyncConfig:
    extensions_dir = optional_env_var("CATALOGSYNC_EXTENSIONS_DIR") or DEFAULT_EXTENSIONS_DIR
    return SyncConfig(
        protect_failed_domains=env_flag("CATALOGSYNC_PROTECT_FAILED_DOMAINS", default=True),
        max_workers=env_int("CATALOGSYNC_SYNC_WORKERS", default=DEFAULT_SYNC_WORKERS),
        extensions_dir=Path(extensions_dir),
    )
