"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class CatalogSyncStatus(StrEnum):
    PENDING = "pending"
    SYNCED = "synced"
    ERROR = "error"
    DEPRECATED = "deprecated"


class FlowType(StrEnum):
    NONE = "none"
    MANUAL = "manual"
    DISCOVERY = "discovery"
    OAUTH = "oauth"
    WIZARD = "wizard"
    HYBRID = "hybrid"


class SyncType(StrEnum):
    FULL = "full"
    INCREMENTAL = "incremental"
    MANUAL = "manual"


class SyncRunStatus(StrEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    # Kept for schema compatibility; the engine never produces it.
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not SyncRunStatus.RUNNING


class ChangeType(StrEnum):
    NEW = "new"
    UPDATED = "updated"
    DELETED = "deleted"
    DEPRECATED = "deprecated"
