"""Domain model for the integration catalog and its sync history."""

from __future__ import annotations

from .catalog import DEFAULT_FLOW_TYPE, CatalogEntry, JSONDocument, utcnow
from .enums import CatalogSyncStatus, ChangeType, FlowType, SyncRunStatus, SyncType
from .sync import (
    SYSTEM_ERROR_DOMAIN,
    SyncChange,
    SyncCounters,
    SyncError,
    SyncRun,
    SyncStateError,
)

__all__ = [
    "DEFAULT_FLOW_TYPE",
    "SYSTEM_ERROR_DOMAIN",
    "CatalogEntry",
    "CatalogSyncStatus",
    "ChangeType",
    "FlowType",
    "JSONDocument",
    "SyncChange",
    "SyncCounters",
    "SyncError",
    "SyncRun",
    "SyncRunStatus",
    "SyncStateError",
    "SyncType",
    "utcnow",
]
