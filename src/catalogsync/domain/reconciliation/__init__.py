"""Catalog reconciliation: change planning, the sync engine and its audit trail.

Flow of one run:
1) collect upstream entries through a ``CatalogSource``
2) plan changes against the store (incremental or full)
3) apply each change with its ``SyncChange`` audit row
4) finish the ``SyncRun`` and hand update notices to the notifier
"""

from __future__ import annotations

from .diff import PlannedChange, SyncPlan, plan_full, plan_incremental
from .engine import (
    ImportOutcome,
    ReconciliationEngine,
    SyncHistoryPage,
    SyncRunDetails,
    SyncStatusSummary,
    SyncTrigger,
)
from .errors import SyncConflictError, SyncNotFoundError, SyncStateError
from .guard import SingleFlightGuard
from .notices import (
    CatalogUpdateNotifier,
    LoggingNotifier,
    NoticeKind,
    NoticeLevel,
    UpdateNotice,
    build_update_notices,
)

__all__ = [
    "CatalogUpdateNotifier",
    "ImportOutcome",
    "LoggingNotifier",
    "NoticeKind",
    "NoticeLevel",
    "PlannedChange",
    "ReconciliationEngine",
    "SingleFlightGuard",
    "SyncConflictError",
    "SyncHistoryPage",
    "SyncNotFoundError",
    "SyncPlan",
    "SyncRunDetails",
    "SyncStateError",
    "SyncStatusSummary",
    "SyncTrigger",
    "UpdateNotice",
    "build_update_notices",
    "plan_full",
    "plan_incremental",
]
