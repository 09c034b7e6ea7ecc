"""Errors raised by the reconciliation engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from catalogsync.domain.model import SyncStateError

if TYPE_CHECKING:
    from uuid import UUID


class SyncConflictError(RuntimeError):
    """Raised when a sync is requested while another one is still running."""

    def __init__(self, active: frozenset[UUID]) -> None:
        ids = ", ".join(sorted(str(run_id) for run_id in active))
        super().__init__(f"Sync already in progress ({ids}); pass force=True to start anyway")
        self.active = active


class SyncNotFoundError(LookupError):
    """Raised when a sync run id is unknown."""

    def __init__(self, sync_id: UUID) -> None:
        super().__init__(f"Sync run {sync_id} not found")
        self.sync_id = sync_id


__all__ = ["SyncConflictError", "SyncNotFoundError", "SyncStateError"]
