"""Sync runs and the per-entry audit trail they produce."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from .catalog import utcnow
from .enums import ChangeType, SyncRunStatus, SyncType

if TYPE_CHECKING:
    from datetime import datetime

SYSTEM_ERROR_DOMAIN = "system"


class SyncStateError(RuntimeError):
    """Raised when a sync run is asked to leave a terminal state."""


@dataclass(frozen=True, slots=True)
class SyncError:
    """One failure recorded against a run; ``domain`` is ``system`` for run-level errors."""

    domain: str
    error: str

    def as_dict(self) -> dict[str, str]:
        return {"domain": self.domain, "error": self.error}


@dataclass(slots=True)
class SyncCounters:
    total: int = 0
    new: int = 0
    updated: int = 0
    deleted: int = 0
    errors: int = 0


@dataclass(eq=False, kw_only=True)
class SyncRun:
    """One reconciliation attempt; exactly one terminal transition."""

    sync_type: SyncType
    id: UUID = field(default_factory=uuid4)
    status: SyncRunStatus = SyncRunStatus.RUNNING
    started_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None
    total: int = 0
    new: int = 0
    updated: int = 0
    deleted: int = 0
    errors: int = 0
    error_details: list[SyncError] = field(default_factory=list["SyncError"])
    metadata: dict[str, Any] | None = None

    @property
    def is_running(self) -> bool:
        return self.status is SyncRunStatus.RUNNING

    @property
    def counters(self) -> SyncCounters:
        return SyncCounters(
            total=self.total,
            new=self.new,
            updated=self.updated,
            deleted=self.deleted,
            errors=self.errors,
        )

    def complete(
        self,
        counters: SyncCounters,
        errors: list[SyncError],
        *,
        metadata: dict[str, Any] | None = None,
        at: datetime | None = None,
    ) -> None:
        self._finish(SyncRunStatus.COMPLETED, at=at)
        self.total = counters.total
        self.new = counters.new
        self.updated = counters.updated
        self.deleted = counters.deleted
        self.errors = counters.errors
        self.error_details = list(errors)
        if metadata:
            self.metadata = {**(self.metadata or {}), **metadata}

    def fail(self, message: str, *, at: datetime | None = None) -> None:
        self._finish(SyncRunStatus.FAILED, at=at)
        self.errors = 1
        self.error_details = [SyncError(domain=SYSTEM_ERROR_DOMAIN, error=message)]

    def _finish(self, status: SyncRunStatus, *, at: datetime | None) -> None:
        if self.status.is_terminal:
            raise SyncStateError(
                f"Sync run {self.id} already {self.status.value}; cannot become {status.value}"
            )
        self.status = status
        self.completed_at = at or utcnow()


@dataclass(eq=False, kw_only=True)
class SyncChange:
    """Immutable audit record of one catalog mutation within a run."""

    sync_id: UUID
    domain: str
    change_type: ChangeType
    previous_version_hash: str | None = None
    new_version_hash: str | None = None
    changed_fields: list[str] = field(default_factory=list[str])
    id: int | None = None
    created_at: datetime = field(default_factory=utcnow)
