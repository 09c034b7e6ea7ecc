"""Ports for persisting the catalog and its sync history."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from catalogsync.domain.model import CatalogEntry, SyncChange, SyncRun

if TYPE_CHECKING:
    from uuid import UUID

    from catalogsync.domain.model import SyncRunStatus


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class CatalogRepository(Repository[CatalogEntry], Protocol):
    """Persistence contract for catalog entries, keyed by domain."""

    def get(self, domain: str) -> CatalogEntry | None: ...

    def list_active(self) -> list[CatalogEntry]: ...

    def search_active(
        self,
        *,
        query: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[CatalogEntry]: ...

    def count_active(self, *, query: str | None = None) -> int: ...


@runtime_checkable
class SyncRunRepository(Repository[SyncRun], Protocol):
    """Persistence contract for sync runs."""

    def get(self, sync_id: UUID) -> SyncRun | None: ...

    def latest_running(self) -> SyncRun | None: ...

    def latest_finished(self) -> SyncRun | None: ...

    def recent(
        self,
        limit: int,
        *,
        status: SyncRunStatus | None = None,
        offset: int = 0,
    ) -> list[SyncRun]: ...

    def count(self, *, status: SyncRunStatus | None = None) -> int: ...


@runtime_checkable
class SyncChangeRepository(Repository[SyncChange], Protocol):
    """Append-only store of per-entry sync changes."""

    def for_run(self, sync_id: UUID) -> list[SyncChange]: ...
