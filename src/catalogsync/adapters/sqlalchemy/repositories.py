"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select

from catalogsync.adapters.sqlalchemy.mappings import (
    catalog_table,
    sync_change_table,
    sync_run_table,
)
from catalogsync.domain.model import (
    CatalogEntry,
    CatalogSyncStatus,
    SyncChange,
    SyncRun,
    SyncRunStatus,
)

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy import Select
    from sqlalchemy.orm import Session


class SqlAlchemyCatalogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: CatalogEntry) -> None:
        self.session.add(entity)

    def get(self, domain: str) -> CatalogEntry | None:
        return self.session.get(CatalogEntry, domain)

    def list_active(self) -> list[CatalogEntry]:
        stmt = self._active().order_by(catalog_table.c.domain)
        return list(self.session.execute(stmt).scalars())

    def search_active(
        self,
        *,
        query: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[CatalogEntry]:
        stmt = self._filtered(query).order_by(catalog_table.c.name, catalog_table.c.domain)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def count_active(self, *, query: str | None = None) -> int:
        stmt = select(func.count()).select_from(self._filtered(query).subquery())
        return self.session.execute(stmt).scalar_one()

    def _active(self) -> Select[tuple[CatalogEntry]]:
        return select(CatalogEntry).where(
            catalog_table.c.sync_status != CatalogSyncStatus.DEPRECATED
        )

    def _filtered(self, query: str | None) -> Select[tuple[CatalogEntry]]:
        stmt = self._active()
        if query:
            # autoescape keeps "_" and "%" in domains literal.
            stmt = stmt.where(
                or_(
                    catalog_table.c.name.icontains(query, autoescape=True),
                    catalog_table.c.domain.icontains(query, autoescape=True),
                )
            )
        return stmt


class SqlAlchemySyncRunRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SyncRun) -> None:
        self.session.add(entity)

    def get(self, sync_id: UUID) -> SyncRun | None:
        return self.session.get(SyncRun, sync_id)

    def latest_running(self) -> SyncRun | None:
        stmt = (
            select(SyncRun)
            .where(sync_run_table.c.status == SyncRunStatus.RUNNING)
            .order_by(sync_run_table.c.started_at.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def latest_finished(self) -> SyncRun | None:
        stmt = (
            select(SyncRun)
            .where(sync_run_table.c.status.in_([SyncRunStatus.COMPLETED, SyncRunStatus.FAILED]))
            .order_by(sync_run_table.c.started_at.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def recent(
        self,
        limit: int,
        *,
        status: SyncRunStatus | None = None,
        offset: int = 0,
    ) -> list[SyncRun]:
        """Runs newest first, optionally only those in ``status``."""

        stmt = self._history(status).order_by(sync_run_table.c.started_at.desc()).limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        return list(self.session.execute(stmt).scalars())

    def count(self, *, status: SyncRunStatus | None = None) -> int:
        stmt = select(func.count()).select_from(self._history(status).subquery())
        return self.session.execute(stmt).scalar_one()

    def _history(self, status: SyncRunStatus | None) -> Select[tuple[SyncRun]]:
        stmt = select(SyncRun)
        if status is not None:
            stmt = stmt.where(sync_run_table.c.status == status)
        return stmt


class SqlAlchemySyncChangeRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SyncChange) -> None:
        self.session.add(entity)

    def for_run(self, sync_id: UUID) -> list[SyncChange]:
        """Changes of one run, newest first."""

        stmt = (
            select(SyncChange)
            .where(sync_change_table.c.sync_id == sync_id)
            .order_by(sync_change_table.c.id.desc())
        )
        return list(self.session.execute(stmt).scalars())
