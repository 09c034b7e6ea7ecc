"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.adapters.extensions import load_extensions
from catalogsync.adapters.github import github_source_factory
from catalogsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    is_started,
    startup,
)
from catalogsync.config import get_github_config, get_sync_config
from catalogsync.domain.catalog import CatalogService
from catalogsync.domain.model import SyncType
from catalogsync.domain.reconciliation import LoggingNotifier, ReconciliationEngine

if TYPE_CHECKING:
    from pathlib import Path
    from uuid import UUID

    from catalogsync.config import GitHubSourceConfig, SyncConfig
    from catalogsync.domain.catalog import CatalogListing
    from catalogsync.domain.model import SyncRun, SyncRunStatus
    from catalogsync.domain.ports import CatalogSourceFactory, CatalogUnitOfWorkFactory
    from catalogsync.domain.reconciliation import (
        CatalogUpdateNotifier,
        SyncHistoryPage,
        SyncRunDetails,
        SyncStatusSummary,
    )

log = getLogger(__name__)


def ensure_started() -> None:
    if not is_started():
        startup()


def build_engine(
    *,
    unit_of_work_factory: CatalogUnitOfWorkFactory | None = None,
    source_factory: CatalogSourceFactory | None = None,
    github_config: GitHubSourceConfig | None = None,
    sync_config: SyncConfig | None = None,
    notifier: CatalogUpdateNotifier | None = None,
) -> ReconciliationEngine:
    """Wire the reconciliation engine to the configured store and GitHub source."""

    if unit_of_work_factory is None:
        ensure_started()
    settings = sync_config or get_sync_config()
    if source_factory is None:
        source_factory = github_source_factory(github_config or get_github_config())
    return ReconciliationEngine(
        unit_of_work=unit_of_work_factory or SqlAlchemyCatalogUnitOfWork,
        source_factory=source_factory,
        notifier=notifier or LoggingNotifier(),
        protect_failed_domains=settings.protect_failed_domains,
        max_workers=settings.max_workers,
    )


def sync_catalog(
    *,
    sync_type: SyncType = SyncType.INCREMENTAL,
    force: bool = False,
    dry_run: bool = False,
    engine: ReconciliationEngine | None = None,
) -> SyncRun:
    """Run one sync to completion and return the finished run."""

    active_engine = engine or build_engine()
    log.info("Starting %s catalog sync (force=%s, dry_run=%s)", sync_type.value, force, dry_run)
    try:
        run = active_engine.run_sync(sync_type, force=force, dry_run=dry_run)
    finally:
        if engine is None:
            active_engine.shutdown()
    log.info(
        "Finished catalog sync %s: status=%s, new=%s, updated=%s, deleted=%s, errors=%s",
        run.id,
        run.status.value,
        run.new,
        run.updated,
        run.deleted,
        run.errors,
    )
    return run


def catalog_sync_status(
    sync_id: UUID | None = None,
    *,
    engine: ReconciliationEngine | None = None,
) -> SyncStatusSummary | SyncRunDetails:
    active_engine = engine or build_engine()
    if sync_id is None:
        return active_engine.get_sync_status()
    return active_engine.get_sync_status(sync_id)


def catalog_sync_history(
    limit: int = 20,
    *,
    status: SyncRunStatus | None = None,
    offset: int = 0,
    engine: ReconciliationEngine | None = None,
) -> SyncHistoryPage:
    return (engine or build_engine()).list_sync_history(limit, status=status, offset=offset)


def list_catalog(
    *,
    query: str | None = None,
    limit: int = 50,
    offset: int = 0,
    unit_of_work_factory: CatalogUnitOfWorkFactory | None = None,
) -> CatalogListing:
    if unit_of_work_factory is None:
        ensure_started()
    service = CatalogService(unit_of_work=unit_of_work_factory or SqlAlchemyCatalogUnitOfWork)
    return service.list_integrations(query=query, limit=limit, offset=offset)


def load_custom_extensions(
    directory: Path | None = None,
    *,
    engine: ReconciliationEngine | None = None,
) -> list[str]:
    """Import manifests from the extensions directory into the catalog."""

    target = directory or get_sync_config().extensions_dir
    active_engine = engine or build_engine()
    domains = load_extensions(target, active_engine.import_custom_entry)
    log.info("Loaded %d custom integration(s) from %s", len(domains), target)
    return domains
