"""Background catalog reconciliation.

A run collects every upstream entry in one async pass, plans the changes
against the store, then applies each mutation in its own unit of work together
with the audit row that describes it. Runs execute on a thread pool; the
caller gets the run id back immediately and can poll the persisted state.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, overload

from catalogsync.domain.model import (
    CatalogSyncStatus,
    ChangeType,
    SyncChange,
    SyncCounters,
    SyncError,
    SyncRun,
    SyncType,
    utcnow,
)
from catalogsync.domain.versioning import compute_version_hash, diff_fields

from .diff import SyncPlan, plan_full, plan_incremental
from .errors import SyncNotFoundError
from .guard import SingleFlightGuard
from .notices import build_update_notices

if TYPE_CHECKING:
    from collections.abc import Callable
    from concurrent.futures import Executor, Future
    from datetime import datetime
    from uuid import UUID

    from catalogsync.domain.model import CatalogEntry, SyncRunStatus
    from catalogsync.domain.ports import (
        CatalogRepository,
        CatalogSource,
        CatalogSourceFactory,
        CatalogUnitOfWorkFactory,
    )

    from .diff import PlannedChange
    from .notices import CatalogUpdateNotifier

log = logging.getLogger(__name__)

THREAD_NAME_PREFIX = "catalog-sync"

type ImportStatus = Literal["new", "updated", "unchanged"]


@dataclass(frozen=True, slots=True)
class SyncTrigger:
    sync_id: UUID
    status: Literal["started"] = "started"


@dataclass(frozen=True, slots=True)
class SyncStatusSummary:
    current: SyncRun | None
    last: SyncRun | None
    in_progress: bool


@dataclass(frozen=True, slots=True)
class SyncRunDetails:
    run: SyncRun
    changes: list[SyncChange]


@dataclass(frozen=True, slots=True)
class SyncHistoryPage:
    runs: list[SyncRun]
    total: int
    limit: int
    offset: int


@dataclass(frozen=True, slots=True)
class ImportOutcome:
    domain: str
    status: ImportStatus
    version_hash: str


@dataclass(slots=True)
class CollectResult:
    """Everything a run learned from upstream."""

    entries: list[CatalogEntry] = field(default_factory=list["CatalogEntry"])
    errors: list[SyncError] = field(default_factory=list[SyncError])
    failed_domains: set[str] = field(default_factory=set[str])


class ReconciliationEngine:
    """Keeps the catalog in step with the upstream source."""

    def __init__(
        self,
        *,
        unit_of_work: CatalogUnitOfWorkFactory,
        source_factory: CatalogSourceFactory,
        notifier: CatalogUpdateNotifier | None = None,
        protect_failed_domains: bool = True,
        max_workers: int = 2,
        executor: Executor | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._unit_of_work = unit_of_work
        self._source_factory = source_factory
        self._notifier = notifier
        self._protect_failed_domains = protect_failed_domains
        self._owns_executor = executor is None
        self._executor: Executor = executor or ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=THREAD_NAME_PREFIX,
        )
        self._clock = clock
        self._guard = SingleFlightGuard()
        self._futures: dict[UUID, Future[None]] = {}

    # Commands -----------------------------------------------------------------

    def trigger_sync(
        self,
        sync_type: SyncType = SyncType.INCREMENTAL,
        *,
        force: bool = False,
        dry_run: bool = False,
    ) -> SyncTrigger:
        """Start a run in the background and return its id.

        Raises ``SyncConflictError`` (without creating a run) while another run
        is active, unless ``force`` is set.
        """

        sync_id = self._guard.acquire(
            lambda: self._create_run(sync_type, dry_run=dry_run),
            force=force,
        )
        try:
            future = self._executor.submit(self._execute, sync_id, sync_type, dry_run)
        except RuntimeError as exc:
            self._guard.release(sync_id)
            self._fail_run(sync_id, f"Could not schedule sync: {exc}")
            raise
        self._futures[sync_id] = future
        future.add_done_callback(lambda _: self._futures.pop(sync_id, None))
        log.info("Sync %s started (%s%s)", sync_id, sync_type.value, ", dry run" if dry_run else "")
        return SyncTrigger(sync_id=sync_id)

    def wait(self, sync_id: UUID, timeout: float | None = None) -> SyncRun:
        """Block until a run started by this engine has finished."""

        future = self._futures.get(sync_id)
        if future is not None:
            future.result(timeout=timeout)
            self._futures.pop(sync_id, None)
        return self.get_sync_details(sync_id).run

    def run_sync(
        self,
        sync_type: SyncType = SyncType.INCREMENTAL,
        *,
        force: bool = False,
        dry_run: bool = False,
        timeout: float | None = None,
    ) -> SyncRun:
        trigger = self.trigger_sync(sync_type, force=force, dry_run=dry_run)
        return self.wait(trigger.sync_id, timeout=timeout)

    def import_custom_entry(self, entry: CatalogEntry) -> ImportOutcome:
        """Upsert a locally supplied entry the same way a sync would."""

        version_hash = compute_version_hash(entry)
        now = self._clock()
        with self._unit_of_work() as uow:
            catalog = uow.repositories.catalog
            status = _upsert(catalog, catalog.get(entry.domain), entry, version_hash, now)
            uow.commit()
        log.info("Imported custom integration %s (%s)", entry.domain, status)
        return ImportOutcome(domain=entry.domain, status=status, version_hash=version_hash)

    def shutdown(self, *, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    # Queries ------------------------------------------------------------------

    @property
    def in_progress(self) -> bool:
        return self._guard.in_progress

    @overload
    def get_sync_status(self, sync_id: None = None) -> SyncStatusSummary: ...

    @overload
    def get_sync_status(self, sync_id: UUID) -> SyncRunDetails: ...

    def get_sync_status(self, sync_id: UUID | None = None) -> SyncStatusSummary | SyncRunDetails:
        if sync_id is not None:
            return self.get_sync_details(sync_id)
        with self._unit_of_work() as uow:
            runs = uow.repositories.sync_runs
            return SyncStatusSummary(
                current=runs.latest_running(),
                last=runs.latest_finished(),
                in_progress=self._guard.in_progress,
            )

    def get_sync_details(self, sync_id: UUID) -> SyncRunDetails:
        with self._unit_of_work() as uow:
            run = uow.repositories.sync_runs.get(sync_id)
            if run is None:
                raise SyncNotFoundError(sync_id)
            changes = uow.repositories.sync_changes.for_run(sync_id)
            return SyncRunDetails(run=run, changes=changes)

    def list_sync_history(
        self,
        limit: int = 20,
        *,
        status: SyncRunStatus | None = None,
        offset: int = 0,
    ) -> SyncHistoryPage:
        """Runs newest first; ``total`` counts every run matching ``status``."""

        if limit < 1:
            raise ValueError("limit must be positive")
        if offset < 0:
            raise ValueError("offset must not be negative")
        with self._unit_of_work() as uow:
            runs = uow.repositories.sync_runs
            return SyncHistoryPage(
                runs=runs.recent(limit, status=status, offset=offset),
                total=runs.count(status=status),
                limit=limit,
                offset=offset,
            )

    # Run lifecycle ------------------------------------------------------------

    def _create_run(self, sync_type: SyncType, *, dry_run: bool) -> UUID:
        run = SyncRun(
            sync_type=sync_type,
            started_at=self._clock(),
            metadata={"dry_run": True} if dry_run else None,
        )
        with self._unit_of_work() as uow:
            uow.repositories.sync_runs.add(run)
            uow.commit()
        return run.id

    def _execute(self, sync_id: UUID, sync_type: SyncType, dry_run: bool) -> None:
        try:
            self._reconcile(sync_id, sync_type, dry_run=dry_run)
        except Exception as exc:
            log.exception("Sync %s failed", sync_id)
            self._fail_run(sync_id, str(exc) or type(exc).__name__)
        finally:
            self._guard.release(sync_id)

    def _reconcile(self, sync_id: UUID, sync_type: SyncType, *, dry_run: bool) -> None:
        collected = asyncio.run(self._collect())
        protected = collected.failed_domains if self._protect_failed_domains else set[str]()
        plan = self._plan(sync_type, collected.entries, protected)

        counters = SyncCounters(total=len(collected.entries))
        errors = list(collected.errors)
        metadata: dict[str, object] = {}
        applied: list[SyncChange] = []

        if plan.protected:
            log.warning(
                "Sync %s: not deprecating %d domain(s) whose fetch failed: %s",
                sync_id,
                len(plan.protected),
                ", ".join(plan.protected),
            )
            metadata["protected_domains"] = plan.protected

        if dry_run:
            counters.new = len(plan.of_type(ChangeType.NEW))
            counters.updated = len(plan.of_type(ChangeType.UPDATED))
            counters.deleted = len(plan.of_type(ChangeType.DEPRECATED))
            metadata["dry_run"] = True
            metadata["planned"] = plan.domains_by_type()
        else:
            for planned in plan.changes:
                try:
                    change = self._apply_with_retry(sync_id, planned)
                except Exception as exc:  # noqa: BLE001
                    log.warning("Sync %s: applying %s failed: %s", sync_id, planned.domain, exc)
                    errors.append(SyncError(domain=planned.domain, error=str(exc)))
                    continue
                if change is None:
                    log.debug("Sync %s: %s already up to date", sync_id, planned.domain)
                    continue
                applied.append(change)
                _count(counters, change.change_type)
            errors.extend(self._refresh_unchanged(plan.unchanged))

        counters.errors = len(errors)
        self._complete_run(sync_id, counters, errors, metadata)
        log.info(
            "Sync %s completed: total=%d new=%d updated=%d deleted=%d errors=%d",
            sync_id,
            counters.total,
            counters.new,
            counters.updated,
            counters.deleted,
            counters.errors,
        )
        if applied:
            self._notify(sync_id, applied, collected.entries)

    async def _collect(self) -> CollectResult:
        result = CollectResult()
        async with self._source_factory() as source:
            brand_domains = await source.fetch_brand_domains()
            domains = await source.list_domains()
            log.info("Fetching %d integration manifests", len(domains))
            semaphore = asyncio.Semaphore(max(source.fetch_concurrency, 1))
            outcomes = await asyncio.gather(
                *(_fetch_one(source, domain, brand_domains, semaphore) for domain in domains)
            )

        seen: set[str] = set()
        for domain, entry, error in outcomes:
            if error is not None:
                result.errors.append(SyncError(domain=domain, error=error))
                result.failed_domains.add(domain)
                continue
            if entry is None:
                continue
            if entry.domain in seen:
                log.warning("Duplicate upstream domain %s (from %s) ignored", entry.domain, domain)
                continue
            seen.add(entry.domain)
            result.entries.append(entry)
        return result

    def _plan(
        self,
        sync_type: SyncType,
        entries: list[CatalogEntry],
        protected: set[str],
    ) -> SyncPlan:
        with self._unit_of_work() as uow:
            catalog = uow.repositories.catalog
            active = {row.domain: row for row in catalog.list_active()}
            if sync_type is SyncType.INCREMENTAL:
                return plan_incremental(entries, active, protected=protected)
            return plan_full(
                entries,
                catalog.get,
                {domain: row.version_hash for domain, row in active.items()},
                protected=protected,
            )

    def _apply_with_retry(self, sync_id: UUID, planned: PlannedChange) -> SyncChange | None:
        try:
            return self._apply(sync_id, planned)
        except Exception as exc:  # noqa: BLE001
            # An overlapping run may have written the row after we read it; re-read once.
            log.info("Sync %s: retrying %s after %s", sync_id, planned.domain, exc)
            return self._apply(sync_id, planned)

    def _apply(self, sync_id: UUID, planned: PlannedChange) -> SyncChange | None:
        """Apply one planned mutation to the row as it stands now.

        The audit row describes what actually changed, which differs from the
        plan when an overlapping run wrote the domain in between. ``None`` means
        there was nothing left to change.
        """

        now = self._clock()
        with self._unit_of_work() as uow:
            catalog = uow.repositories.catalog
            stored = catalog.get(planned.domain)
            if planned.change_type is ChangeType.DEPRECATED:
                change = _deprecate(sync_id, planned.domain, stored, now)
            else:
                if planned.entry is None:
                    raise ValueError(f"No upstream entry planned for {planned.domain}")
                change = _replace(catalog, sync_id, stored, planned.entry, now)
            if change is not None:
                uow.repositories.sync_changes.add(change)
            uow.commit()
        return change

    def _refresh_unchanged(self, domains: list[str]) -> list[SyncError]:
        if not domains:
            return []
        now = self._clock()
        try:
            with self._unit_of_work() as uow:
                catalog = uow.repositories.catalog
                for domain in domains:
                    stored = catalog.get(domain)
                    if stored is not None:
                        stored.touch(at=now)
                uow.commit()
        except Exception as exc:  # noqa: BLE001
            log.warning("Refreshing %d unchanged entries failed: %s", len(domains), exc)
            return [SyncError(domain=domain, error=str(exc)) for domain in domains]
        return []

    def _complete_run(
        self,
        sync_id: UUID,
        counters: SyncCounters,
        errors: list[SyncError],
        metadata: dict[str, object],
    ) -> None:
        with self._unit_of_work() as uow:
            run = uow.repositories.sync_runs.get(sync_id)
            if run is None:
                raise SyncNotFoundError(sync_id)
            run.complete(counters, errors, metadata=metadata, at=self._clock())
            uow.commit()

    def _fail_run(self, sync_id: UUID, message: str) -> None:
        with self._unit_of_work() as uow:
            run = uow.repositories.sync_runs.get(sync_id)
            if run is None:
                raise SyncNotFoundError(sync_id)
            if not run.is_running:
                log.warning("Sync %s already %s; failure not recorded", sync_id, run.status.value)
                return
            run.fail(message, at=self._clock())
            uow.commit()

    def _notify(self, sync_id: UUID, changes: list[SyncChange], entries: list[CatalogEntry]) -> None:
        if self._notifier is None:
            return
        names = {entry.domain: entry.name for entry in entries}
        notices = build_update_notices(sync_id, changes, names=names)
        try:
            self._notifier.notify(notices)
        except Exception:  # noqa: BLE001
            log.exception("Sync %s: update notifier failed", sync_id)


async def _fetch_one(
    source: CatalogSource,
    domain: str,
    brand_domains: set[str],
    semaphore: asyncio.Semaphore,
) -> tuple[str, CatalogEntry | None, str | None]:
    async with semaphore:
        try:
            entry = await source.fetch_entry(domain, brand_domains=brand_domains)
        except Exception as exc:  # noqa: BLE001
            log.warning("Fetching %s failed: %s", domain, exc)
            return domain, None, str(exc) or type(exc).__name__
    return domain, entry, None


def _upsert(
    catalog: CatalogRepository,
    stored: CatalogEntry | None,
    entry: CatalogEntry,
    version_hash: str,
    now: datetime,
) -> ImportStatus:
    """Write ``entry`` over ``stored`` (or create it). A deprecated row comes back as new."""

    if stored is None:
        created = entry.copy_content()
        created.created_at = now
        created.mark_synced(version_hash, at=now)
        catalog.add(created)
        return "new"
    if not stored.is_active:
        stored.apply_content(entry)
        stored.mark_synced(version_hash, at=now)
        return "new"
    if stored.version_hash == version_hash and stored.sync_status is CatalogSyncStatus.SYNCED:
        stored.touch(at=now)
        return "unchanged"
    status: ImportStatus = "unchanged" if stored.version_hash == version_hash else "updated"
    stored.apply_content(entry)
    stored.mark_synced(version_hash, at=now)
    return status


def _deprecate(
    sync_id: UUID,
    domain: str,
    stored: CatalogEntry | None,
    now: datetime,
) -> SyncChange | None:
    if stored is None:
        raise LookupError(f"Catalog entry {domain} disappeared")
    if not stored.is_active:
        return None
    previous_hash = stored.version_hash
    stored.deprecate(at=now)
    return SyncChange(
        sync_id=sync_id,
        domain=domain,
        change_type=ChangeType.DEPRECATED,
        previous_version_hash=previous_hash,
        created_at=now,
    )


def _replace(
    catalog: CatalogRepository,
    sync_id: UUID,
    stored: CatalogEntry | None,
    entry: CatalogEntry,
    now: datetime,
) -> SyncChange | None:
    version_hash = compute_version_hash(entry)
    # Deprecated rows count as absent: their return is audited as new.
    active = stored if stored is not None and stored.is_active else None
    previous_hash = active.version_hash if active is not None else None
    changed_fields = (
        diff_fields(previous_hash, version_hash, active, entry) if active is not None else []
    )
    status = _upsert(catalog, stored, entry, version_hash, now)
    if status == "unchanged":
        return None
    if status == "new":
        return SyncChange(
            sync_id=sync_id,
            domain=entry.domain,
            change_type=ChangeType.NEW,
            new_version_hash=version_hash,
            created_at=now,
        )
    return SyncChange(
        sync_id=sync_id,
        domain=entry.domain,
        change_type=ChangeType.UPDATED,
        previous_version_hash=previous_hash,
        new_version_hash=version_hash,
        changed_fields=changed_fields,
        created_at=now,
    )


def _count(counters: SyncCounters, change_type: ChangeType) -> None:
    if change_type is ChangeType.NEW:
        counters.new += 1
    elif change_type is ChangeType.UPDATED:
        counters.updated += 1
    else:
        counters.deleted += 1
