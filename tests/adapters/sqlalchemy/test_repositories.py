from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from catalogsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyCatalogRepository,
    SqlAlchemySyncChangeRepository,
    SqlAlchemySyncRunRepository,
)
from catalogsync.domain.model import (
    ChangeType,
    SyncChange,
    SyncCounters,
    SyncRun,
    SyncRunStatus,
    SyncType,
)
from tests.helpers.catalog import make_entry

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

BASE_TIME = datetime(2026, 2, 1, tzinfo=UTC)


def test_catalog_repository_filters_deprecated_rows(sqlite_session: Session) -> None:
    repo = SqlAlchemyCatalogRepository(sqlite_session)
    for domain, name in [("zha", "Zigbee Home Automation"), ("hue", "Philips Hue"), ("old", "Old")]:
        repo.add(make_entry(domain, name=name))
    sqlite_session.flush()
    stale = repo.get("old")
    assert stale is not None
    stale.deprecate()
    sqlite_session.commit()

    assert [entry.domain for entry in repo.list_active()] == ["hue", "zha"]
    assert [entry.domain for entry in repo.search_active()] == ["hue", "zha"]
    assert [entry.domain for entry in repo.search_active(query="ZIGBEE")] == ["zha"]
    assert [entry.domain for entry in repo.search_active(limit=1, offset=1)] == ["zha"]
    assert repo.count_active() == 2
    assert repo.count_active(query="hue") == 1
    assert repo.get("old") is not None


def test_catalog_search_treats_wildcards_literally(sqlite_session: Session) -> None:
    repo = SqlAlchemyCatalogRepository(sqlite_session)
    for domain in ("light_x", "lightbx", "dimmer_500"):
        repo.add(make_entry(domain))
    sqlite_session.commit()

    assert [entry.domain for entry in repo.search_active(query="light_x")] == ["light_x"]
    assert repo.count_active(query="light_x") == 1
    assert repo.search_active(query="50%") == []


def test_sync_run_repository_orders_by_start(sqlite_session: Session) -> None:
    repo = SqlAlchemySyncRunRepository(sqlite_session)
    oldest = SyncRun(sync_type=SyncType.FULL, started_at=BASE_TIME)
    oldest.complete(SyncCounters(), [], at=BASE_TIME)
    finished = SyncRun(sync_type=SyncType.INCREMENTAL, started_at=BASE_TIME + timedelta(hours=1))
    finished.fail("boom", at=BASE_TIME + timedelta(hours=1))
    running = SyncRun(sync_type=SyncType.MANUAL, started_at=BASE_TIME + timedelta(hours=2))
    for run in (oldest, finished, running):
        repo.add(run)
    sqlite_session.commit()

    latest_running = repo.latest_running()
    latest_finished = repo.latest_finished()

    assert latest_running is not None
    assert latest_running.id == running.id
    assert latest_finished is not None
    assert latest_finished.id == finished.id
    assert [run.id for run in repo.recent(2)] == [running.id, finished.id]
    assert repo.get(oldest.id) is oldest


def test_sync_run_history_filters_by_status_and_pages(sqlite_session: Session) -> None:
    repo = SqlAlchemySyncRunRepository(sqlite_session)
    runs = [
        SyncRun(sync_type=SyncType.INCREMENTAL, started_at=BASE_TIME + timedelta(hours=hour))
        for hour in range(4)
    ]
    for run in runs[:3]:
        run.complete(SyncCounters(), [], at=run.started_at)
    runs[3].fail("boom", at=runs[3].started_at)
    for run in runs:
        repo.add(run)
    sqlite_session.commit()

    completed = repo.recent(10, status=SyncRunStatus.COMPLETED)
    assert [run.id for run in completed] == [runs[2].id, runs[1].id, runs[0].id]
    assert [run.id for run in repo.recent(1, status=SyncRunStatus.COMPLETED, offset=1)] == [
        runs[1].id
    ]
    assert [run.id for run in repo.recent(2, offset=3)] == [runs[0].id]
    assert repo.count() == 4
    assert repo.count(status=SyncRunStatus.COMPLETED) == 3
    assert repo.count(status=SyncRunStatus.RUNNING) == 0


def test_sync_change_repository_returns_newest_first(sqlite_session: Session) -> None:
    run = SyncRun(sync_type=SyncType.INCREMENTAL)
    SqlAlchemySyncRunRepository(sqlite_session).add(run)
    other = SyncRun(sync_type=SyncType.INCREMENTAL)
    SqlAlchemySyncRunRepository(sqlite_session).add(other)
    repo = SqlAlchemySyncChangeRepository(sqlite_session)
    repo.add(SyncChange(sync_id=run.id, domain="hue", change_type=ChangeType.NEW))
    sqlite_session.flush()
    repo.add(
        SyncChange(
            sync_id=run.id,
            domain="zha",
            change_type=ChangeType.UPDATED,
            previous_version_hash="a" * 64,
            new_version_hash="b" * 64,
            changed_fields=["name", "icon"],
        )
    )
    repo.add(SyncChange(sync_id=other.id, domain="old", change_type=ChangeType.DEPRECATED))
    sqlite_session.commit()

    changes = repo.for_run(run.id)

    assert [change.domain for change in changes] == ["zha", "hue"]
    assert changes[0].changed_fields == ["name", "icon"]
    assert changes[1].changed_fields == []
