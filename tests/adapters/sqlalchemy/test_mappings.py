from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, inspect, select, text
from sqlalchemy.orm import Session

from catalogsync.adapters.sqlalchemy import create_all_tables, start_mappers
from catalogsync.adapters.sqlalchemy.mappings import catalog_table, sync_run_table
from catalogsync.domain.model import (
    CatalogSyncStatus,
    SyncCounters,
    SyncError,
    SyncRun,
    SyncType,
)
from tests.helpers.catalog import make_entry

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def test_migrations_create_catalog_tables(sqlite_engine: Engine) -> None:
    tables = set(inspect(sqlite_engine).get_table_names())

    assert {"integration_catalog", "catalog_sync_history", "catalog_sync_changes"} <= tables


def test_create_all_tables_matches_mapped_metadata() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    create_all_tables(engine)

    columns = {column["name"] for column in inspect(engine).get_columns("integration_catalog")}

    assert {"domain", "version_hash", "sync_status", "flow_config", "metadata"} <= columns
    engine.dispose()


def test_enums_are_stored_as_values(sqlite_session: Session) -> None:
    entry = make_entry("hue")
    entry.deprecate()
    sqlite_session.add(entry)
    sqlite_session.add(SyncRun(sync_type=SyncType.FULL))
    sqlite_session.commit()

    status = sqlite_session.execute(select(catalog_table.c.sync_status)).scalar_one()
    raw = sqlite_session.execute(text("SELECT sync_type, status FROM catalog_sync_history")).one()

    assert status is CatalogSyncStatus.DEPRECATED
    assert tuple(raw) == ("full", "running")


def test_sync_run_round_trips_errors_and_timestamps(sqlite_session: Session) -> None:
    started = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    run = SyncRun(sync_type=SyncType.INCREMENTAL, started_at=started)
    run.complete(
        SyncCounters(total=3, new=1, errors=1),
        [SyncError(domain="beta", error="timeout")],
        metadata={"protected_domains": ["beta"]},
        at=started,
    )
    sqlite_session.add(run)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = sqlite_session.get(SyncRun, run.id)

    assert loaded is not None
    assert loaded.started_at == started
    assert loaded.started_at.tzinfo is not None
    assert loaded.error_details == [SyncError(domain="beta", error="timeout")]
    assert loaded.metadata == {"protected_domains": ["beta"]}
    assert (loaded.total, loaded.new, loaded.errors) == (3, 1, 1)
    stored_started = sqlite_session.execute(select(sync_run_table.c.started_at)).scalar_one()
    assert stored_started == started
