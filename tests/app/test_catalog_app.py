from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from catalogsync.app import (
    build_engine,
    catalog_sync_history,
    catalog_sync_status,
    list_catalog,
    load_custom_extensions,
    sync_catalog,
)
from catalogsync.config import SyncConfig
from catalogsync.domain.model import SyncRunStatus, SyncType
from catalogsync.domain.reconciliation import SyncRunDetails, SyncStatusSummary
from tests.helpers.catalog import FakeCatalogSource, RecordingNotifier, make_entry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    from catalogsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork
    from catalogsync.domain.reconciliation import ReconciliationEngine


@pytest.fixture
def source() -> FakeCatalogSource:
    return FakeCatalogSource([make_entry("hue", name="Philips Hue"), make_entry("zha", name="ZHA")])


@pytest.fixture
def engine(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
    source: FakeCatalogSource,
) -> Iterator[ReconciliationEngine]:
    engine = build_engine(
        unit_of_work_factory=sqlite_unit_of_work,
        source_factory=source,
        sync_config=SyncConfig(max_workers=1),
        notifier=RecordingNotifier(),
    )
    yield engine
    engine.shutdown()


def test_sync_then_query(
    engine: ReconciliationEngine,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    run = sync_catalog(sync_type=SyncType.FULL, engine=engine)

    assert run.status is SyncRunStatus.COMPLETED
    assert run.new == 2

    summary = catalog_sync_status(engine=engine)
    assert isinstance(summary, SyncStatusSummary)
    assert summary.last is not None
    assert summary.last.id == run.id

    details = catalog_sync_status(run.id, engine=engine)
    assert isinstance(details, SyncRunDetails)
    assert len(details.changes) == 2

    history = catalog_sync_history(engine=engine)
    assert [item.id for item in history.runs] == [run.id]
    assert history.total == 1

    listing = list_catalog(query="hue", unit_of_work_factory=sqlite_unit_of_work)
    assert [item.entry.domain for item in listing.items] == ["hue"]
    assert listing.total == 1


def test_load_custom_extensions_imports_into_catalog(
    engine: ReconciliationEngine,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
    tmp_path: Path,
) -> None:
    gadget = tmp_path / "gadget"
    gadget.mkdir()
    (gadget / "manifest.json").write_text(
        json.dumps({"domain": "gadget", "name": "Gadget"}),
        encoding="utf-8",
    )

    domains = load_custom_extensions(tmp_path, engine=engine)

    assert domains == ["gadget"]
    listing = list_catalog(unit_of_work_factory=sqlite_unit_of_work)
    assert [item.entry.domain for item in listing.items] == ["gadget"]
