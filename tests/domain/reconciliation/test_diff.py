from __future__ import annotations

from catalogsync.domain.model import CatalogEntry, ChangeType
from catalogsync.domain.reconciliation import plan_full, plan_incremental
from catalogsync.domain.versioning import compute_version_hash
from tests.helpers.catalog import make_entry


def _stored(domain: str, **overrides: object) -> CatalogEntry:
    entry = make_entry(domain, **overrides)
    entry.mark_synced(compute_version_hash(entry))
    return entry


def test_incremental_plan_classifies_changes() -> None:
    stored = {
        "keep": _stored("keep"),
        "switch_y": _stored("switch_y", description="Old"),
        "gone": _stored("gone"),
    }
    upstream = [
        make_entry("keep"),
        make_entry("switch_y", description="New"),
        make_entry("light_x"),
    ]

    plan = plan_incremental(upstream, stored)

    assert plan.unchanged == ["keep"]
    assert plan.domains_by_type() == {
        "new": ["light_x"],
        "updated": ["switch_y"],
        "deprecated": ["gone"],
    }
    updated = plan.of_type(ChangeType.UPDATED)[0]
    assert updated.changed_fields == ["description"]
    assert updated.previous_hash == stored["switch_y"].version_hash
    deprecated = plan.of_type(ChangeType.DEPRECATED)[0]
    assert deprecated.new_hash is None
    assert deprecated.previous_hash == stored["gone"].version_hash


def test_incremental_plan_is_empty_when_nothing_changed() -> None:
    stored = {"a": _stored("a"), "b": _stored("b")}

    plan = plan_incremental([make_entry("a"), make_entry("b")], stored)

    assert plan.is_empty
    assert plan.unchanged == ["a", "b"]


def test_protected_domains_are_not_deprecated() -> None:
    stored = {"a": _stored("a"), "b": _stored("b")}

    plan = plan_incremental([make_entry("a")], stored, protected={"b"})

    assert plan.is_empty
    assert plan.protected == ["b"]


def test_full_plan_treats_deprecated_rows_as_new() -> None:
    revived = _stored("revived")
    revived.deprecate()
    rows = {"revived": revived, "same": _stored("same")}

    plan = plan_full(
        [make_entry("revived"), make_entry("same")],
        rows.get,
        {"same": rows["same"].version_hash},
    )

    assert plan.domains_by_type() == {"new": ["revived"], "updated": [], "deprecated": []}
    assert plan.unchanged == ["same"]


def test_full_plan_deprecates_active_domains_missing_upstream() -> None:
    rows = {"a": _stored("a"), "b": _stored("b")}

    plan = plan_full(
        [make_entry("a", name="Renamed")],
        rows.get,
        {domain: row.version_hash for domain, row in rows.items()},
    )

    assert plan.domains_by_type() == {"new": [], "updated": ["a"], "deprecated": ["b"]}
    assert plan.of_type(ChangeType.UPDATED)[0].changed_fields == ["name"]
