"""Pure change planning: compare upstream entries with stored rows.

Planning never touches storage directly. Incremental plans receive the active
rows up front; full plans look each upstream domain up individually through a
callable so deprecated rows are seen too.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogsync.domain.model import ChangeType
from catalogsync.domain.versioning import compute_version_hash, diff_fields

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Mapping, Sequence

    from catalogsync.domain.model import CatalogEntry


@dataclass(slots=True, kw_only=True)
class PlannedChange:
    """One mutation the engine will apply and audit."""

    domain: str
    change_type: ChangeType
    entry: CatalogEntry | None = None
    previous_hash: str | None = None
    new_hash: str | None = None
    changed_fields: list[str] = field(default_factory=list[str])


@dataclass(slots=True, kw_only=True)
class SyncPlan:
    changes: list[PlannedChange] = field(default_factory=list[PlannedChange])
    unchanged: list[str] = field(default_factory=list[str])
    # Stored domains that would have been deprecated but whose fetch failed this run.
    protected: list[str] = field(default_factory=list[str])

    def of_type(self, change_type: ChangeType) -> list[PlannedChange]:
        return [change for change in self.changes if change.change_type is change_type]

    def domains_by_type(self) -> dict[str, list[str]]:
        return {
            change_type.value: [change.domain for change in self.of_type(change_type)]
            for change_type in (ChangeType.NEW, ChangeType.UPDATED, ChangeType.DEPRECATED)
        }

    @property
    def is_empty(self) -> bool:
        return not self.changes


def plan_incremental(
    upstream: Sequence[CatalogEntry],
    active: Mapping[str, CatalogEntry],
    *,
    protected: Collection[str] = (),
) -> SyncPlan:
    """Diff upstream entries against the active (non-deprecated) stored rows."""

    plan = SyncPlan()
    for entry in upstream:
        _plan_entry(plan, entry, active.get(entry.domain))
    stored_hashes = {domain: stored.version_hash for domain, stored in active.items()}
    _plan_deprecations(plan, upstream, stored_hashes, protected)
    return plan


def plan_full(
    upstream: Sequence[CatalogEntry],
    lookup: Callable[[str], CatalogEntry | None],
    active_hashes: Mapping[str, str | None],
    *,
    protected: Collection[str] = (),
) -> SyncPlan:
    """Diff each upstream entry against its stored row, deprecated rows included.

    A deprecated row is treated as absent, so a domain that reappears upstream is
    planned as new rather than updated.
    """

    plan = SyncPlan()
    for entry in upstream:
        stored = lookup(entry.domain)
        if stored is not None and not stored.is_active:
            stored = None
        _plan_entry(plan, entry, stored)
    _plan_deprecations(plan, upstream, active_hashes, protected)
    return plan


def _plan_entry(plan: SyncPlan, entry: CatalogEntry, stored: CatalogEntry | None) -> None:
    new_hash = compute_version_hash(entry)
    if stored is None:
        plan.changes.append(
            PlannedChange(
                domain=entry.domain,
                change_type=ChangeType.NEW,
                entry=entry,
                new_hash=new_hash,
            )
        )
        return
    if stored.version_hash == new_hash:
        plan.unchanged.append(entry.domain)
        return
    plan.changes.append(
        PlannedChange(
            domain=entry.domain,
            change_type=ChangeType.UPDATED,
            entry=entry,
            previous_hash=stored.version_hash,
            new_hash=new_hash,
            changed_fields=diff_fields(stored.version_hash, new_hash, stored, entry),
        )
    )


def _plan_deprecations(
    plan: SyncPlan,
    upstream: Sequence[CatalogEntry],
    stored_hashes: Mapping[str, str | None],
    protected: Collection[str],
) -> None:
    seen = {entry.domain for entry in upstream}
    for domain in sorted(stored_hashes):
        if domain in seen:
            continue
        if domain in protected:
            plan.protected.append(domain)
            continue
        plan.changes.append(
            PlannedChange(
                domain=domain,
                change_type=ChangeType.DEPRECATED,
                previous_hash=stored_hashes[domain],
            )
        )

