"""Transaction boundary around the catalog and its sync history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from catalogsync.domain.ports.persistence import (
        CatalogRepository,
        SyncChangeRepository,
        SyncRunRepository,
    )


@dataclass(slots=True)
class CatalogRepositories:
    catalog: CatalogRepository
    sync_runs: SyncRunRepository
    sync_changes: SyncChangeRepository


@runtime_checkable
class CatalogUnitOfWork(Protocol):
    """One transaction; leaving the context without ``commit`` discards the work.

    A sync run opens several of these in sequence (record the run, apply the
    plan, finalize) so that a failed apply still leaves the run recorded.
    """

    @property
    def repositories(self) -> CatalogRepositories: ...

    def __enter__(self) -> Self: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


type CatalogUnitOfWorkFactory = Callable[[], CatalogUnitOfWork]
