"""Catalog entries, fake sources and notifiers for tests."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Self

from catalogsync.domain.model import CatalogEntry

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from types import TracebackType

    from sqlalchemy.orm import Session

    from catalogsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork
    from catalogsync.domain.ports import CatalogRepositories
    from catalogsync.domain.reconciliation import UpdateNotice


def make_entry(domain: str, **overrides: Any) -> CatalogEntry:
    values: dict[str, Any] = {
        "name": domain.replace("_", " ").title(),
        "description": f"Home Assistant {domain} integration",
        "icon": "mdi:puzzle",
        "supports_devices": False,
        "is_cloud": False,
    }
    values.update(overrides)
    return CatalogEntry(domain=domain, **values)


class FakeCatalogSource:
    """In-memory upstream; domains listed in ``failures`` raise when fetched.

    Set ``gate`` to hold every fetch until the event is set.
    """

    def __init__(
        self,
        entries: Sequence[CatalogEntry] = (),
        *,
        failures: Mapping[str, Exception] | None = None,
        brand_domains: set[str] | None = None,
        gate: threading.Event | None = None,
        fetch_concurrency: int = 1,
    ) -> None:
        self.entries = {entry.domain: entry for entry in entries}
        self.failures = dict(failures or {})
        self.brand_domains = brand_domains or set()
        self.gate = gate
        self._fetch_concurrency = fetch_concurrency
        self.fetched: list[str] = []
        self.opened = 0
        self.closed = 0

    def __call__(self) -> Self:
        return self

    async def __aenter__(self) -> Self:
        self.opened += 1
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.closed += 1

    @property
    def fetch_concurrency(self) -> int:
        return self._fetch_concurrency

    async def list_domains(self) -> list[str]:
        return sorted({*self.entries, *self.failures})

    async def fetch_brand_domains(self) -> set[str]:
        return set(self.brand_domains)

    async def fetch_entry(self, domain: str, *, brand_domains: set[str]) -> CatalogEntry:
        del brand_domains
        if self.gate is not None:
            # Blocks the worker thread's event loop, which is all a test needs.
            self.gate.wait(timeout=5)
        self.fetched.append(domain)
        failure = self.failures.get(domain)
        if failure is not None:
            raise failure
        return self.entries[domain].copy_content()


class FailingListSource(FakeCatalogSource):
    async def list_domains(self) -> list[str]:
        raise RuntimeError("listing exploded")


class RecordingNotifier:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.received: list[UpdateNotice] = []

    def notify(self, notices: Sequence[UpdateNotice]) -> None:
        self.received.extend(notices)
        if self.fail:
            raise RuntimeError("notifier down")


class RejectingCommits:
    """Unit-of-work factory whose commits fail while a listed catalog domain is pending.

    ``failures`` maps a domain to the number of commits to reject; ``None`` rejects all.
    """

    def __init__(
        self,
        inner: Callable[[], SqlAlchemyCatalogUnitOfWork],
        failures: Mapping[str, int | None],
    ) -> None:
        self._inner = inner
        self._remaining = dict(failures)
        self._lock = threading.Lock()
        self.rejected: list[str] = []

    def __call__(self) -> RejectingUnitOfWork:
        return RejectingUnitOfWork(self._inner(), self)

    def check(self, session: Session) -> None:
        pending = sorted(
            {obj.domain for obj in (*session.new, *session.dirty) if isinstance(obj, CatalogEntry)}
        )
        with self._lock:
            for domain in pending:
                if domain not in self._remaining:
                    continue
                remaining = self._remaining[domain]
                if remaining == 0:
                    continue
                if remaining is not None:
                    self._remaining[domain] = remaining - 1
                self.rejected.append(domain)
                raise RuntimeError(f"commit rejected for {domain}")


class RejectingUnitOfWork:
    def __init__(self, inner: SqlAlchemyCatalogUnitOfWork, owner: RejectingCommits) -> None:
        self._inner = inner
        self._owner = owner

    def __enter__(self) -> Self:
        self._inner.__enter__()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool:
        return self._inner.__exit__(exc_type, exc_value, traceback)

    @property
    def repositories(self) -> CatalogRepositories:
        return self._inner.repositories

    def commit(self) -> None:
        self._owner.check(self._inner.session)
        self._inner.commit()

    def rollback(self) -> None:
        self._inner.rollback()
