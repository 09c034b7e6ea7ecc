"""Read-side queries over the integration catalog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Set as AbstractSet

    from catalogsync.domain.model import CatalogEntry, JSONDocument
    from catalogsync.domain.ports import CatalogUnitOfWorkFactory

DEFAULT_PAGE_SIZE = 50


@runtime_checkable
class ConfiguredDomains(Protocol):
    """Reports which integration domains the user has already set up."""

    def __call__(self) -> AbstractSet[str]: ...


def nothing_configured() -> frozenset[str]:
    return frozenset()


@dataclass(frozen=True, slots=True)
class CatalogListItem:
    entry: CatalogEntry
    is_configured: bool

    @property
    def domain(self) -> str:
        return self.entry.domain


@dataclass(frozen=True, slots=True)
class CatalogListing:
    items: list[CatalogListItem]
    total: int
    limit: int
    offset: int


class CatalogService:
    def __init__(
        self,
        *,
        unit_of_work: CatalogUnitOfWorkFactory,
        configured_domains: ConfiguredDomains = nothing_configured,
    ) -> None:
        self._unit_of_work = unit_of_work
        self._configured_domains = configured_domains

    def list_integrations(
        self,
        query: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> CatalogListing:
        """Active entries ordered by name, filtered by a case-insensitive substring of name or domain."""

        if limit < 1:
            raise ValueError("limit must be positive")
        if offset < 0:
            raise ValueError("offset must not be negative")
        search = query.strip() if query else None
        with self._unit_of_work() as uow:
            catalog = uow.repositories.catalog
            entries = catalog.search_active(query=search, limit=limit, offset=offset)
            total = catalog.count_active(query=search)
        configured = self._configured_domains()
        return CatalogListing(
            items=[CatalogListItem(entry, entry.domain in configured) for entry in entries],
            total=total,
            limit=limit,
            offset=offset,
        )

    def get_integration(self, domain: str) -> CatalogEntry | None:
        with self._unit_of_work() as uow:
            return uow.repositories.catalog.get(domain)

    def get_flow_config(self, domain: str) -> JSONDocument | None:
        entry = self.get_integration(domain)
        if entry is None:
            return None
        return {"flow_type": entry.flow_type, "flow_config": entry.flow_config}
