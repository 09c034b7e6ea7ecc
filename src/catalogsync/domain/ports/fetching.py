"""Ports for fetching upstream integration descriptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from catalogsync.domain.model import CatalogEntry


@runtime_checkable
class CatalogSource(Protocol):
    """Async session against an upstream catalog; opened once per sync run."""

    async def __aenter__(self) -> Self: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...

    @property
    def fetch_concurrency(self) -> int: ...

    async def list_domains(self) -> list[str]: ...

    async def fetch_brand_domains(self) -> set[str]: ...

    async def fetch_entry(self, domain: str, *, brand_domains: set[str]) -> CatalogEntry: ...


type CatalogSourceFactory = Callable[[], CatalogSource]


__all__ = ["CatalogSource", "CatalogSourceFactory"]
