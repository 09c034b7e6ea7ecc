"""Domain ports (protocols implemented by adapters)."""

from __future__ import annotations

from .fetching import CatalogSource, CatalogSourceFactory
from .persistence import CatalogRepository, Repository, SyncChangeRepository, SyncRunRepository
from .unit_of_work import CatalogRepositories, CatalogUnitOfWork, CatalogUnitOfWorkFactory

__all__ = [
    "CatalogRepositories",
    "CatalogRepository",
    "CatalogSource",
    "CatalogSourceFactory",
    "CatalogUnitOfWork",
    "CatalogUnitOfWorkFactory",
    "Repository",
    "SyncChangeRepository",
    "SyncRunRepository",
]
