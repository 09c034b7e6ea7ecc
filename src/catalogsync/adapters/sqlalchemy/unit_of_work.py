"""SQLAlchemy unit of work for the catalog and its sync history.

The adapter holds one process-wide engine. ``startup`` builds it (from
``DATABASE_URI`` or the data directory), brings the schema to head and must run
before any unit of work is opened; ``shutdown`` disposes it again.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal, Self

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from catalogsync.adapters.sqlalchemy.mappings import start_mappers
from catalogsync.adapters.sqlalchemy.migrations import upgrade_head
from catalogsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyCatalogRepository,
    SqlAlchemySyncChangeRepository,
    SqlAlchemySyncRunRepository,
)
from catalogsync.config.storage import DatabaseConfig, get_database_config
from catalogsync.domain.ports.unit_of_work import CatalogRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used in the wrong lifecycle state."""


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Create (or adopt) the engine, migrate the schema and prepare sessions."""

    global _engine, _session_factory  # noqa: PLW0603

    if _engine is not None and not force:
        raise StartupError("SQLAlchemy adapter already initialised. Pass force=True to reconfigure.")

    if engine is None:
        database = DatabaseConfig(uri=database_uri) if database_uri else get_database_config()
        engine = create_engine(database.uri, future=True, **database.engine_options())
    log.debug("Starting catalog storage on %s", engine.url.render_as_string(hide_password=True))

    start_mappers()
    upgrade_head(engine=engine)

    _engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)


def shutdown() -> None:
    """Dispose the managed engine and forget it."""

    global _engine, _session_factory  # noqa: PLW0603

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def configured_engine() -> Engine | None:
    return _engine


def is_started() -> bool:
    return _engine is not None


class SqlAlchemyCatalogUnitOfWork:
    """One session over the catalog, sync run and sync change tables."""

    def __init__(self) -> None:
        if _session_factory is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call catalogsync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        self._session_factory = _session_factory
        self._session: Session | None = None
        self._repositories: CatalogRepositories | None = None

    def __enter__(self) -> Self:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._session_factory()
        self._repositories = CatalogRepositories(
            catalog=SqlAlchemyCatalogRepository(self._session),
            sync_runs=SqlAlchemySyncRunRepository(self._session),
            sync_changes=SqlAlchemySyncChangeRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> CatalogRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from catalogsync.domain.ports.unit_of_work import CatalogUnitOfWork

    _uow_check: CatalogUnitOfWork = SqlAlchemyCatalogUnitOfWork()
