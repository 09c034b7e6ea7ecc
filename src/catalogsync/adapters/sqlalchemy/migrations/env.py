"""Alembic environment for the catalog database."""

from __future__ import annotations

from typing import TYPE_CHECKING

from alembic import context
from sqlalchemy import create_engine, pool

from catalogsync.adapters.sqlalchemy import mapper_registry, start_mappers
from catalogsync.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

config = context.config

start_mappers()


def _configure(**kwargs: object) -> None:
    # Batch mode lets ALTER-style revisions run on SQLite.
    context.configure(
        target_metadata=mapper_registry.metadata,
        render_as_batch=True,
        compare_type=True,
        **kwargs,  # type: ignore[arg-type]
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate_on(connection: Connection) -> None:
    _configure(connection=connection)


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def main() -> None:
    if context.is_offline_mode():
        _configure(url=_database_url(), literal_binds=True)
        return

    shared: Connection | None = config.attributes.get("connection")
    if shared is not None:
        _migrate_on(shared)
        return

    engine = create_engine(_database_url(), poolclass=pool.NullPool, future=True)
    try:
        with engine.connect() as connection:
            _migrate_on(connection)
    finally:
        engine.dispose()


main()
