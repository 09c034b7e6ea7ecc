"""SQLAlchemy mapping metadata for the catalog domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)

from catalogsync.domain.model import (
    CatalogEntry,
    CatalogSyncStatus,
    ChangeType,
    SyncChange,
    SyncError,
    SyncRun,
    SyncRunStatus,
    SyncType,
)

if TYPE_CHECKING:
    from enum import StrEnum

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


def _enum_column_type(enum_cls: type[StrEnum]) -> Enum:
    # Store the lowercase values, not the member names.
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class StringListType(TypeDecorator[list[str]]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[str] | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps(list(value or []))

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[str]:
        _ = dialect
        if value is None:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        return [str(item) for item in cast(list[Any], loaded)]


class SyncErrorListType(TypeDecorator[list[SyncError]]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[SyncError] | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps([error.as_dict() for error in value or []])

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[SyncError]:
        _ = dialect
        if value is None:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        errors: list[SyncError] = []
        for item in cast(list[Any], loaded):
            if isinstance(item, dict):
                payload = cast(dict[str, Any], item)
                errors.append(
                    SyncError(domain=str(payload.get("domain")), error=str(payload.get("error")))
                )
        return errors


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

catalog_table = Table(
    "integration_catalog",
    mapper_registry.metadata,
    Column("domain", String(255), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=True),
    Column("icon", String(255), nullable=True),
    Column("supports_devices", Boolean, nullable=False, default=False),
    Column("is_cloud", Boolean, nullable=False, default=False),
    Column("documentation_url", Text, nullable=True),
    Column("brand_image_url", Text, nullable=True),
    Column("flow_type", String(50), nullable=False, default="manual"),
    Column("flow_config", JSON, nullable=True),
    Column("handler_class", String(255), nullable=True),
    Column("metadata", JSON, nullable=True),
    Column("version_hash", String(64), nullable=True),
    Column(
        "sync_status",
        _enum_column_type(CatalogSyncStatus),
        nullable=False,
        default=CatalogSyncStatus.PENDING,
    ),
    Column("last_synced_at", UTCDateTime(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_integration_catalog_sync_status", "sync_status"),
    Index("ix_integration_catalog_last_synced_at", "last_synced_at"),
    Index("ix_integration_catalog_version_hash", "version_hash"),
)

sync_run_table = Table(
    "catalog_sync_history",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("sync_type", _enum_column_type(SyncType), nullable=False),
    Column("status", _enum_column_type(SyncRunStatus), nullable=False),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("completed_at", UTCDateTime(), nullable=True),
    Column("total", Integer, nullable=False, default=0),
    Column("new", Integer, nullable=False, default=0),
    Column("updated", Integer, nullable=False, default=0),
    Column("deleted", Integer, nullable=False, default=0),
    Column("errors", Integer, nullable=False, default=0),
    Column("error_details", SyncErrorListType(), nullable=False),
    Column("metadata", JSON, nullable=True),
    Index("ix_catalog_sync_history_status", "status"),
    Index("ix_catalog_sync_history_started_at", "started_at"),
    Index("ix_catalog_sync_history_sync_type", "sync_type"),
)

sync_change_table = Table(
    "catalog_sync_changes",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "sync_id",
        UUIDColumnType,
        ForeignKey("catalog_sync_history.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("domain", String(255), nullable=False),
    Column("change_type", _enum_column_type(ChangeType), nullable=False),
    Column("previous_version_hash", String(64), nullable=True),
    Column("new_version_hash", String(64), nullable=True),
    Column("changed_fields", StringListType(), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_catalog_sync_changes_sync_id", "sync_id"),
    Index("ix_catalog_sync_changes_domain", "domain"),
    Index("ix_catalog_sync_changes_change_type", "change_type"),
    Index("ix_catalog_sync_changes_sync_id_domain", "sync_id", "domain"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(CatalogEntry, catalog_table)
    mapper_registry.map_imperatively(SyncRun, sync_run_table)
    mapper_registry.map_imperatively(SyncChange, sync_change_table)

    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
