"""Catalog entries: the locally persisted record of one upstream integration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from .enums import CatalogSyncStatus, FlowType

type JSONDocument = dict[str, Any]

DEFAULT_FLOW_TYPE = FlowType.MANUAL.value


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class CatalogEntry:
    """Canonical description of an integration domain.

    Upstream entries produced by the manifest translator and rows loaded from the
    store share this type; only persisted rows carry sync bookkeeping values.
    """

    domain: str
    name: str
    description: str | None = None
    icon: str | None = None
    supports_devices: bool = False
    is_cloud: bool = False
    documentation_url: str | None = None
    brand_image_url: str | None = None
    flow_type: str = DEFAULT_FLOW_TYPE
    flow_config: JSONDocument | None = None
    handler_class: str | None = None
    metadata: JSONDocument | None = None

    version_hash: str | None = None
    sync_status: CatalogSyncStatus = CatalogSyncStatus.PENDING
    last_synced_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.sync_status is not CatalogSyncStatus.DEPRECATED

    def copy_content(self) -> CatalogEntry:
        """Return a detached entry carrying only the descriptive fields."""

        return CatalogEntry(
            domain=self.domain,
            name=self.name,
            description=self.description,
            icon=self.icon,
            supports_devices=self.supports_devices,
            is_cloud=self.is_cloud,
            documentation_url=self.documentation_url,
            brand_image_url=self.brand_image_url,
            flow_type=self.flow_type,
            flow_config=self.flow_config,
            handler_class=self.handler_class,
            metadata=self.metadata,
        )

    def apply_content(self, other: CatalogEntry) -> None:
        """Overwrite descriptive fields from ``other`` (same domain)."""

        if other.domain != self.domain:
            raise ValueError(f"Cannot apply {other.domain!r} onto {self.domain!r}")
        self.name = other.name
        self.description = other.description
        self.icon = other.icon
        self.supports_devices = other.supports_devices
        self.is_cloud = other.is_cloud
        self.documentation_url = other.documentation_url
        self.brand_image_url = other.brand_image_url
        self.flow_type = other.flow_type or DEFAULT_FLOW_TYPE
        self.flow_config = other.flow_config
        self.handler_class = other.handler_class
        self.metadata = other.metadata

    def mark_synced(self, version_hash: str, *, at: datetime | None = None) -> None:
        self.version_hash = version_hash
        self.sync_status = CatalogSyncStatus.SYNCED
        self.last_synced_at = at or utcnow()
        self.updated_at = self.last_synced_at

    def touch(self, *, at: datetime | None = None) -> None:
        """Record that upstream still matches this row without changing its content."""

        self.last_synced_at = at or utcnow()

    def deprecate(self, *, at: datetime | None = None) -> None:
        self.sync_status = CatalogSyncStatus.DEPRECATED
        self.updated_at = at or utcnow()
