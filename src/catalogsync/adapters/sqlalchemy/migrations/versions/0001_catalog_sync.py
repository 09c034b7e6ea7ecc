"""Integration catalog with sync history and change audit.

Revision ID: 0001_catalog_sync
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_catalog_sync"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

CATALOG_SYNC_STATUSES = ("pending", "synced", "error", "deprecated")
SYNC_TYPES = ("full", "incremental", "manual")
SYNC_RUN_STATUSES = ("running", "completed", "failed", "cancelled")
CHANGE_TYPES = ("new", "updated", "deleted", "deprecated")


def _enum(name: str, values: tuple[str, ...]) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False)


def upgrade() -> None:
    op.create_table(
        "integration_catalog",
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(255), nullable=True),
        sa.Column("supports_devices", sa.Boolean(), nullable=False),
        sa.Column("is_cloud", sa.Boolean(), nullable=False),
        sa.Column("documentation_url", sa.Text(), nullable=True),
        sa.Column("brand_image_url", sa.Text(), nullable=True),
        sa.Column("flow_type", sa.String(50), nullable=False),
        sa.Column("flow_config", sa.JSON(), nullable=True),
        sa.Column("handler_class", sa.String(255), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("version_hash", sa.String(64), nullable=True),
        sa.Column("sync_status", _enum("catalogsyncstatus", CATALOG_SYNC_STATUSES), nullable=False),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("domain", name="pk_integration_catalog"),
    )
    op.create_index("ix_integration_catalog_sync_status", "integration_catalog", ["sync_status"])
    op.create_index(
        "ix_integration_catalog_last_synced_at", "integration_catalog", ["last_synced_at"]
    )
    op.create_index("ix_integration_catalog_version_hash", "integration_catalog", ["version_hash"])

    op.create_table(
        "catalog_sync_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("sync_type", _enum("synctype", SYNC_TYPES), nullable=False),
        sa.Column("status", _enum("syncrunstatus", SYNC_RUN_STATUSES), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total", sa.Integer(), nullable=False),
        sa.Column("new", sa.Integer(), nullable=False),
        sa.Column("updated", sa.Integer(), nullable=False),
        sa.Column("deleted", sa.Integer(), nullable=False),
        sa.Column("errors", sa.Integer(), nullable=False),
        sa.Column("error_details", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_catalog_sync_history"),
    )
    op.create_index("ix_catalog_sync_history_status", "catalog_sync_history", ["status"])
    op.create_index("ix_catalog_sync_history_started_at", "catalog_sync_history", ["started_at"])
    op.create_index("ix_catalog_sync_history_sync_type", "catalog_sync_history", ["sync_type"])

    op.create_table(
        "catalog_sync_changes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("sync_id", sa.Uuid(), nullable=False),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("change_type", _enum("changetype", CHANGE_TYPES), nullable=False),
        sa.Column("previous_version_hash", sa.String(64), nullable=True),
        sa.Column("new_version_hash", sa.String(64), nullable=True),
        sa.Column("changed_fields", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["sync_id"],
            ["catalog_sync_history.id"],
            name="fk_catalog_sync_changes_sync_id_catalog_sync_history",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_catalog_sync_changes"),
    )
    op.create_index("ix_catalog_sync_changes_sync_id", "catalog_sync_changes", ["sync_id"])
    op.create_index("ix_catalog_sync_changes_domain", "catalog_sync_changes", ["domain"])
    op.create_index(
        "ix_catalog_sync_changes_change_type", "catalog_sync_changes", ["change_type"]
    )
    op.create_index(
        "ix_catalog_sync_changes_sync_id_domain", "catalog_sync_changes", ["sync_id", "domain"]
    )


def downgrade() -> None:
    op.drop_table("catalog_sync_changes")
    op.drop_table("catalog_sync_history")
    op.drop_table("integration_catalog")
