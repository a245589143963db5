"""create collection tables

Revision ID: 0001_collections
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_collections"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create collection schema, entry, asset, content and event tables."""
    op.create_table(
        "collection_types",
        sa.Column("id", sa.String(length=36), nullable=False, comment="Collection type ID (UUID)"),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column(
            "key",
            sa.String(length=64),
            nullable=False,
            comment="Collection key (alphanumeric, dash and underscore)",
        ),
        sa.Column("name", sa.JSON(), nullable=False),
        sa.Column("description", sa.JSON(), nullable=True),
        sa.Column("fields", sa.JSON(), nullable=False),
        sa.Column("settings", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        sa.Column("updated_by", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "key", name="uq_collection_types_tenant_key"),
    )
    op.create_index("ix_collection_types_tenant_id", "collection_types", ["tenant_id"])
    op.create_index("ix_collection_types_tenant_status", "collection_types", ["tenant_id", "status"])

    op.create_table(
        "collection_entries",
        sa.Column("id", sa.String(length=36), nullable=False, comment="Entry ID (UUID)"),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("collection_key", sa.String(length=64), nullable=False),
        sa.Column("slug", sa.String(length=160), nullable=True),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("relations", sa.JSON(), nullable=False),
        sa.Column("indexed", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        sa.Column("updated_by", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_collection_entries_tenant_id", "collection_entries", ["tenant_id"])
    op.create_index(
        "ix_collection_entries_scope_slug",
        "collection_entries",
        ["tenant_id", "collection_key", "slug"],
    )
    op.create_index(
        "ix_collection_entries_scope_status",
        "collection_entries",
        ["tenant_id", "collection_key", "status"],
    )
    op.create_index(
        "ix_collection_entries_scope_created",
        "collection_entries",
        ["tenant_id", "collection_key", "created_at"],
    )

    # One row per (entry, unique field); the constraint rejects concurrent duplicates
    op.create_table(
        "collection_entry_unique_values",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("collection_key", sa.String(length=64), nullable=False),
        sa.Column("field_key", sa.String(length=128), nullable=False),
        sa.Column(
            "value_hash",
            sa.String(length=64),
            nullable=False,
            comment="SHA-256 of the canonical JSON encoding of the value",
        ),
        sa.Column("entry_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["entry_id"], ["collection_entries.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "tenant_id",
            "collection_key",
            "field_key",
            "value_hash",
            name="uq_entry_unique_values_scope_value",
        ),
    )
    op.create_index(
        "ix_collection_entry_unique_values_entry_id",
        "collection_entry_unique_values",
        ["entry_id"],
    )

    op.create_table(
        "media",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("mime_type", sa.String(length=127), nullable=True),
        sa.Column("size", sa.Integer(), nullable=True),
        sa.Column("alt", sa.String(length=512), nullable=True),
        sa.Column("meta", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_media_tenant_id", "media", ["tenant_id"])

    op.create_table(
        "contents",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("slug", sa.String(length=160), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("body", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contents_tenant_id", "contents", ["tenant_id"])

    op.create_table(
        "domain_events",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_domain_events_tenant_id", "domain_events", ["tenant_id"])
    op.create_index("ix_domain_events_type", "domain_events", ["type"])


def downgrade() -> None:
    """Drop all collection tables."""
    op.drop_index("ix_domain_events_type", table_name="domain_events")
    op.drop_index("ix_domain_events_tenant_id", table_name="domain_events")
    op.drop_table("domain_events")
    op.drop_index("ix_contents_tenant_id", table_name="contents")
    op.drop_table("contents")
    op.drop_index("ix_media_tenant_id", table_name="media")
    op.drop_table("media")
    op.drop_index(
        "ix_collection_entry_unique_values_entry_id",
        table_name="collection_entry_unique_values",
    )
    op.drop_table("collection_entry_unique_values")
    op.drop_index("ix_collection_entries_scope_created", table_name="collection_entries")
    op.drop_index("ix_collection_entries_scope_status", table_name="collection_entries")
    op.drop_index("ix_collection_entries_scope_slug", table_name="collection_entries")
    op.drop_index("ix_collection_entries_tenant_id", table_name="collection_entries")
    op.drop_table("collection_entries")
    op.drop_index("ix_collection_types_tenant_status", table_name="collection_types")
    op.drop_index("ix_collection_types_tenant_id", table_name="collection_types")
    op.drop_table("collection_types")
