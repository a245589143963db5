"""SQLAlchemy models for collection entries and their uniqueness claims."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from contexthub.core.timeutils import utc_now
from contexthub.domain.entities import CollectionEntry, EntryRelations, IndexedSnapshot
from contexthub.infrastructure.persistence.database import Base


class CollectionEntryModel(Base):
    """SQLAlchemy model for the collection_entries table.

    Entries of every collection share this table; ``data``, ``relations``
    and ``indexed`` are JSON documents queried through JSON path
    expressions.
    """

    __tablename__ = "collection_entries"
    __table_args__ = (
        Index("ix_collection_entries_scope_slug", "tenant_id", "collection_key", "slug"),
        Index("ix_collection_entries_scope_status", "tenant_id", "collection_key", "status"),
        Index("ix_collection_entries_scope_created", "tenant_id", "collection_key", "created_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Entry ID (UUID)",
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    collection_key: Mapped[str] = mapped_column(String(64), nullable=False)
    slug: Mapped[str | None] = mapped_column(String(160), nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    relations: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    indexed: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft")
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def to_entity(self) -> CollectionEntry:
        """Convert the row into a domain entity."""
        return CollectionEntry(
            id=self.id,
            tenant_id=self.tenant_id,
            collection_key=self.collection_key,
            slug=self.slug,
            data=dict(self.data or {}),
            relations=EntryRelations.from_dict(self.relations),
            indexed=IndexedSnapshot.from_dict(self.indexed),
            status=self.status,
            created_by=self.created_by,
            updated_by=self.updated_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return (
            f"<CollectionEntry(id={self.id}, collection_key={self.collection_key}, "
            f"slug={self.slug})>"
        )


class EntryUniqueValueModel(Base):
    """Uniqueness claims for unique-flagged entry fields.

    One row per (entry, unique field). The compound unique constraint makes
    the store reject a second entry holding the same normalized value, so
    concurrent writers that both pass the pre-check cannot both commit.
    """

    __tablename__ = "collection_entry_unique_values"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "collection_key",
            "field_key",
            "value_hash",
            name="uq_entry_unique_values_scope_value",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False)
    collection_key: Mapped[str] = mapped_column(String(64), nullable=False)
    field_key: Mapped[str] = mapped_column(String(128), nullable=False)
    value_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="SHA-256 of the canonical JSON encoding of the value",
    )
    entry_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("collection_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<EntryUniqueValue(field_key={self.field_key}, entry_id={self.entry_id})>"
