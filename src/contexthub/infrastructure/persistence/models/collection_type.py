"""SQLAlchemy model for the collection_types table.

Collection types store tenant-defined schemas. Field definitions and
settings are kept as JSON so a schema update replaces them wholesale.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from contexthub.core.timeutils import utc_now
from contexthub.domain.entities import CollectionType, FieldDefinition
from contexthub.infrastructure.persistence.database import Base


class CollectionTypeModel(Base):
    """SQLAlchemy model for the collection_types table.

    Attributes:
        id: Primary key (UUID string).
        tenant_id: Owning tenant.
        key: Collection key, unique per tenant.
        name: Localized name map.
        description: Localized description map.
        fields: JSON list of field definitions (camelCase keys).
        settings: JSON settings object (slugField, defaultSort, ...).
        status: 'active' or 'archived'.
    """

    __tablename__ = "collection_types"
    __table_args__ = (
        UniqueConstraint("tenant_id", "key", name="uq_collection_types_tenant_key"),
        Index("ix_collection_types_tenant_status", "tenant_id", "status"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Collection type ID (UUID)",
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    key: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Collection key (alphanumeric, dash and underscore)",
    )
    name: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False)
    description: Mapped[dict[str, str] | None] = mapped_column(JSON, nullable=True)
    fields: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
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

    def to_entity(self) -> CollectionType:
        """Convert the row into a domain entity."""
        return CollectionType(
            id=self.id,
            tenant_id=self.tenant_id,
            key=self.key,
            name=dict(self.name or {}),
            description=dict(self.description) if self.description else None,
            fields=[FieldDefinition.from_dict(item) for item in self.fields or []],
            settings=dict(self.settings or {}),
            status=self.status,
            created_by=self.created_by,
            updated_by=self.updated_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return f"<CollectionType(id={self.id}, tenant_id={self.tenant_id}, key={self.key})>"
