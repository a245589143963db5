"""SQLAlchemy model for the media table (asset registry).

Uploads and image processing happen elsewhere; the collection engine only
resolves stored asset records by id when projecting media fields.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from contexthub.core.timeutils import format_datetime, utc_now
from contexthub.infrastructure.persistence.database import Base


class MediaModel(Base):
    """SQLAlchemy model for the media table."""

    __tablename__ = "media"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(127), nullable=True)
    size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    alt: Mapped[str | None] = mapped_column(String(512), nullable=True)
    meta: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the asset for dotted-path projection."""
        return {
            "id": self.id,
            "filename": self.filename,
            "url": self.url,
            "mimeType": self.mime_type,
            "size": self.size,
            "alt": self.alt,
            "meta": dict(self.meta or {}),
            "createdAt": format_datetime(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<Media(id={self.id}, filename={self.filename})>"
