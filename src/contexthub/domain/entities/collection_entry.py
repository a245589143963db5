"""Collection entry entity.

An entry is a record conforming to a collection type. Besides its data it
carries relation identifier lists and a denormalized indexed snapshot used
for cheap listing and search.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from contexthub.core.timeutils import format_datetime

ENTRY_STATUSES = ("draft", "published", "archived")
DEFAULT_ENTRY_STATUS = "draft"
RELATION_CATEGORIES = ("contents", "media", "refs")


@dataclass
class RelationRef:
    """A typed link from an entry to another collection entry."""

    collection_key: str
    entry_id: str
    relation_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "collectionKey": self.collection_key,
            "entryId": self.entry_id,
            "relationType": self.relation_type,
        }


@dataclass
class EntryRelations:
    """Relation identifier lists attached to an entry."""

    contents: list[str] = field(default_factory=list)
    media: list[str] = field(default_factory=list)
    refs: list[RelationRef] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "EntryRelations":
        data = data or {}
        return cls(
            contents=list(data.get("contents") or []),
            media=list(data.get("media") or []),
            refs=[
                RelationRef(
                    collection_key=ref["collectionKey"],
                    entry_id=ref["entryId"],
                    relation_type=ref.get("relationType"),
                )
                for ref in data.get("refs") or []
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "contents": list(self.contents),
            "media": list(self.media),
            "refs": [ref.to_dict() for ref in self.refs],
        }


@dataclass
class IndexedSnapshot:
    """Denormalized summary derived from entry data on every write."""

    title: str | None = None
    date: str | None = None
    tags: list[str] | None = None
    geo: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "IndexedSnapshot":
        data = data or {}
        return cls(
            title=data.get("title"),
            date=data.get("date"),
            tags=data.get("tags"),
            geo=data.get("geo"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting unset parts."""
        snapshot: dict[str, Any] = {}
        if self.title is not None:
            snapshot["title"] = self.title
        if self.date is not None:
            snapshot["date"] = self.date
        if self.tags:
            snapshot["tags"] = list(self.tags)
        if self.geo is not None:
            snapshot["geo"] = self.geo
        return snapshot


@dataclass
class CollectionEntry:
    """Collection entry entity.

    Attributes:
        id: Unique identifier (UUID string).
        tenant_id: Owning tenant.
        collection_key: Key of the collection type the entry belongs to.
        slug: Human-readable identifier, unique per tenant and collection.
        data: Normalized field values plus any undeclared keys.
        relations: Attached content, media and entry references.
        indexed: Derived snapshot (title, date, tags, geo).
        status: 'draft', 'published' or 'archived'.
    """

    id: str
    tenant_id: str
    collection_key: str
    slug: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    relations: EntryRelations = field(default_factory=EntryRelations)
    indexed: IndexedSnapshot = field(default_factory=IndexedSnapshot)
    status: str = DEFAULT_ENTRY_STATUS
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.status not in ENTRY_STATUSES:
            raise ValueError(f"Invalid entry status: {self.status}")

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entry in its public wire shape."""
        return {
            "id": self.id,
            "collectionKey": self.collection_key,
            "slug": self.slug,
            "status": self.status,
            "data": dict(self.data),
            "relations": self.relations.to_dict(),
            "indexed": self.indexed.to_dict(),
            "createdAt": format_datetime(self.created_at) if self.created_at else None,
            "updatedAt": format_datetime(self.updated_at) if self.updated_at else None,
        }
