"""Relation resolver for query projections.

Collects the ref, media and content identifiers a page of entries needs for
its select list, loads each category with at most one bulk lookup scoped to
the querying tenant, and resolves dotted subpaths from those caches.
"""

from typing import Any, Iterable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from contexthub.core.coercion import canonical_uuid
from contexthub.core.logging import get_logger
from contexthub.core.query import Projection, ProjectionKind
from contexthub.domain.entities import CollectionEntry, FieldType
from contexthub.infrastructure.persistence.repositories import (
    CollectionEntryRepository,
    ContentRepository,
    MediaRepository,
)

logger = get_logger(__name__)


def as_list(value: Any) -> list[Any]:
    """Wrap a scalar in a list and drop falsy members."""
    if not value:
        return []
    if isinstance(value, list):
        return [item for item in value if item]
    return [value]


def walk(value: Any, segments: Sequence[str]) -> Any:
    """Follow a dotted path through dicts and lists; None when it breaks off."""
    for segment in segments:
        if isinstance(value, dict) and segment in value:
            value = value[segment]
        elif isinstance(value, list) and segment.isdigit() and int(segment) < len(value):
            value = value[int(segment)]
        else:
            return None
    return value


def resolve_entry_value(entry: dict[str, Any] | None, segments: Sequence[str]) -> Any:
    """Resolve a subpath on a serialized entry.

    ``id`` gives the entry id; ``slug``, ``status``, ``indexed`` and ``data``
    walk into the entry; bare ``title`` / ``date`` prefer the indexed
    snapshot over the data; any other head is looked up in the data, then
    in the indexed snapshot.
    """
    if entry is None:
        return None
    if not segments:
        return entry

    head, rest = segments[0], segments[1:]
    if head in ("id", "_id"):
        return entry["id"]
    if head in ("slug", "status", "indexed", "data", "relations", "createdAt", "updatedAt"):
        return walk(entry.get(head), rest)

    data = entry.get("data") or {}
    indexed = entry.get("indexed") or {}
    if head in ("title", "date") and not rest:
        return indexed.get(head) or data.get(head)
    if head in data:
        return walk(data[head], rest)
    if head in indexed:
        return walk(indexed[head], rest)
    return None


class RelationResolver:
    """Batches and dereferences relation identifiers for one query page."""

    def __init__(self, session: AsyncSession, tenant_id: str) -> None:
        self.tenant_id = tenant_id
        self.entry_repository = CollectionEntryRepository(session)
        self.media_repository = MediaRepository(session)
        self.content_repository = ContentRepository(session)
        self.entries: dict[str, dict[str, Any]] = {}
        self.media: dict[str, dict[str, Any]] = {}
        self.contents: dict[str, dict[str, Any]] = {}

    @staticmethod
    def _collect(ids: dict[str, None], values: Iterable[Any]) -> None:
        for value in values:
            identifier = canonical_uuid(value)
            if identifier:
                ids[identifier] = None

    async def load(self, entries: Sequence[CollectionEntry], projections: Sequence[Projection]) -> None:
        """Fill the caches for every dereferencing projection in one pass."""
        dereferencing = [projection for projection in projections if projection.dereferences]
        if not dereferencing:
            return

        ref_fields = [
            projection.head
            for projection in dereferencing
            if projection.kind == ProjectionKind.FIELD and projection.definition.type == FieldType.REF
        ]
        media_fields = [
            projection.head
            for projection in dereferencing
            if projection.kind == ProjectionKind.FIELD and projection.definition.type == FieldType.MEDIA
        ]
        relation_heads = {
            projection.head for projection in dereferencing if projection.kind == ProjectionKind.RELATION
        }

        ref_ids: dict[str, None] = {}
        media_ids: dict[str, None] = {}
        content_ids: dict[str, None] = {}
        for entry in entries:
            for key in ref_fields:
                self._collect(ref_ids, as_list(entry.data.get(key)))
            for key in media_fields:
                self._collect(media_ids, as_list(entry.data.get(key)))
            if "media" in relation_heads:
                self._collect(media_ids, entry.relations.media)
            if "contents" in relation_heads:
                self._collect(content_ids, entry.relations.contents)

        if ref_ids:
            models = await self.entry_repository.find_by_ids(self.tenant_id, list(ref_ids))
            self.entries = {model.id: model.to_entity().to_dict() for model in models}
        if media_ids:
            models = await self.media_repository.find_by_ids(self.tenant_id, list(media_ids))
            self.media = {model.id: model.to_dict() for model in models}
        if content_ids:
            models = await self.content_repository.find_by_ids(self.tenant_id, list(content_ids))
            self.contents = {model.id: model.to_dict() for model in models}

        logger.debug(
            "Relations loaded",
            tenant_id=self.tenant_id,
            refs_requested=len(ref_ids),
            refs_resolved=len(self.entries),
            media_requested=len(media_ids),
            media_resolved=len(self.media),
            contents_requested=len(content_ids),
            contents_resolved=len(self.contents),
        )

    @staticmethod
    def _resolve(
        cache: dict[str, dict[str, Any]],
        value: Any,
        resolve: Any,
        multiple: bool,
    ) -> Any:
        resolved = []
        for identifier in as_list(value):
            document = cache.get(canonical_uuid(identifier) or "")
            if document is None:
                continue
            result = resolve(document)
            if result is not None:
                resolved.append(result)
        if multiple:
            return resolved
        return resolved[0] if resolved else None

    def resolve_refs(self, value: Any, segments: Sequence[str], multiple: bool) -> Any:
        return self._resolve(
            self.entries, value, lambda entry: resolve_entry_value(entry, segments), multiple
        )

    def resolve_media(self, value: Any, segments: Sequence[str], multiple: bool) -> Any:
        return self._resolve(self.media, value, lambda media: walk(media, segments), multiple)

    def resolve_contents(self, value: Any, segments: Sequence[str]) -> list[Any]:
        return self._resolve(self.contents, value, lambda content: walk(content, segments), True)
