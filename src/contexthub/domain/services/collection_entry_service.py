"""Collection entry service (entry store).

Orchestrates validation, uniqueness, relation normalization, slug
resolution and snapshot building for entry writes, and scoped reads and
listings over the collection_entries table.
"""

import math
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from contexthub.core.coercion import canonical_uuid, is_missing
from contexthub.core.config import Settings, get_settings
from contexthub.core.logging import get_logger
from contexthub.core.query import (
    Condition,
    SQLCompiler,
    builtin_ref,
    coerce_value,
    field_ref,
    parse_sort,
)
from contexthub.domain.entities import (
    DEFAULT_ENTRY_STATUS,
    CollectionType,
    EntryRelations,
    RelationRef,
)
from contexthub.domain.exceptions import (
    EntryNotFound,
    EntryValidationFailed,
    InvalidEntryId,
    UniqueFieldViolation,
)
from contexthub.domain.services.collection_type_service import CollectionTypeService
from contexthub.domain.services.domain_event_service import (
    ENTRY_CREATED,
    ENTRY_DELETED,
    ENTRY_UPDATED,
    DatabaseEventSink,
    DomainEventSink,
    publish_event,
)
from contexthub.domain.services.entry_validator import EntryValidator
from contexthub.domain.services.indexed_snapshot import build_indexed_snapshot
from contexthub.domain.services.slug_generator import SlugResolver
from contexthub.infrastructure.persistence.models import CollectionEntryModel
from contexthub.infrastructure.persistence.repositories import CollectionEntryRepository
from contexthub.schemas import EntryListQuery, EntryPayload, EntryRelationsSchema, parse_payload

logger = get_logger(__name__)


def parse_entry_id(entry_id: Any) -> str:
    """Return the canonical entry id.

    Raises:
        InvalidEntryId: If the id is not a UUID.
    """
    canonical = canonical_uuid(entry_id)
    if canonical is None:
        raise InvalidEntryId(entry_id)
    return canonical


def _identifier_list(values: list[str] | None) -> list[str]:
    identifiers: list[str] = []
    for value in values or []:
        identifier = canonical_uuid(value)
        if identifier and identifier not in identifiers:
            identifiers.append(identifier)
    return identifiers


def normalize_relations(relations: EntryRelationsSchema | None) -> EntryRelations:
    """Drop invalid identifiers and duplicates, keeping first-seen order."""
    if relations is None:
        return EntryRelations()

    refs: list[RelationRef] = []
    for ref in relations.refs or []:
        entry_id = canonical_uuid(ref.entry_id)
        if not entry_id or not ref.collection_key:
            continue
        candidate = RelationRef(
            collection_key=ref.collection_key,
            entry_id=entry_id,
            relation_type=ref.relation_type,
        )
        if candidate not in refs:
            refs.append(candidate)

    return EntryRelations(
        contents=_identifier_list(relations.contents),
        media=_identifier_list(relations.media),
        refs=refs,
    )


class CollectionEntryService:
    """Service for collection entry business logic."""

    def __init__(
        self,
        session: AsyncSession,
        event_sink: DomainEventSink | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            event_sink: Where domain events go; defaults to the domain_events table.
            settings: Application settings.
        """
        self.session = session
        self.settings = settings or get_settings()
        self.event_sink = event_sink or DatabaseEventSink(session)
        self.repository = CollectionEntryRepository(session)
        self.collection_types = CollectionTypeService(
            session, event_sink=self.event_sink, settings=self.settings
        )
        self.slugs = SlugResolver(self.repository, max_length=self.settings.max_slug_length)
        self.compiler = SQLCompiler.for_session(session)

    def _validate(self, collection: CollectionType, data: dict[str, Any]) -> dict[str, Any]:
        result = EntryValidator.validate(collection, data)
        if not result.is_valid:
            logger.info(
                "Entry validation failed",
                collection_key=collection.key,
                error_count=len(result.errors),
            )
            raise EntryValidationFailed(result.error_details())
        return result.data

    async def _ensure_unique(
        self,
        tenant_id: str,
        collection: CollectionType,
        data: dict[str, Any],
        exclude_id: str | None = None,
    ) -> None:
        for definition in collection.fields:
            value = data.get(definition.key)
            if not definition.unique or value is None:
                continue
            match = None
            if not isinstance(value, (list, dict)):
                match = self.compiler.condition(Condition(field_ref(definition), "=", value))
            if await self.repository.unique_value_taken(
                tenant_id,
                collection.key,
                definition.key,
                value,
                match=match,
                exclude_id=exclude_id,
            ):
                raise UniqueFieldViolation(definition.key)

    async def _claim_unique_values(
        self,
        tenant_id: str,
        collection: CollectionType,
        entry_id: str,
        data: dict[str, Any],
    ) -> None:
        """Record unique values; a concurrent writer that got there first wins."""
        values = {
            definition.key: data[definition.key]
            for definition in collection.fields
            if definition.unique and data.get(definition.key) is not None
        }
        conflict = await self.repository.claim_unique_values(
            tenant_id, collection.key, entry_id, values
        )
        if conflict:
            await self.session.rollback()
            raise UniqueFieldViolation(conflict)

    async def _get_model(
        self, tenant_id: str, collection_key: str, entry_id: Any
    ) -> CollectionEntryModel:
        canonical_id = parse_entry_id(entry_id)
        model = await self.repository.get(tenant_id, collection_key, canonical_id)
        if model is None:
            raise EntryNotFound(canonical_id)
        return model

    async def create_entry(
        self,
        tenant_id: str,
        collection_key: str,
        payload: dict[str, Any] | EntryPayload,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Create an entry.

        Raises:
            InvalidPayload: If the payload fails schema validation.
            CollectionTypeNotFound: If the collection does not exist.
            EntryValidationFailed: If any field is invalid.
            UniqueFieldViolation: If a unique field value is taken.
        """
        request = parse_payload(EntryPayload, payload)
        collection = await self.collection_types.get_entity(tenant_id, collection_key)

        data = self._validate(collection, request.data)
        await self._ensure_unique(tenant_id, collection, data)

        relations = normalize_relations(request.relations)
        slug = await self.slugs.resolve(collection, tenant_id, request.slug, data)
        snapshot = build_indexed_snapshot(collection, data)

        model = CollectionEntryModel(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            collection_key=collection_key,
            slug=slug,
            data=data,
            relations=relations.to_dict(),
            indexed=snapshot.to_dict(),
            status=request.status or DEFAULT_ENTRY_STATUS,
            created_by=user_id,
            updated_by=user_id,
        )
        await self.repository.create(model)
        await self._claim_unique_values(tenant_id, collection, model.id, data)
        await self.session.commit()

        entry = model.to_entity().to_dict()
        logger.info(
            "Collection entry created",
            tenant_id=tenant_id,
            collection_key=collection_key,
            entry_id=model.id,
            slug=slug,
        )

        await publish_event(
            self.event_sink,
            tenant_id,
            ENTRY_CREATED,
            {"collectionKey": collection_key, "entryId": model.id, "entry": entry},
            {"userId": user_id} if user_id else None,
        )
        return entry

    async def get_entry(self, tenant_id: str, collection_key: str, entry_id: Any) -> dict[str, Any]:
        """Get an entry by id.

        Raises:
            InvalidEntryId: If the id is malformed.
            EntryNotFound: If no such entry exists in the collection.
        """
        model = await self._get_model(tenant_id, collection_key, entry_id)
        return model.to_entity().to_dict()

    async def update_entry(
        self,
        tenant_id: str,
        collection_key: str,
        entry_id: Any,
        payload: dict[str, Any] | EntryPayload,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Update an entry.

        Requested data is merged key by key over the stored data and the
        result is validated again. Relation categories are replaced only
        when supplied; status is kept unless supplied.

        Raises:
            InvalidPayload: If the payload fails schema validation.
            CollectionTypeNotFound: If the collection does not exist.
            InvalidEntryId: If the id is malformed.
            EntryNotFound: If no such entry exists in the collection.
            EntryValidationFailed: If the merged data is invalid.
            UniqueFieldViolation: If a unique field value is taken.
        """
        request = parse_payload(EntryPayload, payload)
        collection = await self.collection_types.get_entity(tenant_id, collection_key)
        model = await self._get_model(tenant_id, collection_key, entry_id)

        data = self._validate(collection, {**(model.data or {}), **request.data})
        await self._ensure_unique(tenant_id, collection, data, exclude_id=model.id)

        relations = EntryRelations.from_dict(model.relations)
        if request.relations is not None:
            incoming = normalize_relations(request.relations)
            for category in request.relations.model_fields_set:
                setattr(relations, category, getattr(incoming, category))

        slug = await self.slugs.resolve(
            collection, tenant_id, request.slug, data, exclude_id=model.id
        )
        if slug:
            model.slug = slug
        model.data = data
        model.relations = relations.to_dict()
        model.indexed = build_indexed_snapshot(collection, data).to_dict()
        if request.status:
            model.status = request.status
        model.updated_by = user_id or model.updated_by

        await self.repository.update(model)
        await self._claim_unique_values(tenant_id, collection, model.id, data)
        await self.session.commit()

        entry = model.to_entity().to_dict()
        logger.info(
            "Collection entry updated",
            tenant_id=tenant_id,
            collection_key=collection_key,
            entry_id=model.id,
        )

        await publish_event(
            self.event_sink,
            tenant_id,
            ENTRY_UPDATED,
            {"collectionKey": collection_key, "entryId": model.id, "entry": entry},
            {"userId": user_id} if user_id else None,
        )
        return entry

    async def delete_entry(
        self,
        tenant_id: str,
        collection_key: str,
        entry_id: Any,
        user_id: str | None = None,
    ) -> None:
        """Hard-delete an entry.

        Raises:
            InvalidEntryId: If the id is malformed.
            EntryNotFound: If nothing was deleted.
        """
        canonical_id = parse_entry_id(entry_id)
        deleted = await self.repository.delete(tenant_id, collection_key, canonical_id)
        if not deleted:
            raise EntryNotFound(canonical_id)
        await self.session.commit()

        logger.info(
            "Collection entry deleted",
            tenant_id=tenant_id,
            collection_key=collection_key,
            entry_id=canonical_id,
        )

        await publish_event(
            self.event_sink,
            tenant_id,
            ENTRY_DELETED,
            {"collectionKey": collection_key, "entryId": canonical_id},
            {"userId": user_id} if user_id else None,
        )

    async def find_entry_by_slug(
        self,
        tenant_id: str,
        collection_key: str,
        slug: str | None,
        status: str | None = "published",
    ) -> dict[str, Any] | None:
        """Find an entry by slug; ``status=None`` matches any status."""
        if not slug:
            return None
        model = await self.repository.find_by_slug(tenant_id, collection_key, slug, status=status)
        return model.to_entity().to_dict() if model else None

    async def list_entries(
        self,
        tenant_id: str,
        collection_key: str,
        query: dict[str, Any] | EntryListQuery | None = None,
    ) -> dict[str, Any]:
        """List one page of entries.

        Supports an exact status match, free-text search over the indexed
        title and text fields, exact-match filters on declared fields and a
        symbolic sort key.

        Raises:
            InvalidPayload: If the query parameters are invalid.
            CollectionTypeNotFound: If the collection does not exist.
            InvalidQueryValue: If a filter value does not fit its field type.
        """
        params = parse_payload(EntryListQuery, query)
        collection = await self.collection_types.get_entity(tenant_id, collection_key)

        conditions = []
        if params.status:
            conditions.append(
                self.compiler.condition(Condition(builtin_ref("status"), "=", params.status))
            )
        if params.q:
            conditions.append(self.compiler.search(collection, params.q))
        for key, value in (params.filter or {}).items():
            definition = collection.get_field(key)
            if definition is None or is_missing(value):
                continue
            ref = field_ref(definition)
            conditions.append(
                self.compiler.condition(Condition(ref, "=", coerce_value(ref, "=", value)))
            )

        order_by = self.compiler.order_by([parse_sort(collection, params.sort)])
        page = params.page
        limit = min(params.limit or self.settings.list_default_limit, self.settings.list_max_limit)

        total = await self.repository.count(tenant_id, collection_key, conditions)
        models = await self.repository.find(
            tenant_id,
            collection_key,
            conditions,
            order_by=order_by,
            offset=(page - 1) * limit,
            limit=limit,
        )

        return {
            "items": [model.to_entity().to_dict() for model in models],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }
