"""Collection type service (schema registry).

Creates, updates and looks up tenant-defined collection types. Writes emit
best-effort ``collection.created`` / ``collection.updated`` domain events
after they commit.
"""

from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from contexthub.core.config import Settings, get_settings
from contexthub.core.logging import get_logger
from contexthub.domain.entities import CollectionType
from contexthub.domain.exceptions import (
    CollectionTypeNotFound,
    DuplicateCollectionKey,
    DuplicateFieldKey,
    InvalidPayload,
)
from contexthub.domain.services.domain_event_service import (
    COLLECTION_CREATED,
    COLLECTION_UPDATED,
    DatabaseEventSink,
    DomainEventSink,
    publish_event,
)
from contexthub.infrastructure.persistence.models import CollectionTypeModel
from contexthub.infrastructure.persistence.repositories import CollectionTypeRepository
from contexthub.schemas import (
    CollectionTypeCreate,
    CollectionTypeUpdate,
    FieldDefinitionSchema,
    parse_payload,
)

logger = get_logger(__name__)


def assert_unique_field_keys(fields: list[FieldDefinitionSchema]) -> None:
    """Raise DuplicateFieldKey for the first field key seen twice."""
    seen: set[str] = set()
    for field in fields:
        if field.key in seen:
            raise DuplicateFieldKey(field.key)
        seen.add(field.key)


class CollectionTypeService:
    """Service for collection type business logic."""

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
        self.repository = CollectionTypeRepository(session)
        self.event_sink = event_sink or DatabaseEventSink(session)

    def _check_fields(self, fields: list[FieldDefinitionSchema]) -> None:
        maximum = self.settings.max_collection_fields
        if len(fields) > maximum:
            raise InvalidPayload(
                "Invalid payload",
                details=[
                    {
                        "field": "fields",
                        "message": f"Collections support up to {maximum} fields",
                        "code": "too_long",
                    }
                ],
            )
        assert_unique_field_keys(fields)

    async def get_entity(self, tenant_id: str, key: str) -> CollectionType:
        """Load a collection type as a domain entity.

        Raises:
            CollectionTypeNotFound: If the tenant has no such collection.
        """
        model = await self.repository.get_by_key(tenant_id, key)
        if model is None:
            raise CollectionTypeNotFound(key)
        return model.to_entity()

    async def get_collection_type(self, tenant_id: str, key: str) -> dict[str, Any]:
        return (await self.get_entity(tenant_id, key)).to_dict()

    async def list_collection_types(
        self, tenant_id: str, status: str | None = None
    ) -> list[dict[str, Any]]:
        """List a tenant's collection types in creation order."""
        models = await self.repository.list(tenant_id, status=status)
        return [model.to_entity().to_dict() for model in models]

    async def create_collection_type(
        self,
        tenant_id: str,
        payload: dict[str, Any] | CollectionTypeCreate,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a collection type.

        Raises:
            InvalidPayload: If the payload fails schema validation.
            DuplicateFieldKey: If two fields share a key.
            DuplicateCollectionKey: If the key is taken within the tenant.
        """
        request = parse_payload(CollectionTypeCreate, payload)
        self._check_fields(request.fields)

        if await self.repository.key_exists(tenant_id, request.key):
            raise DuplicateCollectionKey(request.key)

        model = CollectionTypeModel(
            tenant_id=tenant_id,
            key=request.key,
            name=dict(request.name),
            description=dict(request.description) if request.description else None,
            fields=[field.to_definition().to_dict() for field in request.fields],
            settings=request.settings.to_dict() if request.settings else {},
            status=request.status or "active",
            created_by=user_id,
            updated_by=user_id,
        )

        try:
            await self.repository.create(model)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateCollectionKey(request.key) from e

        snapshot = model.to_entity().to_dict()
        logger.info(
            "Collection type created",
            tenant_id=tenant_id,
            collection_key=request.key,
            field_count=len(request.fields),
            created_by=user_id,
        )

        await publish_event(
            self.event_sink,
            tenant_id,
            COLLECTION_CREATED,
            {"collectionKey": request.key, "collection": snapshot},
            {"userId": user_id} if user_id else None,
        )
        return snapshot

    async def update_collection_type(
        self,
        tenant_id: str,
        key: str,
        payload: dict[str, Any] | CollectionTypeUpdate,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Partially update a collection type.

        ``fields`` replaces the field list wholesale, ``settings`` is merged
        key by key over the stored settings; other attributes are replaced
        when supplied. Existing entries are not re-validated.

        Raises:
            InvalidPayload: If the payload fails schema validation.
            CollectionTypeNotFound: If the collection does not exist.
            DuplicateFieldKey: If the new field list repeats a key.
        """
        request = parse_payload(CollectionTypeUpdate, payload)

        model = await self.repository.get_by_key(tenant_id, key)
        if model is None:
            raise CollectionTypeNotFound(key)

        supplied = request.model_fields_set
        if request.fields is not None:
            self._check_fields(request.fields)
            model.fields = [field.to_definition().to_dict() for field in request.fields]
        if "name" in supplied and request.name is not None:
            model.name = dict(request.name)
        if "description" in supplied:
            model.description = dict(request.description) if request.description else None
        if request.settings is not None:
            model.settings = {**(model.settings or {}), **request.settings.to_dict()}
        if request.status is not None:
            model.status = request.status
        model.updated_by = user_id or model.updated_by

        await self.repository.update(model)
        await self.session.commit()

        snapshot = model.to_entity().to_dict()
        logger.info(
            "Collection type updated",
            tenant_id=tenant_id,
            collection_key=key,
            updated_attributes=sorted(supplied),
            updated_by=user_id,
        )

        await publish_event(
            self.event_sink,
            tenant_id,
            COLLECTION_UPDATED,
            {"collectionKey": key, "collection": snapshot},
            {"userId": user_id} if user_id else None,
        )
        return snapshot
