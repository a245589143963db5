"""Domain event emission.

Schema and entry writes announce themselves through a ``DomainEventSink``.
Emission is best-effort: ``publish_event`` logs and discards any failure so
the write that triggered it is never affected.
"""

import uuid
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from contexthub.core.logging import get_logger
from contexthub.infrastructure.persistence.models import DomainEventModel
from contexthub.infrastructure.persistence.repositories import DomainEventRepository

logger = get_logger(__name__)

COLLECTION_CREATED = "collection.created"
COLLECTION_UPDATED = "collection.updated"
ENTRY_CREATED = "collection.entry.created"
ENTRY_UPDATED = "collection.entry.updated"
ENTRY_DELETED = "collection.entry.deleted"

DOMAIN_EVENT_TYPES = (
    COLLECTION_CREATED,
    COLLECTION_UPDATED,
    ENTRY_CREATED,
    ENTRY_UPDATED,
    ENTRY_DELETED,
)


class DomainEventSink(Protocol):
    """Accepts domain events and returns the stored event id, or None."""

    async def emit(
        self,
        tenant_id: str | None,
        event_type: str,
        payload: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str | None: ...


class DatabaseEventSink:
    """Sink that records events as pending rows in the domain_events table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repository = DomainEventRepository(session)

    async def emit(
        self,
        tenant_id: str | None,
        event_type: str,
        payload: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str | None:
        if not tenant_id:
            logger.warning("Missing tenant id, domain event not recorded", event_type=event_type)
            return None

        if event_type not in DOMAIN_EVENT_TYPES:
            logger.warning("Unknown domain event type", event_type=event_type)
            return None

        event = DomainEventModel(
            id=str(uuid.uuid4()),
            tenant_id=str(tenant_id),
            type=event_type,
            payload=dict(payload or {}),
            meta=dict(metadata) if metadata else None,
            status="pending",
            retry_count=0,
        )
        try:
            await self.repository.create(event)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

        logger.debug("Domain event recorded", event_id=event.id, event_type=event_type)
        return event.id


async def publish_event(
    sink: DomainEventSink,
    tenant_id: str | None,
    event_type: str,
    payload: dict[str, Any] | None = None,
    metadata: dict[str, Any] | None = None,
) -> str | None:
    """Emit an event, logging and discarding any failure.

    Returns:
        The event id, or None if the event was not recorded.
    """
    try:
        return await sink.emit(tenant_id, event_type, payload, metadata)
    except Exception as e:
        logger.error(
            "Domain event emission failed",
            tenant_id=tenant_id,
            event_type=event_type,
            error=str(e),
        )
        return None
