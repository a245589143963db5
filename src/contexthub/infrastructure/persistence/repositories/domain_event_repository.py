"""Repository for the domain_events outbox."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from contexthub.infrastructure.persistence.models import DomainEventModel


class DomainEventRepository:
    """Repository for domain event database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, event: DomainEventModel) -> DomainEventModel:
        self.session.add(event)
        await self.session.flush()
        return event

    async def list_by_tenant(self, tenant_id: str, event_type: str | None = None) -> list[DomainEventModel]:
        """List a tenant's events in occurrence order."""
        query = select(DomainEventModel).where(DomainEventModel.tenant_id == tenant_id)
        if event_type:
            query = query.where(DomainEventModel.type == event_type)
        result = await self.session.execute(query.order_by(DomainEventModel.occurred_at.asc()))
        return list(result.scalars().all())
