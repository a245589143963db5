"""Repository for the external content store (contents table)."""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from contexthub.infrastructure.persistence.models import ContentModel


class ContentRepository:
    """Repository for content database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, content: ContentModel) -> ContentModel:
        self.session.add(content)
        await self.session.flush()
        return content

    async def find_by_ids(self, tenant_id: str, content_ids: Sequence[str]) -> list[ContentModel]:
        """Bulk-load a tenant's content documents by id."""
        if not content_ids:
            return []
        result = await self.session.execute(
            select(ContentModel).where(
                ContentModel.tenant_id == tenant_id,
                ContentModel.id.in_(list(content_ids)),
            )
        )
        return list(result.scalars().all())
