"""Repository for the asset registry (media table)."""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from contexthub.infrastructure.persistence.models import MediaModel


class MediaRepository:
    """Repository for media database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, media: MediaModel) -> MediaModel:
        self.session.add(media)
        await self.session.flush()
        return media

    async def find_by_ids(self, tenant_id: str, media_ids: Sequence[str]) -> list[MediaModel]:
        """Bulk-load a tenant's media records by id."""
        if not media_ids:
            return []
        result = await self.session.execute(
            select(MediaModel).where(
                MediaModel.tenant_id == tenant_id,
                MediaModel.id.in_(list(media_ids)),
            )
        )
        return list(result.scalars().all())
