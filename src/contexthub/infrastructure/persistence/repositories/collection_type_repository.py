"""Repository for collection type operations.

Provides tenant-scoped CRUD for the collection_types table.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from contexthub.infrastructure.persistence.models import CollectionTypeModel


class CollectionTypeRepository:
    """Repository for collection type database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, collection_type: CollectionTypeModel) -> CollectionTypeModel:
        """Add a collection type and flush it to obtain defaults."""
        self.session.add(collection_type)
        await self.session.flush()
        return collection_type

    async def update(self, collection_type: CollectionTypeModel) -> CollectionTypeModel:
        """Flush pending changes of an already-loaded collection type."""
        await self.session.flush()
        await self.session.refresh(collection_type)
        return collection_type

    async def get_by_key(self, tenant_id: str, key: str) -> CollectionTypeModel | None:
        """Get a collection type by its key within a tenant.

        Args:
            tenant_id: The tenant scope.
            key: The collection key.

        Returns:
            The collection type model if found, None otherwise.
        """
        result = await self.session.execute(
            select(CollectionTypeModel).where(
                CollectionTypeModel.tenant_id == tenant_id,
                CollectionTypeModel.key == key,
            )
        )
        return result.scalar_one_or_none()

    async def key_exists(self, tenant_id: str, key: str) -> bool:
        """Check whether a collection key is taken within a tenant."""
        result = await self.session.execute(
            select(CollectionTypeModel.id)
            .where(
                CollectionTypeModel.tenant_id == tenant_id,
                CollectionTypeModel.key == key,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list(self, tenant_id: str, status: str | None = None) -> list[CollectionTypeModel]:
        """List a tenant's collection types ordered by creation time.

        Args:
            tenant_id: The tenant scope.
            status: Optional exact status filter.
        """
        query = select(CollectionTypeModel).where(CollectionTypeModel.tenant_id == tenant_id)
        if status:
            query = query.where(CollectionTypeModel.status == status)
        query = query.order_by(CollectionTypeModel.created_at.asc(), CollectionTypeModel.id.asc())

        result = await self.session.execute(query)
        return list(result.scalars().all())
