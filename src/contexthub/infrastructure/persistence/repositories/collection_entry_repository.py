"""Repository for collection entry operations.

Entries of all collections live in one table. Callers pass compiled
SQLAlchemy conditions and orderings; this repository adds the tenant and
collection scope to every statement.
"""

import hashlib
import json
from typing import Any, Sequence

from sqlalchemy import ColumnElement, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from contexthub.core.logging import get_logger
from contexthub.infrastructure.persistence.models import (
    CollectionEntryModel,
    EntryUniqueValueModel,
)

logger = get_logger(__name__)


def hash_unique_value(value: Any) -> str:
    """Hash the canonical JSON encoding of a normalized field value."""
    canonical = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class CollectionEntryRepository:
    """Repository for collection entry database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    @staticmethod
    def _scope(tenant_id: str, collection_key: str) -> list[ColumnElement[bool]]:
        return [
            CollectionEntryModel.tenant_id == tenant_id,
            CollectionEntryModel.collection_key == collection_key,
        ]

    async def create(self, entry: CollectionEntryModel) -> CollectionEntryModel:
        """Add an entry and flush it to obtain defaults."""
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def update(self, entry: CollectionEntryModel) -> CollectionEntryModel:
        """Flush pending changes of an already-loaded entry."""
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def get(
        self, tenant_id: str, collection_key: str, entry_id: str
    ) -> CollectionEntryModel | None:
        """Get an entry by id within its tenant and collection."""
        result = await self.session.execute(
            select(CollectionEntryModel).where(
                *self._scope(tenant_id, collection_key),
                CollectionEntryModel.id == entry_id,
            )
        )
        return result.scalar_one_or_none()

    async def delete(self, tenant_id: str, collection_key: str, entry_id: str) -> int:
        """Hard-delete an entry and its uniqueness claims.

        Returns:
            Number of entry rows deleted (0 or 1).
        """
        result = await self.session.execute(
            delete(CollectionEntryModel).where(
                *self._scope(tenant_id, collection_key),
                CollectionEntryModel.id == entry_id,
            )
        )
        deleted = result.rowcount or 0
        if deleted:
            await self.session.execute(
                delete(EntryUniqueValueModel).where(EntryUniqueValueModel.entry_id == entry_id)
            )
        return deleted

    async def slug_exists(
        self,
        tenant_id: str,
        collection_key: str,
        slug: str,
        exclude_id: str | None = None,
    ) -> bool:
        """Check whether a slug is used by another entry of the collection."""
        query = select(CollectionEntryModel.id).where(
            *self._scope(tenant_id, collection_key),
            CollectionEntryModel.slug == slug,
        )
        if exclude_id:
            query = query.where(CollectionEntryModel.id != exclude_id)

        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def find_by_slug(
        self,
        tenant_id: str,
        collection_key: str,
        slug: str,
        status: str | None = None,
    ) -> CollectionEntryModel | None:
        """Get the first entry with the given slug, optionally of one status."""
        query = select(CollectionEntryModel).where(
            *self._scope(tenant_id, collection_key),
            CollectionEntryModel.slug == slug,
        )
        if status:
            query = query.where(CollectionEntryModel.status == status)

        result = await self.session.execute(query.limit(1))
        return result.scalars().first()

    async def count(
        self,
        tenant_id: str,
        collection_key: str,
        conditions: Sequence[ColumnElement[bool]] = (),
    ) -> int:
        """Count entries matching the given conditions."""
        result = await self.session.execute(
            select(func.count())
            .select_from(CollectionEntryModel)
            .where(*self._scope(tenant_id, collection_key), *conditions)
        )
        return result.scalar_one()

    async def find(
        self,
        tenant_id: str,
        collection_key: str,
        conditions: Sequence[ColumnElement[bool]] = (),
        order_by: Sequence[ColumnElement[Any]] = (),
        offset: int = 0,
        limit: int = 20,
    ) -> list[CollectionEntryModel]:
        """Find one page of entries matching the given conditions."""
        query = (
            select(CollectionEntryModel)
            .where(*self._scope(tenant_id, collection_key), *conditions)
            .order_by(*order_by)
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_by_ids(self, tenant_id: str, entry_ids: Sequence[str]) -> list[CollectionEntryModel]:
        """Bulk-load entries of any collection of the tenant by id."""
        if not entry_ids:
            return []
        result = await self.session.execute(
            select(CollectionEntryModel).where(
                CollectionEntryModel.tenant_id == tenant_id,
                CollectionEntryModel.id.in_(list(entry_ids)),
            )
        )
        return list(result.scalars().all())

    async def unique_value_taken(
        self,
        tenant_id: str,
        collection_key: str,
        field_key: str,
        value: Any,
        match: ColumnElement[bool] | None = None,
        exclude_id: str | None = None,
    ) -> bool:
        """Check whether another entry already holds a unique field value.

        Both the claims and the stored documents are consulted, since
        entries written before the field was flagged unique have no claims.

        Args:
            match: Compiled equality test on the data document. Without it
                the stored values are compared one by one.
        """
        claims = select(EntryUniqueValueModel.id).where(
            EntryUniqueValueModel.tenant_id == tenant_id,
            EntryUniqueValueModel.collection_key == collection_key,
            EntryUniqueValueModel.field_key == field_key,
            EntryUniqueValueModel.value_hash == hash_unique_value(value),
        )
        if exclude_id:
            claims = claims.where(EntryUniqueValueModel.entry_id != exclude_id)

        result = await self.session.execute(claims.limit(1))
        if result.scalar_one_or_none() is not None:
            return True

        scope = self._scope(tenant_id, collection_key)
        if exclude_id:
            scope.append(CollectionEntryModel.id != exclude_id)

        if match is not None:
            result = await self.session.execute(
                select(CollectionEntryModel.id).where(*scope, match).limit(1)
            )
            return result.scalar_one_or_none() is not None

        result = await self.session.execute(
            select(CollectionEntryModel.data[field_key]).where(*scope)
        )
        return any(stored == value for stored in result.scalars())

    async def claim_unique_values(
        self,
        tenant_id: str,
        collection_key: str,
        entry_id: str,
        values: dict[str, Any],
    ) -> str | None:
        """Replace an entry's uniqueness claims.

        Claims are flushed one at a time so a constraint violation can be
        attributed to its field. After a violation the session must be
        rolled back by the caller.

        Args:
            values: Mapping of unique field key to normalized value.

        Returns:
            The key of the field whose claim conflicted, or None.
        """
        await self.session.execute(
            delete(EntryUniqueValueModel).where(EntryUniqueValueModel.entry_id == entry_id)
        )

        for field_key, value in values.items():
            self.session.add(
                EntryUniqueValueModel(
                    tenant_id=tenant_id,
                    collection_key=collection_key,
                    field_key=field_key,
                    value_hash=hash_unique_value(value),
                    entry_id=entry_id,
                )
            )
            try:
                await self.session.flush()
            except IntegrityError:
                logger.warning(
                    "Unique value claim rejected by store",
                    tenant_id=tenant_id,
                    collection_key=collection_key,
                    field_key=field_key,
                    entry_id=entry_id,
                )
                return field_key
        return None
