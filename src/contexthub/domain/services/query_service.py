"""Collection query service.

Runs query DSL requests: the request is planned and validated against the
collection schema, compiled to SQL, executed for one page, and projected
through the relation resolver when a select list is given.
"""

import math
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from contexthub.core.config import Settings, get_settings
from contexthub.core.logging import get_logger
from contexthub.core.query import Projection, ProjectionKind, QueryPlanner, SQLCompiler
from contexthub.domain.entities import CollectionEntry, FieldType
from contexthub.domain.services.collection_type_service import CollectionTypeService
from contexthub.domain.services.relation_resolver import RelationResolver, as_list, walk
from contexthub.infrastructure.persistence.repositories import CollectionEntryRepository
from contexthub.schemas import CollectionQuery, parse_payload

logger = get_logger(__name__)


class CollectionQueryService:
    """Service executing collection queries."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.repository = CollectionEntryRepository(session)
        self.collection_types = CollectionTypeService(session, settings=self.settings)
        self.planner = QueryPlanner(self.settings)
        self.compiler = SQLCompiler.for_session(session)

    async def run_collection_query(
        self, tenant_id: str, payload: dict[str, Any] | CollectionQuery
    ) -> dict[str, Any]:
        """Run a query and return ``{"items", "pagination"}``.

        Raises:
            InvalidPayload: If the request fails schema validation.
            CollectionTypeNotFound: If the collection does not exist.
            QueryError: If a where/orderBy/select clause is invalid.
        """
        request = parse_payload(CollectionQuery, payload)
        collection = await self.collection_types.get_entity(tenant_id, request.collection)

        plan = self.planner.plan(
            collection,
            where=request.where,
            order_by=request.order_by,
            select=request.select,
            limit=request.limit,
            offset=request.offset,
            page=request.page,
        )
        conditions = self.compiler.conditions(plan.conditions)
        order_by = self.compiler.order_by(plan.sort_keys)

        total = await self.repository.count(tenant_id, collection.key, conditions)
        models = await self.repository.find(
            tenant_id,
            collection.key,
            conditions,
            order_by=order_by,
            offset=plan.offset,
            limit=plan.limit,
        )
        entries = [model.to_entity() for model in models]

        if plan.projections is None:
            items = [entry.to_dict() for entry in entries]
        else:
            resolver = RelationResolver(self.session, tenant_id)
            await resolver.load(entries, plan.projections)
            items = [self._project(entry, plan.projections, resolver) for entry in entries]

        logger.debug(
            "Collection query executed",
            tenant_id=tenant_id,
            collection_key=collection.key,
            conditions=len(plan.conditions),
            total=total,
            returned=len(items),
        )

        return {
            "items": items,
            "pagination": {
                "total": total,
                "limit": plan.limit,
                "offset": plan.offset,
                "page": plan.current_page,
                "pages": math.ceil(total / plan.limit),
            },
        }

    def _project(
        self,
        entry: CollectionEntry,
        projections: list[Projection],
        resolver: RelationResolver,
    ) -> dict[str, Any]:
        """Build one output row keyed by the select paths."""
        serialized = entry.to_dict()
        return {
            projection.path: self._project_value(serialized, projection, resolver)
            for projection in projections
        }

    @staticmethod
    def _project_value(
        serialized: dict[str, Any], projection: Projection, resolver: RelationResolver
    ) -> Any:
        segments = projection.segments

        if projection.kind == ProjectionKind.BUILTIN:
            head = "id" if projection.head == "_id" else projection.head
            return walk(serialized.get(head), segments)

        if projection.kind == ProjectionKind.INDEXED:
            return walk(serialized["indexed"], segments)

        if projection.kind == ProjectionKind.DATA:
            return walk(serialized["data"], segments)

        if projection.kind == ProjectionKind.RELATION:
            values = serialized["relations"][projection.head]
            if not segments:
                return values
            if projection.head == "media":
                return resolver.resolve_media(values, segments, multiple=True)
            if projection.head == "contents":
                return resolver.resolve_contents(values, segments)
            return [
                resolved
                for resolved in (walk(ref, segments) for ref in as_list(values))
                if resolved is not None
            ]

        definition = projection.definition
        value = serialized["data"].get(projection.head)
        if segments and definition.type == FieldType.REF:
            return resolver.resolve_refs(value, segments, multiple=definition.multiple)
        if segments and definition.type == FieldType.MEDIA:
            return resolver.resolve_media(value, segments, multiple=definition.multiple)
        return walk(value, segments)
