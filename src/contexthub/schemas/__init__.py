"""Pydantic payload schemas for collection types, entries and queries."""

from contexthub.schemas.collection_schemas import (
    CollectionSettingsSchema,
    CollectionTypeCreate,
    CollectionTypeUpdate,
    FieldDefinitionSchema,
    FieldOptionSchema,
)
from contexthub.schemas.entry_schemas import (
    EntryListQuery,
    EntryPayload,
    EntryRelationsSchema,
    RelationRefSchema,
)
from contexthub.schemas.query_schemas import CollectionQuery
from contexthub.schemas.validation import parse_payload, validation_details

__all__ = [
    "CollectionQuery",
    "CollectionSettingsSchema",
    "CollectionTypeCreate",
    "CollectionTypeUpdate",
    "EntryListQuery",
    "EntryPayload",
    "EntryRelationsSchema",
    "FieldDefinitionSchema",
    "FieldOptionSchema",
    "RelationRefSchema",
    "parse_payload",
    "validation_details",
]
