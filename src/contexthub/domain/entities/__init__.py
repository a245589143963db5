"""Domain entities for ContextHub collections.

Entities are plain dataclasses with no dependencies on persistence or
transport frameworks.
"""

from contexthub.domain.entities.collection_entry import (
    DEFAULT_ENTRY_STATUS,
    ENTRY_STATUSES,
    RELATION_CATEGORIES,
    CollectionEntry,
    EntryRelations,
    IndexedSnapshot,
    RelationRef,
)
from contexthub.domain.entities.collection_type import (
    COLLECTION_STATUSES,
    DATE_FIELD_TYPES,
    IDENTIFIER_FIELD_TYPES,
    TEXTUAL_FIELD_TYPES,
    CollectionType,
    FieldDefinition,
    FieldOption,
    FieldType,
)

__all__ = [
    "COLLECTION_STATUSES",
    "CollectionEntry",
    "CollectionType",
    "DATE_FIELD_TYPES",
    "DEFAULT_ENTRY_STATUS",
    "ENTRY_STATUSES",
    "EntryRelations",
    "FieldDefinition",
    "FieldOption",
    "FieldType",
    "IDENTIFIER_FIELD_TYPES",
    "IndexedSnapshot",
    "RELATION_CATEGORIES",
    "RelationRef",
    "TEXTUAL_FIELD_TYPES",
]
