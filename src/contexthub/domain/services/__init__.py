"""Domain services for collection schemas, entries and queries."""

from contexthub.domain.services.collection_entry_service import (
    CollectionEntryService,
    normalize_relations,
    parse_entry_id,
)
from contexthub.domain.services.collection_type_service import (
    CollectionTypeService,
    assert_unique_field_keys,
)
from contexthub.domain.services.domain_event_service import (
    DOMAIN_EVENT_TYPES,
    DatabaseEventSink,
    DomainEventSink,
    publish_event,
)
from contexthub.domain.services.entry_validator import EntryValidator, FieldError, ValidationResult
from contexthub.domain.services.field_normalizers import NORMALIZERS, normalize_field_value
from contexthub.domain.services.indexed_snapshot import build_indexed_snapshot
from contexthub.domain.services.query_service import CollectionQueryService
from contexthub.domain.services.relation_resolver import RelationResolver, resolve_entry_value
from contexthub.domain.services.slug_generator import SlugGenerator, SlugResolver

__all__ = [
    "CollectionEntryService",
    "CollectionQueryService",
    "CollectionTypeService",
    "DOMAIN_EVENT_TYPES",
    "DatabaseEventSink",
    "DomainEventSink",
    "EntryValidator",
    "FieldError",
    "NORMALIZERS",
    "RelationResolver",
    "SlugGenerator",
    "SlugResolver",
    "ValidationResult",
    "assert_unique_field_keys",
    "build_indexed_snapshot",
    "normalize_field_value",
    "normalize_relations",
    "parse_entry_id",
    "publish_event",
    "resolve_entry_value",
]
