"""Repositories for the ContextHub document store."""

from contexthub.infrastructure.persistence.repositories.collection_entry_repository import (
    CollectionEntryRepository,
    hash_unique_value,
)
from contexthub.infrastructure.persistence.repositories.collection_type_repository import (
    CollectionTypeRepository,
)
from contexthub.infrastructure.persistence.repositories.content_repository import ContentRepository
from contexthub.infrastructure.persistence.repositories.domain_event_repository import (
    DomainEventRepository,
)
from contexthub.infrastructure.persistence.repositories.media_repository import MediaRepository

__all__ = [
    "CollectionEntryRepository",
    "CollectionTypeRepository",
    "ContentRepository",
    "DomainEventRepository",
    "MediaRepository",
    "hash_unique_value",
]
