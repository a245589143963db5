"""SQLAlchemy models for the ContextHub document store.

All models inherit from the Base class defined in database.py and are
created on startup in development mode.
"""

from contexthub.infrastructure.persistence.models.collection_entry import (
    CollectionEntryModel,
    EntryUniqueValueModel,
)
from contexthub.infrastructure.persistence.models.collection_type import CollectionTypeModel
from contexthub.infrastructure.persistence.models.content import ContentModel
from contexthub.infrastructure.persistence.models.domain_event import DomainEventModel
from contexthub.infrastructure.persistence.models.media import MediaModel

__all__ = [
    "CollectionEntryModel",
    "CollectionTypeModel",
    "ContentModel",
    "DomainEventModel",
    "EntryUniqueValueModel",
    "MediaModel",
]
