"""Indexed snapshot builder.

Derives the denormalized title/date/tags/geo summary of an entry from its
normalized data. The snapshot is rebuilt from scratch on every write.
"""

from typing import Any

from contexthub.domain.entities import (
    DATE_FIELD_TYPES,
    TEXTUAL_FIELD_TYPES,
    CollectionType,
    FieldType,
    IndexedSnapshot,
)


def _present(value: Any) -> bool:
    return value is not None and value != "" and value != [] and value != {}


def build_indexed_snapshot(collection: CollectionType, data: dict[str, Any]) -> IndexedSnapshot:
    """Build the indexed snapshot for normalized entry data."""
    indexed = [definition for definition in collection.fields if definition.indexed]
    snapshot = IndexedSnapshot()

    for definition in indexed:
        if definition.type in TEXTUAL_FIELD_TYPES and _present(data.get(definition.key)):
            snapshot.title = str(data[definition.key])
            break

    if snapshot.title is None and collection.slug_field:
        slug_value = data.get(collection.slug_field)
        if _present(slug_value):
            snapshot.title = str(slug_value)

    for definition in indexed:
        if definition.type in DATE_FIELD_TYPES:
            if _present(data.get(definition.key)):
                snapshot.date = data[definition.key]
            break

    tags: list[str] = []
    for definition in indexed:
        if definition.type != FieldType.ENUM:
            continue
        value = data.get(definition.key)
        values = value if isinstance(value, list) else [value]
        for item in values:
            if item is None:
                continue
            tag = str(item)
            if tag not in tags:
                tags.append(tag)
    snapshot.tags = tags or None

    for definition in indexed:
        if definition.type == FieldType.GEOJSON:
            if _present(data.get(definition.key)):
                snapshot.geo = data[definition.key]
            break

    return snapshot
