"""Pytest configuration for unit tests."""

import pytest

from contexthub.domain.entities import CollectionType, FieldDefinition, FieldOption, FieldType


@pytest.fixture
def posts_collection() -> CollectionType:
    """An in-memory posts collection type, no database involved."""
    return CollectionType(
        id="6f1c1bb0-0000-4000-8000-000000000001",
        tenant_id="tenant-a",
        key="posts",
        name={"en": "Posts"},
        fields=[
            FieldDefinition(key="title", type=FieldType.STRING, required=True, indexed=True),
            FieldDefinition(key="body", type=FieldType.TEXT),
            FieldDefinition(key="views", type=FieldType.NUMBER),
            FieldDefinition(key="featured", type=FieldType.BOOLEAN),
            FieldDefinition(key="publishedOn", type=FieldType.DATE, indexed=True),
            FieldDefinition(
                key="tags",
                type=FieldType.ENUM,
                indexed=True,
                options=[FieldOption("news"), FieldOption("tech"), FieldOption("life")],
                settings={"multiple": True},
            ),
            FieldDefinition(
                key="category",
                type=FieldType.ENUM,
                options=[FieldOption("a"), FieldOption("b")],
            ),
            FieldDefinition(key="code", type=FieldType.STRING, unique=True),
            FieldDefinition(key="author", type=FieldType.REF, ref="authors"),
            FieldDefinition(
                key="related", type=FieldType.REF, ref="posts", settings={"multiple": True}
            ),
            FieldDefinition(key="cover", type=FieldType.MEDIA),
            FieldDefinition(key="location", type=FieldType.GEOJSON, indexed=True),
        ],
        settings={"slugField": "title"},
    )
