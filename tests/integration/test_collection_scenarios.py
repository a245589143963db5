"""End-to-end scenarios across the schema registry, entry store and query DSL."""

import uuid

import pytest
import pytest_asyncio
from sqlalchemy import select

from contexthub.core.query import InvalidQueryValue
from contexthub.domain.exceptions import DuplicateFieldKey, UniqueFieldViolation
from contexthub.domain.services import (
    CollectionEntryService,
    CollectionQueryService,
    CollectionTypeService,
)
from contexthub.infrastructure.persistence.models import (
    CollectionEntryModel,
    DomainEventModel,
    MediaModel,
)
from contexthub.infrastructure.persistence.repositories import (
    CollectionEntryRepository,
    MediaRepository,
)

TENANT_ID = "acme"


@pytest_asyncio.fixture
async def services(db_session, settings):
    return (
        CollectionTypeService(db_session, settings=settings),
        CollectionEntryService(db_session, settings=settings),
        CollectionQueryService(db_session, settings=settings),
    )


@pytest.mark.asyncio
async def test_entry_snapshot_and_default_status(services):
    types, entries, _ = services
    await types.create_collection_type(
        TENANT_ID,
        {
            "key": "posts",
            "name": {"en": "Posts"},
            "fields": [
                {"key": "title", "type": "string", "required": True, "indexed": True},
                {
                    "key": "status",
                    "type": "enum",
                    "options": [{"value": "draft"}, {"value": "published"}],
                },
            ],
        },
    )

    entry = await entries.create_entry(
        TENANT_ID, "posts", {"data": {"title": "Hello", "status": "published"}}
    )
    assert entry["indexed"]["title"] == "Hello"
    assert entry["data"]["status"] == "published"
    # The entry status is independent of a data field that happens to share its name
    assert entry["status"] == "draft"

    published = await entries.create_entry(
        TENANT_ID, "posts", {"data": {"title": "Live"}, "status": "published"}
    )
    assert published["status"] == "published"


@pytest.mark.asyncio
async def test_duplicate_field_keys_leave_schema_unchanged(services):
    types, _, _ = services
    await types.create_collection_type(
        TENANT_ID,
        {"key": "posts", "name": {"en": "Posts"}, "fields": [{"key": "body", "type": "text"}]},
    )

    with pytest.raises(DuplicateFieldKey):
        await types.update_collection_type(
            TENANT_ID,
            "posts",
            {"fields": [{"key": "title", "type": "string"}, {"key": "title", "type": "string"}]},
        )

    collection = await types.get_collection_type(TENANT_ID, "posts")
    assert [field["key"] for field in collection["fields"]] == ["body"]


@pytest.mark.asyncio
async def test_unique_field_violation(services, db_session):
    types, entries, _ = services
    await types.create_collection_type(
        TENANT_ID,
        {
            "key": "products",
            "name": {"en": "Products"},
            "fields": [{"key": "sku", "type": "string", "unique": True}],
        },
    )

    await entries.create_entry(TENANT_ID, "products", {"data": {"sku": "A1"}})
    with pytest.raises(UniqueFieldViolation) as exc_info:
        await entries.create_entry(TENANT_ID, "products", {"data": {"sku": "A1"}})

    assert exc_info.value.field == "sku"
    assert exc_info.value.to_dict()["error"] == "UniqueFieldViolation"
    assert await CollectionEntryRepository(db_session).count(TENANT_ID, "products") == 1


@pytest.mark.asyncio
async def test_media_projection_omits_unresolved_ids(services, db_session):
    types, entries, queries = services
    await types.create_collection_type(
        TENANT_ID,
        {
            "key": "posts",
            "name": {"en": "Posts"},
            "fields": [{"key": "title", "type": "string"}],
        },
    )
    media = MediaRepository(db_session)
    first = await media.create(MediaModel(tenant_id=TENANT_ID, filename="1.png", url="/1.png"))
    second = await media.create(MediaModel(tenant_id=TENANT_ID, filename="2.png", url="/2.png"))
    foreign = await media.create(MediaModel(tenant_id="other", filename="x.png", url="/x.png"))
    await db_session.commit()

    await entries.create_entry(
        TENANT_ID,
        "posts",
        {
            "data": {"title": "Gallery"},
            "relations": {"media": [first.id, str(uuid.uuid4()), second.id, foreign.id]},
        },
    )

    result = await queries.run_collection_query(
        TENANT_ID, {"collection": "posts", "select": ["data.title", "relations.media.url"]}
    )
    assert result["items"] == [{"data.title": "Gallery", "relations.media.url": ["/1.png", "/2.png"]}]


@pytest.mark.asyncio
async def test_numeric_where_and_coercion_error(services):
    types, entries, queries = services
    await types.create_collection_type(
        TENANT_ID,
        {
            "key": "products",
            "name": {"en": "Products"},
            "fields": [
                {"key": "name", "type": "string"},
                {"key": "price", "type": "number"},
            ],
        },
    )
    for name, price in (("cheap", 50), ("exact", 100), ("pricey", "150.5"), ("lux", 1000)):
        await entries.create_entry(TENANT_ID, "products", {"data": {"name": name, "price": price}})

    result = await queries.run_collection_query(
        TENANT_ID,
        {"collection": "products", "where": [["price", ">", 100]], "orderBy": [["price", "asc"]]},
    )
    assert [item["data"]["price"] for item in result["items"]] == [150.5, 1000]
    assert all(item["data"]["price"] > 100 for item in result["items"])

    with pytest.raises(InvalidQueryValue):
        await queries.run_collection_query(
            TENANT_ID, {"collection": "products", "where": [["price", ">", "abc"]]}
        )


@pytest.mark.asyncio
async def test_entries_are_tenant_isolated(services, db_session, posts_payload):
    types, entries, queries = services
    await types.create_collection_type(TENANT_ID, posts_payload)
    await types.create_collection_type("globex", posts_payload)

    await entries.create_entry(TENANT_ID, "posts", {"data": {"title": "Mine", "code": "K"}})
    # Same slug and unique value are fine in another tenant
    theirs = await entries.create_entry("globex", "posts", {"data": {"title": "Mine", "code": "K"}})
    assert theirs["slug"] == "mine"

    result = await queries.run_collection_query("globex", {"collection": "posts"})
    assert result["pagination"]["total"] == 1

    rows = (await db_session.execute(select(CollectionEntryModel.tenant_id))).scalars().all()
    assert sorted(rows) == [TENANT_ID, "globex"]


@pytest.mark.asyncio
async def test_write_lifecycle_emits_events(services, db_session, posts_payload):
    types, entries, _ = services
    await types.create_collection_type(TENANT_ID, posts_payload, user_id="editor")
    entry = await entries.create_entry(TENANT_ID, "posts", {"data": {"title": "A"}}, user_id="editor")
    await entries.update_entry(TENANT_ID, "posts", entry["id"], {"status": "published"})
    await entries.delete_entry(TENANT_ID, "posts", entry["id"])

    events = (
        await db_session.execute(select(DomainEventModel).order_by(DomainEventModel.occurred_at))
    ).scalars().all()
    assert [event.type for event in events] == [
        "collection.created",
        "collection.entry.created",
        "collection.entry.updated",
        "collection.entry.deleted",
    ]
    assert events[2].payload["entry"]["status"] == "published"
    assert events[3].meta is None
