"""Tests for the collection entry service (entry store)."""

import uuid

import pytest
import pytest_asyncio

from contexthub.core.query import InvalidQueryValue
from contexthub.domain.exceptions import (
    CollectionTypeNotFound,
    EntryNotFound,
    EntryValidationFailed,
    InvalidEntryId,
    UniqueFieldViolation,
)
from contexthub.domain.services import (
    CollectionEntryService,
    CollectionTypeService,
    normalize_relations,
    parse_entry_id,
)
from contexthub.infrastructure.persistence.repositories import (
    CollectionEntryRepository,
    DomainEventRepository,
)
from contexthub.schemas import EntryRelationsSchema

TENANT_ID = "tenant-a"


@pytest_asyncio.fixture
async def service(db_session, settings, posts_payload):
    await CollectionTypeService(db_session, settings=settings).create_collection_type(
        TENANT_ID, posts_payload
    )
    return CollectionEntryService(db_session, settings=settings)


def test_parse_entry_id():
    identifier = str(uuid.uuid4())
    assert parse_entry_id(identifier.upper()) == identifier
    with pytest.raises(InvalidEntryId):
        parse_entry_id("123")


def test_normalize_relations_drops_invalid_and_duplicates():
    media_id = str(uuid.uuid4())
    ref_id = str(uuid.uuid4())
    relations = normalize_relations(
        EntryRelationsSchema.model_validate(
            {
                "media": [media_id, "bad", media_id.upper()],
                "refs": [
                    {"collectionKey": "posts", "entryId": ref_id},
                    {"collectionKey": "posts", "entryId": ref_id},
                    {"collectionKey": "posts", "entryId": "bad"},
                ],
            }
        )
    )
    assert relations.media == [media_id]
    assert relations.contents == []
    assert len(relations.refs) == 1
    assert relations.refs[0].entry_id == ref_id


class TestCreateEntry:
    @pytest.mark.asyncio
    async def test_create(self, service):
        entry = await service.create_entry(
            TENANT_ID,
            "posts",
            {
                "data": {"title": "Hello World", "views": "3", "tags": ["news", "bogus"]},
                "status": "published",
            },
            user_id="u1",
        )

        assert uuid.UUID(entry["id"])
        assert entry["collectionKey"] == "posts"
        assert entry["slug"] == "hello-world"
        assert entry["status"] == "published"
        assert entry["data"] == {"title": "Hello World", "views": 3, "tags": ["news"]}
        assert entry["indexed"] == {"title": "Hello World", "tags": ["news"]}
        assert entry["relations"] == {"contents": [], "media": [], "refs": []}

    @pytest.mark.asyncio
    async def test_default_status_is_draft(self, service):
        entry = await service.create_entry(TENANT_ID, "posts", {"data": {"title": "T"}})
        assert entry["status"] == "draft"

    @pytest.mark.asyncio
    async def test_slug_collisions_get_suffixes(self, service):
        slugs = [
            (await service.create_entry(TENANT_ID, "posts", {"data": {"title": "Same"}}))["slug"]
            for _ in range(3)
        ]
        assert slugs == ["same", "same-1", "same-2"]

    @pytest.mark.asyncio
    async def test_explicit_slug(self, service):
        entry = await service.create_entry(
            TENANT_ID, "posts", {"slug": "Custom Slug!", "data": {"title": "T"}}
        )
        assert entry["slug"] == "custom-slug"

    @pytest.mark.asyncio
    async def test_validation_errors(self, service):
        with pytest.raises(EntryValidationFailed) as exc_info:
            await service.create_entry(TENANT_ID, "posts", {"data": {"views": "x"}})
        fields = {detail["field"] for detail in exc_info.value.details}
        assert fields == {"title", "views"}

    @pytest.mark.asyncio
    async def test_unknown_collection(self, service):
        with pytest.raises(CollectionTypeNotFound):
            await service.create_entry(TENANT_ID, "nope", {"data": {}})

    @pytest.mark.asyncio
    async def test_unique_field(self, service):
        await service.create_entry(TENANT_ID, "posts", {"data": {"title": "A", "code": "X1"}})
        with pytest.raises(UniqueFieldViolation) as exc_info:
            await service.create_entry(TENANT_ID, "posts", {"data": {"title": "B", "code": "X1"}})
        assert exc_info.value.field == "code"

    @pytest.mark.asyncio
    async def test_unique_claim_rejects_concurrent_writer(
        self, db_session, service, monkeypatch
    ):
        await service.create_entry(TENANT_ID, "posts", {"data": {"title": "A", "code": "X1"}})

        async def never_taken(*args, **kwargs):
            return False

        # Simulate a writer that passed the pre-check before the first one committed
        monkeypatch.setattr(CollectionEntryRepository, "unique_value_taken", never_taken)

        with pytest.raises(UniqueFieldViolation):
            await service.create_entry(TENANT_ID, "posts", {"data": {"title": "B", "code": "X1"}})

        assert await CollectionEntryRepository(db_session).count(TENANT_ID, "posts") == 1

    @pytest.mark.asyncio
    async def test_records_event(self, db_session, service):
        entry = await service.create_entry(TENANT_ID, "posts", {"data": {"title": "A"}}, user_id="u1")

        events = await DomainEventRepository(db_session).list_by_tenant(
            TENANT_ID, event_type="collection.entry.created"
        )
        assert len(events) == 1
        assert events[0].payload["entryId"] == entry["id"]
        assert events[0].payload["entry"]["slug"] == "a"


class TestReadEntry:
    @pytest.mark.asyncio
    async def test_get(self, service):
        created = await service.create_entry(TENANT_ID, "posts", {"data": {"title": "A"}})
        fetched = await service.get_entry(TENANT_ID, "posts", created["id"].upper())
        assert fetched == created

    @pytest.mark.asyncio
    async def test_get_invalid_id(self, service):
        with pytest.raises(InvalidEntryId):
            await service.get_entry(TENANT_ID, "posts", "nope")

    @pytest.mark.asyncio
    async def test_get_is_tenant_scoped(self, service):
        created = await service.create_entry(TENANT_ID, "posts", {"data": {"title": "A"}})
        with pytest.raises(EntryNotFound):
            await service.get_entry("tenant-b", "posts", created["id"])

    @pytest.mark.asyncio
    async def test_find_by_slug_defaults_to_published(self, service):
        await service.create_entry(TENANT_ID, "posts", {"data": {"title": "Draft"}})
        await service.create_entry(
            TENANT_ID, "posts", {"data": {"title": "Live"}, "status": "published"}
        )

        assert await service.find_entry_by_slug(TENANT_ID, "posts", "draft") is None
        assert (await service.find_entry_by_slug(TENANT_ID, "posts", "live"))["slug"] == "live"
        assert (await service.find_entry_by_slug(TENANT_ID, "posts", "draft", status=None))[
            "status"
        ] == "draft"
        assert await service.find_entry_by_slug(TENANT_ID, "posts", "") is None


class TestUpdateEntry:
    @pytest.mark.asyncio
    async def test_data_is_merged(self, service):
        created = await service.create_entry(
            TENANT_ID, "posts", {"data": {"title": "A", "views": 1, "extra": "keep"}}
        )
        updated = await service.update_entry(
            TENANT_ID, "posts", created["id"], {"data": {"views": "2"}}
        )
        assert updated["data"] == {"title": "A", "views": 2, "extra": "keep"}
        assert updated["slug"] == "a"
        assert updated["status"] == "draft"

    @pytest.mark.asyncio
    async def test_snapshot_is_rebuilt(self, service):
        created = await service.create_entry(TENANT_ID, "posts", {"data": {"title": "A"}})
        updated = await service.update_entry(
            TENANT_ID, "posts", created["id"], {"data": {"title": "B", "tags": ["tech"]}}
        )
        assert updated["indexed"] == {"title": "B", "tags": ["tech"]}
        assert updated["slug"] == "b"

    @pytest.mark.asyncio
    async def test_relations_replaced_per_category(self, service):
        media_id, content_id = str(uuid.uuid4()), str(uuid.uuid4())
        created = await service.create_entry(
            TENANT_ID,
            "posts",
            {"data": {"title": "A"}, "relations": {"media": [media_id], "contents": [content_id]}},
        )
        updated = await service.update_entry(
            TENANT_ID, "posts", created["id"], {"relations": {"media": []}}
        )
        assert updated["relations"]["media"] == []
        assert updated["relations"]["contents"] == [content_id]

    @pytest.mark.asyncio
    async def test_unique_value_may_be_kept(self, service):
        created = await service.create_entry(TENANT_ID, "posts", {"data": {"title": "A", "code": "C"}})
        updated = await service.update_entry(
            TENANT_ID, "posts", created["id"], {"data": {"title": "A2"}}
        )
        assert updated["data"]["code"] == "C"

    @pytest.mark.asyncio
    async def test_unique_value_freed_by_update(self, service):
        first = await service.create_entry(TENANT_ID, "posts", {"data": {"title": "A", "code": "C"}})
        await service.update_entry(TENANT_ID, "posts", first["id"], {"data": {"code": "D"}})
        second = await service.create_entry(TENANT_ID, "posts", {"data": {"title": "B", "code": "C"}})
        assert second["data"]["code"] == "C"

    @pytest.mark.asyncio
    async def test_unique_conflict_on_update(self, service):
        await service.create_entry(TENANT_ID, "posts", {"data": {"title": "A", "code": "C"}})
        other = await service.create_entry(TENANT_ID, "posts", {"data": {"title": "B"}})
        with pytest.raises(UniqueFieldViolation):
            await service.update_entry(TENANT_ID, "posts", other["id"], {"data": {"code": "C"}})

    @pytest.mark.asyncio
    async def test_missing_entry(self, service):
        with pytest.raises(EntryNotFound):
            await service.update_entry(TENANT_ID, "posts", str(uuid.uuid4()), {"data": {}})


class TestUniqueFlagAddedLater:
    """Entries stored before a field became unique hold no claims."""

    @pytest_asyncio.fixture
    async def products(self, db_session, settings):
        types = CollectionTypeService(db_session, settings=settings)
        await types.create_collection_type(
            TENANT_ID,
            {
                "key": "products",
                "name": {"en": "Products"},
                "fields": [
                    {"key": "sku", "label": {"en": "SKU"}, "type": "string"},
                    {"key": "weight", "label": {"en": "Weight"}, "type": "number"},
                    {
                        "key": "sizes",
                        "label": {"en": "Sizes"},
                        "type": "enum",
                        "options": [{"value": "s"}, {"value": "m"}],
                        "settings": {"multiple": True},
                    },
                ],
            },
        )
        return types

    async def _flag_unique(self, types, *keys):
        collection = await types.get_collection_type(TENANT_ID, "products")
        fields = [
            {**field, "unique": field["key"] in keys} for field in collection["fields"]
        ]
        await types.update_collection_type(TENANT_ID, "products", {"fields": fields})

    @pytest.mark.asyncio
    async def test_duplicate_of_existing_entry_is_rejected(self, db_session, settings, products):
        entries = CollectionEntryService(db_session, settings=settings)
        await entries.create_entry(TENANT_ID, "products", {"data": {"sku": "A1", "weight": 2}})

        await self._flag_unique(products, "sku", "weight")

        with pytest.raises(UniqueFieldViolation) as exc_info:
            await entries.create_entry(TENANT_ID, "products", {"data": {"sku": "A1"}})
        assert exc_info.value.field == "sku"

        with pytest.raises(UniqueFieldViolation) as exc_info:
            await entries.create_entry(TENANT_ID, "products", {"data": {"sku": "B1", "weight": "2"}})
        assert exc_info.value.field == "weight"

        assert await CollectionEntryRepository(db_session).count(TENANT_ID, "products") == 1

    @pytest.mark.asyncio
    async def test_multi_valued_duplicate_is_rejected(self, db_session, settings, products):
        entries = CollectionEntryService(db_session, settings=settings)
        await entries.create_entry(TENANT_ID, "products", {"data": {"sizes": ["s", "m"]}})

        await self._flag_unique(products, "sizes")

        with pytest.raises(UniqueFieldViolation):
            await entries.create_entry(TENANT_ID, "products", {"data": {"sizes": ["s", "m"]}})
        created = await entries.create_entry(TENANT_ID, "products", {"data": {"sizes": ["s"]}})
        assert created["data"]["sizes"] == ["s"]

    @pytest.mark.asyncio
    async def test_entry_may_keep_its_own_value(self, db_session, settings, products):
        entries = CollectionEntryService(db_session, settings=settings)
        created = await entries.create_entry(TENANT_ID, "products", {"data": {"sku": "A1"}})

        await self._flag_unique(products, "sku")

        updated = await entries.update_entry(
            TENANT_ID, "products", created["id"], {"data": {"weight": 3}}
        )
        assert updated["data"] == {"sku": "A1", "weight": 3}


class TestDeleteEntry:
    @pytest.mark.asyncio
    async def test_delete(self, db_session, service):
        created = await service.create_entry(TENANT_ID, "posts", {"data": {"title": "A", "code": "C"}})
        await service.delete_entry(TENANT_ID, "posts", created["id"], user_id="u1")

        with pytest.raises(EntryNotFound):
            await service.get_entry(TENANT_ID, "posts", created["id"])

        # The unique value is free again
        await service.create_entry(TENANT_ID, "posts", {"data": {"title": "B", "code": "C"}})

        events = await DomainEventRepository(db_session).list_by_tenant(
            TENANT_ID, event_type="collection.entry.deleted"
        )
        assert events[0].payload == {"collectionKey": "posts", "entryId": created["id"]}

    @pytest.mark.asyncio
    async def test_delete_missing(self, service):
        with pytest.raises(EntryNotFound):
            await service.delete_entry(TENANT_ID, "posts", str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_delete_invalid_id(self, service):
        with pytest.raises(InvalidEntryId):
            await service.delete_entry(TENANT_ID, "posts", "x")


class TestListEntries:
    @pytest_asyncio.fixture
    async def seeded(self, service):
        await service.create_entry(
            TENANT_ID,
            "posts",
            {
                "data": {"title": "Alpha news", "views": 10, "tags": ["news"], "featured": True},
                "status": "published",
            },
        )
        await service.create_entry(
            TENANT_ID,
            "posts",
            {"data": {"title": "Beta", "views": 30, "tags": ["tech"], "body": "some NEWS here"}},
        )
        await service.create_entry(
            TENANT_ID,
            "posts",
            {
                "data": {"title": "Gamma", "views": 20, "tags": ["news", "tech"]},
                "status": "published",
            },
        )
        return service

    @pytest.mark.asyncio
    async def test_defaults(self, seeded):
        result = await seeded.list_entries(TENANT_ID, "posts")
        assert result["pagination"] == {"page": 1, "limit": 20, "total": 3, "pages": 1}
        assert [item["data"]["title"] for item in result["items"]] == ["Gamma", "Beta", "Alpha news"]

    @pytest.mark.asyncio
    async def test_status_filter(self, seeded):
        result = await seeded.list_entries(TENANT_ID, "posts", {"status": "published"})
        assert result["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_search(self, seeded):
        result = await seeded.list_entries(TENANT_ID, "posts", {"q": "news", "sort": "title"})
        assert [item["data"]["title"] for item in result["items"]] == ["Alpha news", "Beta"]

    @pytest.mark.asyncio
    async def test_field_filters(self, seeded):
        result = await seeded.list_entries(
            TENANT_ID, "posts", {"filter": {"tags": "news", "unknown": "x", "views": ""}}
        )
        assert result["pagination"]["total"] == 2

        result = await seeded.list_entries(TENANT_ID, "posts", {"filter": {"featured": "true"}})
        assert [item["data"]["title"] for item in result["items"]] == ["Alpha news"]

    @pytest.mark.asyncio
    async def test_invalid_filter_value(self, seeded):
        with pytest.raises(InvalidQueryValue):
            await seeded.list_entries(TENANT_ID, "posts", {"filter": {"views": "many"}})

    @pytest.mark.asyncio
    async def test_sort_and_pagination(self, seeded):
        result = await seeded.list_entries(
            TENANT_ID, "posts", {"sort": "-views", "limit": 2, "page": 2}
        )
        assert result["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
        assert [item["data"]["views"] for item in result["items"]] == [10]

    @pytest.mark.asyncio
    async def test_sort_with_direction_suffix(self, seeded):
        result = await seeded.list_entries(TENANT_ID, "posts", {"sort": "views:asc"})
        assert [item["data"]["views"] for item in result["items"]] == [10, 20, 30]

    @pytest.mark.asyncio
    async def test_empty_collection(self, service):
        result = await service.list_entries(TENANT_ID, "posts")
        assert result["items"] == []
        assert result["pagination"]["pages"] == 0

    @pytest.mark.asyncio
    async def test_tenant_isolation(self, seeded):
        with pytest.raises(CollectionTypeNotFound):
            await seeded.list_entries("tenant-b", "posts")
