"""Tests for payload schemas."""

import pytest

from contexthub.domain.exceptions import InvalidPayload
from contexthub.schemas import (
    CollectionQuery,
    CollectionTypeCreate,
    EntryListQuery,
    EntryPayload,
    parse_payload,
)


class TestCollectionTypeCreate:
    def test_minimal_payload(self):
        request = parse_payload(CollectionTypeCreate, {"key": "posts", "name": {"en": "Posts"}})
        assert request.fields == []
        assert request.settings is None

    @pytest.mark.parametrize("key", ["has space", "", "dot.key", "x" * 65])
    def test_key_pattern(self, key):
        with pytest.raises(InvalidPayload) as exc_info:
            parse_payload(CollectionTypeCreate, {"key": key, "name": {"en": "X"}})
        assert exc_info.value.details[0]["field"] == "key"

    def test_name_needs_a_locale(self):
        with pytest.raises(InvalidPayload):
            parse_payload(CollectionTypeCreate, {"key": "posts", "name": {}})

    def test_enum_needs_options(self):
        with pytest.raises(InvalidPayload):
            parse_payload(
                CollectionTypeCreate,
                {"key": "posts", "name": {"en": "P"}, "fields": [{"key": "k", "type": "enum"}]},
            )

    def test_ref_needs_target(self):
        with pytest.raises(InvalidPayload) as exc_info:
            parse_payload(
                CollectionTypeCreate,
                {"key": "posts", "name": {"en": "P"}, "fields": [{"key": "k", "type": "ref"}]},
            )
        assert "ref" in exc_info.value.details[0]["message"]

    def test_unknown_field_type(self):
        with pytest.raises(InvalidPayload):
            parse_payload(
                CollectionTypeCreate,
                {"key": "posts", "name": {"en": "P"}, "fields": [{"key": "k", "type": "blob"}]},
            )

    def test_settings_use_camel_case(self):
        request = parse_payload(
            CollectionTypeCreate,
            {
                "key": "posts",
                "name": {"en": "P"},
                "settings": {"slugField": "title", "defaultSort": {"key": "title"}, "junk": 1},
            },
        )
        assert request.settings.to_dict() == {
            "slugField": "title",
            "defaultSort": {"key": "title", "dir": "asc"},
        }


class TestEntryPayload:
    def test_defaults(self):
        request = parse_payload(EntryPayload, {})
        assert request.data == {}
        assert request.status is None
        assert request.relations is None

    def test_invalid_status(self):
        with pytest.raises(InvalidPayload):
            parse_payload(EntryPayload, {"status": "deleted"})

    def test_slug_length(self):
        with pytest.raises(InvalidPayload):
            parse_payload(EntryPayload, {"slug": "s" * 151})

    def test_relations_track_supplied_categories(self):
        request = parse_payload(EntryPayload, {"relations": {"media": []}})
        assert request.relations.model_fields_set == {"media"}

    def test_instances_pass_through(self):
        request = EntryPayload(data={"a": 1})
        assert parse_payload(EntryPayload, request) is request


class TestEntryListQuery:
    def test_string_numbers(self):
        params = parse_payload(EntryListQuery, {"page": "2", "limit": "5"})
        assert params.page == 2
        assert params.limit == 5

    def test_limit_bounds(self):
        with pytest.raises(InvalidPayload):
            parse_payload(EntryListQuery, {"limit": 0})
        with pytest.raises(InvalidPayload):
            parse_payload(EntryListQuery, {"page": 0})


class TestCollectionQuery:
    def test_full_request(self):
        request = parse_payload(
            CollectionQuery,
            {
                "collection": "posts",
                "where": [["tags", "in", ["news"]]],
                "orderBy": [["title", "desc"], ["views"]],
                "select": ["title"],
                "page": 2,
            },
        )
        assert request.where == [("tags", "IN", ["news"])]
        assert request.order_by == [("title", "desc"), ("views",)]

    def test_invalid_operator(self):
        with pytest.raises(InvalidPayload):
            parse_payload(CollectionQuery, {"collection": "posts", "where": [["a", "~", 1]]})

    def test_invalid_direction(self):
        with pytest.raises(InvalidPayload):
            parse_payload(CollectionQuery, {"collection": "posts", "orderBy": [["a", "up"]]})

    def test_empty_select_path(self):
        with pytest.raises(InvalidPayload):
            parse_payload(CollectionQuery, {"collection": "posts", "select": [" "]})

    def test_collection_required(self):
        with pytest.raises(InvalidPayload):
            parse_payload(CollectionQuery, {})

    def test_relations_are_chosen_by_select(self):
        request = parse_payload(
            CollectionQuery,
            {"collection": "posts", "select": ["relations.media"], "includeRelations": ["media"]},
        )
        assert request.select == ["relations.media"]
        assert "include_relations" not in CollectionQuery.model_fields
