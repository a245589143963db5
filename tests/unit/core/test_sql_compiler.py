"""Tests for compiling query IR into SQL expressions."""

import pytest
from sqlalchemy.dialects import postgresql, sqlite

from contexthub.core.query import Condition, QueryError, SQLCompiler, SortKey, resolve_where_field


def render(expr, dialect=None) -> str:
    return str(expr.compile(dialect=dialect or sqlite.dialect()))


@pytest.fixture
def compiler():
    return SQLCompiler("sqlite")


def test_builtin_fields_use_columns(compiler, posts_collection):
    ref = resolve_where_field(posts_collection, "status")
    sql = render(compiler.condition(Condition(ref, "=", "published")))
    assert "collection_entries.status = " in sql


def test_data_fields_use_json_accessors(compiler, posts_collection):
    ref = resolve_where_field(posts_collection, "views")
    sql = render(compiler.condition(Condition(ref, ">", 10)))
    assert "JSON_EXTRACT(collection_entries.data" in sql


def test_not_equal_also_matches_missing_values(compiler, posts_collection):
    ref = resolve_where_field(posts_collection, "title")
    sql = render(compiler.condition(Condition(ref, "!=", "x")))
    assert "IS NULL" in sql
    assert " OR " in sql


def test_null_comparisons(compiler, posts_collection):
    ref = resolve_where_field(posts_collection, "views")
    assert "IS NULL" in render(compiler.condition(Condition(ref, "=", None)))
    assert "IS NOT NULL" in render(compiler.condition(Condition(ref, "!=", None)))


def test_multi_valued_fields_compare_members(compiler, posts_collection):
    ref = resolve_where_field(posts_collection, "tags")
    sql = render(compiler.condition(Condition(ref, "IN", ["news"])))
    assert "EXISTS" in sql
    assert "json_each(collection_entries.data" in sql


def test_postgresql_members(posts_collection):
    ref = resolve_where_field(posts_collection, "indexed.tags")
    sql = render(
        SQLCompiler("postgresql").condition(Condition(ref, "=", "news")),
        postgresql.dialect(),
    )
    assert "json_array_elements_text" in sql


def test_like_is_case_insensitive(compiler, posts_collection):
    ref = resolve_where_field(posts_collection, "title")
    sql = render(compiler.condition(Condition(ref, "LIKE", "he")))
    assert "lower(" in sql
    assert "LIKE" in sql


def test_json_fields_reject_value_comparisons(compiler, posts_collection):
    ref = resolve_where_field(posts_collection, "location")
    with pytest.raises(QueryError):
        compiler.condition(Condition(ref, "=", {"type": "Point"}))


def test_order_by_appends_id_tiebreaker(compiler, posts_collection):
    ref = resolve_where_field(posts_collection, "views")
    clauses = compiler.order_by([SortKey(ref, descending=True)])
    assert len(clauses) == 2
    assert render(clauses[-1]) == "collection_entries.id ASC"
    assert render(clauses[0]).endswith("DESC")


def test_search_covers_title_and_text_fields(compiler, posts_collection):
    sql = render(compiler.search(posts_collection, "hello"))
    assert "collection_entries.indexed" in sql
    assert sql.count("LIKE") == 4
