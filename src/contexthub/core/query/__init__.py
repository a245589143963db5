"""Collection query DSL: typed IR, planner and SQL compiler."""

from contexthub.core.query.ast import (
    OPERATORS,
    Condition,
    FieldRef,
    FieldSource,
    Projection,
    ProjectionKind,
    QueryPlan,
    SortKey,
    ValueType,
)
from contexthub.core.query.exceptions import InvalidQueryField, InvalidQueryValue, QueryError
from contexthub.core.query.planner import (
    QueryPlanner,
    builtin_ref,
    classify_select,
    coerce_value,
    field_ref,
    parse_sort,
    resolve_sort_field,
    resolve_where_field,
)
from contexthub.core.query.sql_compiler import SQLCompiler

__all__ = [
    "OPERATORS",
    "Condition",
    "FieldRef",
    "FieldSource",
    "InvalidQueryField",
    "InvalidQueryValue",
    "Projection",
    "ProjectionKind",
    "QueryError",
    "QueryPlan",
    "QueryPlanner",
    "SQLCompiler",
    "SortKey",
    "ValueType",
    "builtin_ref",
    "classify_select",
    "coerce_value",
    "field_ref",
    "parse_sort",
    "resolve_sort_field",
    "resolve_where_field",
]
