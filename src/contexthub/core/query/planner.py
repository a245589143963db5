"""Query planner.

Turns a raw collection query into a validated ``QueryPlan``. Field paths are
resolved against the collection schema and comparison values are coerced to
the target field type here, so every error surfaces before the store is
queried.
"""

from typing import Any, Sequence

from contexthub.core.coercion import canonical_uuid, parse_number
from contexthub.core.config import Settings, get_settings
from contexthub.core.query.ast import (
    OPERATORS,
    SET_OPERATORS,
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
from contexthub.core.timeutils import format_datetime, parse_datetime
from contexthub.domain.entities import RELATION_CATEGORIES, CollectionType, FieldDefinition, FieldType

BUILTIN_FIELDS: dict[str, tuple[str, ValueType]] = {
    "id": ("id", ValueType.IDENTIFIER),
    "_id": ("id", ValueType.IDENTIFIER),
    "slug": ("slug", ValueType.STRING),
    "status": ("status", ValueType.STRING),
    "createdAt": ("created_at", ValueType.DATE),
    "updatedAt": ("updated_at", ValueType.DATE),
}

INDEXED_FIELDS: dict[str, tuple[ValueType, bool]] = {
    "title": (ValueType.STRING, False),
    "date": (ValueType.DATE, False),
    "tags": (ValueType.STRING, True),
    "geo": (ValueType.JSON, False),
}

FIELD_VALUE_TYPES: dict[FieldType, ValueType] = {
    FieldType.STRING: ValueType.STRING,
    FieldType.TEXT: ValueType.STRING,
    FieldType.NUMBER: ValueType.NUMBER,
    FieldType.BOOLEAN: ValueType.BOOLEAN,
    FieldType.DATE: ValueType.DATE,
    FieldType.DATETIME: ValueType.DATE,
    FieldType.ENUM: ValueType.STRING,
    FieldType.REF: ValueType.IDENTIFIER,
    FieldType.MEDIA: ValueType.IDENTIFIER,
    FieldType.GEOJSON: ValueType.JSON,
}

SORTABLE_COLUMNS = ("createdAt", "updatedAt", "slug", "status")
SORT_ALIASES = {"title": "indexed.title", "date": "indexed.date"}

# Fields whose stored value is an array when ``settings.multiple`` is set.
MULTI_VALUED_TYPES = frozenset({FieldType.ENUM, FieldType.REF, FieldType.MEDIA})


def builtin_ref(name: str) -> FieldRef:
    column, value_type = BUILTIN_FIELDS[name]
    return FieldRef(path=name, source=FieldSource.COLUMN, name=column, value_type=value_type)


def indexed_ref(key: str, path: str | None = None) -> FieldRef:
    value_type, multiple = INDEXED_FIELDS[key]
    return FieldRef(
        path=path or f"indexed.{key}",
        source=FieldSource.INDEXED,
        name=key,
        value_type=value_type,
        multiple=multiple,
    )


def field_ref(definition: FieldDefinition, path: str | None = None) -> FieldRef:
    """Build a reference to a declared field inside the data document."""
    return FieldRef(
        path=path or definition.key,
        source=FieldSource.DATA,
        name=definition.key,
        value_type=FIELD_VALUE_TYPES[definition.type],
        multiple=definition.multiple and definition.type in MULTI_VALUED_TYPES,
    )


def resolve_where_field(collection: CollectionType, path: Any) -> FieldRef:
    """Resolve a where-clause path to a field reference.

    Raises:
        InvalidQueryField: If the path names no filterable field.
    """
    name = str(path or "").strip()
    if not name:
        raise InvalidQueryField(name, "Where clause field cannot be empty")

    if name in BUILTIN_FIELDS:
        return builtin_ref(name)

    if name.startswith("indexed."):
        key = name[len("indexed."):]
        if key not in INDEXED_FIELDS:
            raise InvalidQueryField(name)
        return indexed_ref(key, name)

    key = name[len("data."):] if name.startswith("data.") else name
    definition = collection.get_field(key)
    if definition is None:
        raise InvalidQueryField(name)
    return field_ref(definition, name)


def resolve_sort_field(collection: CollectionType, key: str | None) -> FieldRef:
    """Resolve a symbolic sort key; unknown keys fall back to createdAt."""
    if key in SORTABLE_COLUMNS:
        return builtin_ref(key)
    if key in SORT_ALIASES:
        return indexed_ref(key, SORT_ALIASES[key])
    if key:
        definition = collection.get_field(key)
        if definition is not None:
            return field_ref(definition)
    return builtin_ref("createdAt")


def parse_sort(collection: CollectionType, sort: str | None) -> SortKey:
    """Parse a listing sort parameter.

    Accepts ``key`` (ascending), ``-key`` (descending) and ``key:dir``.
    Without a parameter the collection's default sort applies, else
    ``createdAt`` descending.
    """
    if not sort:
        default_sort = collection.default_sort
        if default_sort:
            return SortKey(
                field=resolve_sort_field(collection, default_sort["key"]),
                descending=default_sort.get("dir", "asc") != "asc",
            )
        return SortKey(field=builtin_ref("createdAt"), descending=True)

    descending = False
    key = sort
    if sort.startswith("-"):
        descending = True
        key = sort[1:]
    elif ":" in sort:
        key, direction = sort.split(":", 1)
        descending = direction != "asc"

    return SortKey(field=resolve_sort_field(collection, key), descending=descending)


def _coerce_scalar(ref: FieldRef, value: Any) -> Any:
    """Coerce one comparison value, returning None when it cannot be."""
    if ref.value_type == ValueType.NUMBER:
        return parse_number(value)

    if ref.value_type == ValueType.BOOLEAN:
        return value is True or value == "true"

    if ref.value_type == ValueType.DATE:
        parsed = parse_datetime(value)
        if parsed is None:
            return None
        return parsed if ref.source == FieldSource.COLUMN else format_datetime(parsed)

    if ref.value_type == ValueType.IDENTIFIER:
        if isinstance(value, (dict, list)):
            return None
        return canonical_uuid(value) or str(value)

    if ref.value_type == ValueType.JSON:
        return None

    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


def coerce_value(ref: FieldRef, operator: str, value: Any) -> Any:
    """Coerce a comparison value to the type of the target field.

    A list value is only meaningful for IN/NIN; other operators use its first
    element. ``None`` with = or != tests absence or presence.

    Raises:
        InvalidQueryValue: If the value cannot be coerced.
    """
    if operator in SET_OPERATORS:
        items = value if isinstance(value, (list, tuple)) else [value]
        coerced = [_coerce_scalar(ref, item) for item in items if item is not None]
        coerced = [item for item in coerced if item is not None]
        if not coerced:
            raise InvalidQueryValue(
                ref.path,
                f"A valid {ref.value_type.value} list is required for '{ref.path}'",
                value,
            )
        return coerced

    if isinstance(value, (list, tuple)):
        value = value[0] if value else None

    if value is None:
        if operator in ("=", "!="):
            return None
        raise InvalidQueryValue(ref.path, f"Operator {operator} requires a value for '{ref.path}'")

    if operator == "LIKE":
        if not isinstance(value, str):
            raise InvalidQueryValue(ref.path, "LIKE operator requires a string value", value)
        if ref.value_type not in (ValueType.STRING, ValueType.IDENTIFIER):
            raise InvalidQueryValue(ref.path, f"LIKE is not supported on '{ref.path}'", value)
        return value

    coerced = _coerce_scalar(ref, value)
    if coerced is None:
        raise InvalidQueryValue(
            ref.path,
            f"A valid {ref.value_type.value} value is required for '{ref.path}'",
            value,
        )
    return coerced


def classify_select(collection: CollectionType, raw_path: Any) -> Projection:
    """Classify a select path.

    Raises:
        InvalidQueryField: If the path head is not selectable.
    """
    path = str(raw_path or "").strip()
    if not path:
        raise InvalidQueryField(path, "Select path cannot be empty")

    head, *rest = path.split(".")
    segments = tuple(rest)

    if head in BUILTIN_FIELDS:
        return Projection(path=path, kind=ProjectionKind.BUILTIN, head=head, segments=segments)

    if head == "indexed":
        return Projection(path=path, kind=ProjectionKind.INDEXED, head=head, segments=segments)

    if head == "relations":
        category = segments[0] if segments else ""
        if category not in RELATION_CATEGORIES:
            raise InvalidQueryField(path, f"Relation '{category}' is not supported")
        return Projection(path=path, kind=ProjectionKind.RELATION, head=category, segments=segments[1:])

    if head == "data":
        definition = collection.get_field(segments[0]) if segments else None
        if definition is None:
            return Projection(path=path, kind=ProjectionKind.DATA, head=head, segments=segments)
        return Projection(
            path=path,
            kind=ProjectionKind.FIELD,
            head=definition.key,
            segments=segments[1:],
            definition=definition,
        )

    definition = collection.get_field(head)
    if definition is not None:
        return Projection(
            path=path,
            kind=ProjectionKind.FIELD,
            head=head,
            segments=segments,
            definition=definition,
        )

    raise InvalidQueryField(path, f"Field '{path}' cannot be selected")


class QueryPlanner:
    """Validates a collection query against its schema and builds a plan."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def plan(
        self,
        collection: CollectionType,
        *,
        where: Sequence[Sequence[Any]] | None = None,
        order_by: Sequence[Sequence[Any]] | None = None,
        select: Sequence[str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        page: int | None = None,
    ) -> QueryPlan:
        """Build a query plan.

        Raises:
            QueryError: If any clause is invalid.
        """
        where = list(where or [])
        order_by = list(order_by or [])
        select = list(select or [])

        self._check_count("where", where, self.settings.query_max_where)
        self._check_count("orderBy", order_by, self.settings.query_max_order_by)
        self._check_count("select", select, self.settings.query_max_select)

        limit = limit or self.settings.query_default_limit
        if limit < 1 or limit > self.settings.query_max_limit:
            raise QueryError(f"limit must be between 1 and {self.settings.query_max_limit}")

        if offset is None:
            offset = ((page or 1) - 1) * limit

        return QueryPlan(
            collection_key=collection.key,
            conditions=[self._plan_condition(collection, clause) for clause in where],
            sort_keys=self._plan_sort(collection, order_by),
            projections=[classify_select(collection, path) for path in select] or None,
            limit=limit,
            offset=offset,
            page=page,
        )

    @staticmethod
    def _check_count(name: str, items: list[Any], maximum: int) -> None:
        if len(items) > maximum:
            raise QueryError(f"{name} accepts at most {maximum} items")

    @staticmethod
    def _plan_condition(collection: CollectionType, clause: Sequence[Any]) -> Condition:
        if len(clause) != 3:
            raise QueryError("Where clauses must be [field, operator, value] triples")

        path, operator, value = clause
        operator = str(operator).upper()
        if operator not in OPERATORS:
            raise QueryError(f"Unsupported operator: {operator}")

        ref = resolve_where_field(collection, path)
        return Condition(field=ref, operator=operator, value=coerce_value(ref, operator, value))

    @staticmethod
    def _plan_sort(collection: CollectionType, order_by: list[Sequence[Any]]) -> list[SortKey]:
        sort_keys: list[SortKey] = []
        for pair in order_by:
            key = pair[0] if pair else None
            direction = pair[1] if len(pair) > 1 else "asc"
            sort_keys.append(
                SortKey(field=resolve_sort_field(collection, key), descending=direction != "asc")
            )
        if not sort_keys:
            sort_keys.append(SortKey(field=builtin_ref("createdAt"), descending=True))
        return sort_keys
