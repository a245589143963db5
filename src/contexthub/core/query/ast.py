"""Intermediate representation of a collection query.

The planner turns a raw query request into these nodes after validating it
against the collection schema; the SQL compiler turns them into SQLAlchemy
expressions. Nothing here knows about the store.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from contexthub.domain.entities import IDENTIFIER_FIELD_TYPES, FieldDefinition

OPERATORS = ("=", "!=", "IN", "NIN", ">", ">=", "<", "<=", "LIKE")
SET_OPERATORS = ("IN", "NIN")


class FieldSource(str, Enum):
    """Where a field lives on a stored entry."""

    COLUMN = "column"
    DATA = "data"
    INDEXED = "indexed"


class ValueType(str, Enum):
    """Comparison type of a field."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    IDENTIFIER = "identifier"
    JSON = "json"


@dataclass(frozen=True)
class FieldRef:
    """A resolved reference to a filterable/sortable field.

    Attributes:
        path: The path as written by the caller.
        source: Column, data document or indexed snapshot.
        name: Column attribute name or JSON key.
        value_type: How values are coerced and compared.
        multiple: Whether the stored value is an array of members.
    """

    path: str
    source: FieldSource
    name: str
    value_type: ValueType
    multiple: bool = False


@dataclass
class Condition:
    """A single where clause with its value already coerced."""

    field: FieldRef
    operator: str
    value: Any


@dataclass
class SortKey:
    field: FieldRef
    descending: bool = False


class ProjectionKind(str, Enum):
    BUILTIN = "builtin"
    INDEXED = "indexed"
    RELATION = "relation"
    DATA = "data"
    FIELD = "field"


@dataclass
class Projection:
    """A classified select path.

    ``head`` is the builtin name, relation category or field key and
    ``segments`` the remaining path below it. ``definition`` is set for
    declared-field projections.
    """

    path: str
    kind: ProjectionKind
    head: str
    segments: tuple[str, ...] = ()
    definition: FieldDefinition | None = None

    @property
    def dereferences(self) -> bool:
        """Whether resolving this projection needs a relation lookup."""
        return bool(self.segments) and (
            (self.kind == ProjectionKind.RELATION and self.head in ("media", "contents"))
            or (
                self.kind == ProjectionKind.FIELD
                and self.definition is not None
                and self.definition.type in IDENTIFIER_FIELD_TYPES
            )
        )


@dataclass
class QueryPlan:
    """A validated query ready for compilation and execution."""

    collection_key: str
    conditions: list[Condition] = field(default_factory=list)
    sort_keys: list[SortKey] = field(default_factory=list)
    projections: list[Projection] | None = None
    limit: int = 50
    offset: int = 0
    page: int | None = None

    @property
    def current_page(self) -> int:
        """The requested page, or the page the offset falls on."""
        if self.page:
            return self.page
        return self.offset // self.limit + 1
