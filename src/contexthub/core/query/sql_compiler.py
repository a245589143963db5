"""SQL compiler for query plans.

Compiles IR nodes into SQLAlchemy expressions over the collection_entries
table. Declared fields and the indexed snapshot are read through typed JSON
accessors; multi-valued fields are compared member by member through the
dialect's JSON array table function.
"""

from typing import Any, Sequence

from sqlalchemy import ColumnElement, false, func, not_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from contexthub.core.query.ast import Condition, FieldRef, FieldSource, SortKey, ValueType
from contexthub.core.query.exceptions import QueryError
from contexthub.domain.entities import CollectionType, TEXTUAL_FIELD_TYPES
from contexthub.infrastructure.persistence.models import CollectionEntryModel


class SQLCompiler:
    """Compiles query IR into SQLAlchemy WHERE and ORDER BY clauses."""

    def __init__(self, dialect_name: str = "sqlite") -> None:
        self.dialect_name = dialect_name

    @classmethod
    def for_session(cls, session: AsyncSession) -> "SQLCompiler":
        """Build a compiler for the dialect the session is bound to."""
        bind = session.bind
        return cls(bind.dialect.name if bind is not None else "sqlite")

    @staticmethod
    def _document(ref: FieldRef) -> Any:
        if ref.source == FieldSource.INDEXED:
            return CollectionEntryModel.indexed
        return CollectionEntryModel.data

    def column(self, ref: FieldRef) -> ColumnElement[Any]:
        """Return a typed scalar expression for a field."""
        if ref.source == FieldSource.COLUMN:
            return getattr(CollectionEntryModel, ref.name)

        element = self._document(ref)[ref.name]
        if ref.value_type == ValueType.NUMBER:
            return element.as_float()
        if ref.value_type == ValueType.BOOLEAN:
            return element.as_boolean()
        return element.as_string()

    def _members(self, ref: FieldRef) -> Any:
        """Table-valued expression over the members of an array field."""
        document = self._document(ref)
        if self.dialect_name == "postgresql":
            return func.json_array_elements_text(document[ref.name]).table_valued("value")
        return func.json_each(document, f'$."{ref.name}"').table_valued("value")

    def _member_exists(self, ref: FieldRef, predicate: Any) -> ColumnElement[bool]:
        members = self._members(ref)
        return select(members.c.value).where(predicate(members.c.value)).exists()

    def condition(self, condition: Condition) -> ColumnElement[bool]:
        """Compile one where clause."""
        ref = condition.field
        operator = condition.operator
        value = condition.value
        expr = self.column(ref)

        if value is None:
            if operator == "=":
                return expr.is_(None)
            if operator == "!=":
                return expr.is_not(None)
            raise QueryError(f"Operator {operator} cannot compare against null")

        if ref.value_type == ValueType.JSON:
            raise QueryError(f"Field '{ref.path}' only supports null comparisons")

        if ref.multiple:
            return self._membership(ref, operator, value)

        if operator == "=":
            return expr == value
        if operator == "!=":
            return or_(expr.is_(None), expr != value)
        if operator == "IN":
            return expr.in_(value)
        if operator == "NIN":
            return or_(expr.is_(None), expr.not_in(value))
        if operator == ">":
            return expr > value
        if operator == ">=":
            return expr >= value
        if operator == "<":
            return expr < value
        if operator == "<=":
            return expr <= value
        if operator == "LIKE":
            return expr.icontains(value, autoescape=True)

        raise QueryError(f"Unsupported operator: {operator}")

    def _membership(self, ref: FieldRef, operator: str, value: Any) -> ColumnElement[bool]:
        """Compile a comparison that holds when any array member matches."""
        if operator == "=":
            return self._member_exists(ref, lambda member: member == value)
        if operator == "!=":
            return not_(self._member_exists(ref, lambda member: member == value))
        if operator == "IN":
            return self._member_exists(ref, lambda member: member.in_(value))
        if operator == "NIN":
            return not_(self._member_exists(ref, lambda member: member.in_(value)))
        if operator == ">":
            return self._member_exists(ref, lambda member: member > value)
        if operator == ">=":
            return self._member_exists(ref, lambda member: member >= value)
        if operator == "<":
            return self._member_exists(ref, lambda member: member < value)
        if operator == "<=":
            return self._member_exists(ref, lambda member: member <= value)
        if operator == "LIKE":
            return self._member_exists(
                ref, lambda member: member.icontains(value, autoescape=True)
            )

        raise QueryError(f"Unsupported operator: {operator}")

    def conditions(self, conditions: Sequence[Condition]) -> list[ColumnElement[bool]]:
        return [self.condition(condition) for condition in conditions]

    def order_by(self, sort_keys: Sequence[SortKey]) -> list[ColumnElement[Any]]:
        """Compile sort keys, appending the entry id as the final tiebreaker."""
        clauses = []
        for sort_key in sort_keys:
            expr = self.column(sort_key.field)
            clauses.append(expr.desc() if sort_key.descending else expr.asc())
        clauses.append(CollectionEntryModel.id.asc())
        return clauses

    def search(self, collection: CollectionType, text: str) -> ColumnElement[bool]:
        """Case-insensitive substring match on the indexed title or any text field."""
        candidates = [CollectionEntryModel.indexed["title"].as_string()]
        candidates.extend(
            CollectionEntryModel.data[definition.key].as_string()
            for definition in collection.fields
            if definition.type in TEXTUAL_FIELD_TYPES
        )
        return or_(false(), *(expr.icontains(text, autoescape=True) for expr in candidates))
