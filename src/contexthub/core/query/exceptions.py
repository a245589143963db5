"""Exceptions for query planning and compilation."""

from typing import Any

from contexthub.domain.exceptions import DomainError


class QueryError(DomainError):
    """Base class for all query DSL errors.

    Query errors are raised while planning, before the store is touched, so
    a failing clause aborts the whole query without partial results.
    """

    code = "QueryFailed"


class InvalidQueryField(QueryError):
    """Raised when a where/select path does not name an allowed field."""

    code = "InvalidQueryField"

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(
            message or f"Field '{field}' is not allowed in this query",
            details={"field": field},
        )


class InvalidQueryValue(QueryError):
    """Raised when a comparison value cannot be coerced to the field type."""

    code = "InvalidQueryValue"

    def __init__(self, field: str, message: str | None = None, value: Any = None) -> None:
        self.field = field
        self.value = value
        super().__init__(
            message or f"Invalid value for field '{field}'",
            details={"field": field},
        )
