"""Pydantic schema for collection query requests."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

QueryOperator = Literal["=", "!=", "IN", "NIN", ">", ">=", "<", "<=", "LIKE"]
SortDirection = Literal["asc", "desc"]


class CollectionQuery(BaseModel):
    """A query DSL request.

    Example:
        {
            "collection": "posts",
            "where": [["status", "=", "published"]],
            "orderBy": [["date", "desc"]],
            "select": ["slug", "data.title", "relations.media.url"],
            "limit": 20,
            "page": 1
        }
    """

    collection: str = Field(..., min_length=1)
    select: list[str] | None = None
    where: list[tuple[str, QueryOperator, Any]] | None = None
    order_by: list[tuple[str] | tuple[str, SortDirection]] | None = Field(
        default=None, alias="orderBy"
    )
    limit: int | None = Field(default=None, ge=1)
    offset: int | None = Field(default=None, ge=0)
    page: int | None = Field(default=None, ge=1)

    model_config = {"populate_by_name": True}

    @field_validator("where", mode="before")
    @classmethod
    def normalize_operators(cls, v: Any) -> Any:
        """Accept set and LIKE operators in any case."""
        if not isinstance(v, list):
            return v
        normalized = []
        for clause in v:
            if isinstance(clause, (list, tuple)) and len(clause) == 3 and isinstance(clause[1], str):
                clause = [clause[0], clause[1].upper(), clause[2]]
            normalized.append(clause)
        return normalized

    @field_validator("select")
    @classmethod
    def check_select_paths(cls, v: list[str] | None) -> list[str] | None:
        if v is not None and any(not path.strip() for path in v):
            raise ValueError("Select paths cannot be empty")
        return v
