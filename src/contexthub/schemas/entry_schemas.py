"""Pydantic schemas for collection entry payloads."""

from typing import Any, Literal

from pydantic import BaseModel, Field

EntryStatus = Literal["draft", "published", "archived"]


class RelationRefSchema(BaseModel):
    collection_key: str = Field(..., min_length=1, alias="collectionKey")
    entry_id: str = Field(..., min_length=1, alias="entryId")
    relation_type: str | None = Field(default=None, alias="relationType")

    model_config = {"populate_by_name": True}


class EntryRelationsSchema(BaseModel):
    """Relation identifier lists.

    A category left out of the payload is not in ``model_fields_set``; on
    update such categories keep their stored value.
    """

    contents: list[str] | None = None
    media: list[str] | None = None
    refs: list[RelationRefSchema] | None = None


class EntryPayload(BaseModel):
    """Payload for creating or updating an entry."""

    slug: str | None = Field(default=None, max_length=150)
    status: EntryStatus | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    relations: EntryRelationsSchema | None = None


class EntryListQuery(BaseModel):
    """Listing parameters; numeric values may arrive as strings."""

    page: int = Field(default=1, ge=1)
    limit: int | None = Field(default=None, ge=1, le=200)
    status: EntryStatus | None = None
    sort: str | None = None
    q: str | None = None
    filter: dict[str, str | int | float | bool | None] | None = None
