"""Pydantic schemas for collection type payloads."""

from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, Field, model_validator

from contexthub.domain.entities import FieldDefinition, FieldOption, FieldType

COLLECTION_KEY_PATTERN = r"^[a-zA-Z0-9_-]+$"


def _require_locale(value: dict[str, str]) -> dict[str, str]:
    if not value:
        raise ValueError("At least one locale value is required")
    return value


LocalizedMap = Annotated[dict[str, str], AfterValidator(_require_locale)]


class FieldOptionSchema(BaseModel):
    """A selectable value of an enum field."""

    value: str = Field(..., min_length=1, description="Option value")
    label: LocalizedMap | None = None


class FieldDefinitionSchema(BaseModel):
    """Definition of a single field in a collection type."""

    key: str = Field(..., min_length=1, description="Field key, unique within the collection")
    type: FieldType = Field(..., description="Field type")
    label: LocalizedMap | None = None
    description: LocalizedMap | None = None
    options: list[FieldOptionSchema] | None = None
    ref: str | None = Field(
        default=None,
        min_length=1,
        description="Referenced collection key (required for ref fields)",
    )
    required: bool = False
    unique: bool = False
    indexed: bool = False
    default_value: Any = Field(default=None, alias="defaultValue")
    settings: dict[str, Any] | None = None

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def check_type_requirements(self) -> "FieldDefinitionSchema":
        """Enum fields need options and ref fields need a target collection."""
        if self.type == FieldType.ENUM and not self.options:
            raise ValueError("Enum fields require at least one option")
        if self.type == FieldType.REF and not self.ref:
            raise ValueError("Reference fields must declare target collection key via ref")
        return self

    def to_definition(self) -> FieldDefinition:
        return FieldDefinition(
            key=self.key,
            type=self.type,
            label=self.label,
            description=self.description,
            options=[
                FieldOption(value=option.value, label=option.label)
                for option in self.options or []
            ],
            ref=self.ref,
            required=self.required,
            unique=self.unique,
            indexed=self.indexed,
            settings=dict(self.settings or {}),
            default_value=self.default_value,
        )


class DefaultSortSchema(BaseModel):
    key: str
    dir: Literal["asc", "desc"] = "asc"


class CollectionSettingsSchema(BaseModel):
    """Collection settings. Unknown keys are dropped."""

    slug_field: str | None = Field(default=None, alias="slugField")
    default_sort: DefaultSortSchema | None = Field(default=None, alias="defaultSort")
    enable_versioning: bool | None = Field(default=None, alias="enableVersioning")
    allow_drafts: bool | None = Field(default=None, alias="allowDrafts")
    preview_url_template: str | None = Field(default=None, alias="previewUrlTemplate")

    model_config = {"populate_by_name": True}

    def to_dict(self) -> dict[str, Any]:
        """Stored form: camelCase keys, unset values omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CollectionTypeCreate(BaseModel):
    """Payload for creating a collection type."""

    key: str = Field(
        ...,
        pattern=COLLECTION_KEY_PATTERN,
        max_length=64,
        description="Collection key (alphanumeric, dash and underscore)",
    )
    name: LocalizedMap = Field(..., description="Localized collection name")
    description: LocalizedMap | None = None
    fields: list[FieldDefinitionSchema] = Field(default_factory=list)
    settings: CollectionSettingsSchema | None = None
    status: Literal["active", "archived"] | None = None


class CollectionTypeUpdate(BaseModel):
    """Partial update of a collection type.

    Only supplied attributes change; ``fields`` replaces the field list
    wholesale and ``settings`` is merged over the existing settings.
    """

    name: LocalizedMap | None = None
    description: LocalizedMap | None = None
    fields: list[FieldDefinitionSchema] | None = None
    settings: CollectionSettingsSchema | None = None
    status: Literal["active", "archived"] | None = None
