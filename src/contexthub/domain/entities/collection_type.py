"""Collection type entity for tenant-defined content schemas.

A collection type describes a named set of typed fields. Entries written to
the collection are normalized against the field list current at write time.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from contexthub.core.timeutils import format_datetime


class FieldType(str, Enum):
    """Supported field types for collection schemas."""

    STRING = "string"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    ENUM = "enum"
    REF = "ref"
    MEDIA = "media"
    GEOJSON = "geojson"


TEXTUAL_FIELD_TYPES = frozenset({FieldType.STRING, FieldType.TEXT})
DATE_FIELD_TYPES = frozenset({FieldType.DATE, FieldType.DATETIME})
IDENTIFIER_FIELD_TYPES = frozenset({FieldType.REF, FieldType.MEDIA})

COLLECTION_STATUSES = ("active", "archived")


@dataclass
class FieldOption:
    """A selectable value of an enum field."""

    value: str
    label: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"value": self.value}
        if self.label:
            data["label"] = dict(self.label)
        return data


@dataclass
class FieldDefinition:
    """Definition of a single field in a collection type.

    Attributes:
        key: Field key, unique within the collection.
        type: One of the supported field types.
        label: Localized display label.
        description: Localized help text.
        options: Allowed values for enum fields.
        ref: Target collection key for ref fields.
        required: Whether a value must be present after normalization.
        unique: Whether the value must be unique within the collection.
        indexed: Whether the value feeds the entry's indexed snapshot.
        settings: Free-form settings; ``multiple`` enables list values.
        default_value: Editor hint, not applied on write.
    """

    key: str
    type: FieldType
    label: dict[str, str] | None = None
    description: dict[str, str] | None = None
    options: list[FieldOption] = field(default_factory=list)
    ref: str | None = None
    required: bool = False
    unique: bool = False
    indexed: bool = False
    settings: dict[str, Any] = field(default_factory=dict)
    default_value: Any = None

    @property
    def multiple(self) -> bool:
        return bool(self.settings.get("multiple"))

    @property
    def option_values(self) -> list[str]:
        return [option.value for option in self.options]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldDefinition":
        """Build a field definition from its stored (camelCase) form."""
        return cls(
            key=data["key"],
            type=FieldType(data["type"]),
            label=data.get("label"),
            description=data.get("description"),
            options=[
                FieldOption(value=option["value"], label=option.get("label"))
                for option in data.get("options") or []
            ],
            ref=data.get("ref"),
            required=bool(data.get("required", False)),
            unique=bool(data.get("unique", False)),
            indexed=bool(data.get("indexed", False)),
            settings=dict(data.get("settings") or {}),
            default_value=data.get("defaultValue"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "key": self.key,
            "type": self.type.value,
            "required": self.required,
            "unique": self.unique,
            "indexed": self.indexed,
        }
        if self.label:
            data["label"] = dict(self.label)
        if self.description:
            data["description"] = dict(self.description)
        if self.options:
            data["options"] = [option.to_dict() for option in self.options]
        if self.ref:
            data["ref"] = self.ref
        if self.settings:
            data["settings"] = dict(self.settings)
        if self.default_value is not None:
            data["defaultValue"] = self.default_value
        return data


@dataclass
class CollectionType:
    """Collection type entity scoped to a tenant.

    Attributes:
        id: Unique identifier (UUID string).
        tenant_id: Owning tenant.
        key: Collection key, unique per tenant.
        name: Localized collection name.
        fields: Ordered field definitions.
        settings: slugField, defaultSort and editor flags.
        status: 'active' or 'archived'.
    """

    id: str
    tenant_id: str
    key: str
    name: dict[str, str]
    description: dict[str, str] | None = None
    fields: list[FieldDefinition] = field(default_factory=list)
    settings: dict[str, Any] = field(default_factory=dict)
    status: str = "active"
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Collection key is required")
        if self.status not in COLLECTION_STATUSES:
            raise ValueError(f"Invalid collection status: {self.status}")

    @property
    def field_map(self) -> dict[str, FieldDefinition]:
        return {definition.key: definition for definition in self.fields}

    def get_field(self, key: str) -> FieldDefinition | None:
        return self.field_map.get(key)

    @property
    def slug_field(self) -> str | None:
        return self.settings.get("slugField") or None

    @property
    def default_sort(self) -> dict[str, str] | None:
        default_sort = self.settings.get("defaultSort")
        if isinstance(default_sort, dict) and default_sort.get("key"):
            return default_sort
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the collection type for callers and event payloads."""
        return {
            "id": self.id,
            "tenantId": self.tenant_id,
            "key": self.key,
            "name": dict(self.name),
            "description": dict(self.description) if self.description else None,
            "fields": [definition.to_dict() for definition in self.fields],
            "settings": dict(self.settings),
            "status": self.status,
            "createdBy": self.created_by,
            "updatedBy": self.updated_by,
            "createdAt": format_datetime(self.created_at) if self.created_at else None,
            "updatedAt": format_datetime(self.updated_at) if self.updated_at else None,
        }
