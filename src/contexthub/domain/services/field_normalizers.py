"""Per-type field normalizers.

Every field type has one normalizer object. A normalizer turns a raw,
present value into its stored form, or returns None when the value is not
acceptable for the type. Normalizers are looked up from ``NORMALIZERS`` by
``FieldType``; the set of types is closed.
"""

from typing import Any

from contexthub.core.coercion import canonical_uuid, parse_boolean, parse_number
from contexthub.core.timeutils import format_datetime, parse_datetime
from contexthub.domain.entities import FieldDefinition, FieldType


class FieldNormalizer:
    """Base class for field normalizers."""

    def normalize(self, definition: FieldDefinition, value: Any) -> Any:
        """Return the normalized value, or None if the value is invalid."""
        raise NotImplementedError


class TextNormalizer(FieldNormalizer):
    """string/text: any non-null value is stringified."""

    def normalize(self, definition: FieldDefinition, value: Any) -> Any:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


class NumberNormalizer(FieldNormalizer):
    def normalize(self, definition: FieldDefinition, value: Any) -> Any:
        return parse_number(value)


class BooleanNormalizer(FieldNormalizer):
    def normalize(self, definition: FieldDefinition, value: Any) -> Any:
        return parse_boolean(value)


class DateNormalizer(FieldNormalizer):
    """date/datetime: stored as UTC ISO-8601 strings with millisecond precision."""

    def normalize(self, definition: FieldDefinition, value: Any) -> Any:
        parsed = parse_datetime(value)
        if parsed is None:
            return None
        return format_datetime(parsed)


class EnumNormalizer(FieldNormalizer):
    """enum: values must be among the declared options.

    Multi-valued fields keep the valid members of a list and drop the rest;
    single-valued fields take the first valid member of a list. Fields
    without options accept any value.
    """

    def normalize(self, definition: FieldDefinition, value: Any) -> Any:
        allowed = definition.option_values
        if allowed:
            if isinstance(value, list):
                value = [item for item in value if item in allowed]
            elif value not in allowed:
                return None

        if definition.multiple:
            return value if isinstance(value, list) else [value]
        if isinstance(value, list):
            return value[0] if value else None
        return value


class IdentifierNormalizer(FieldNormalizer):
    """ref/media: UUID identifiers, one or many depending on multiplicity."""

    def normalize(self, definition: FieldDefinition, value: Any) -> Any:
        if definition.multiple:
            items = value if isinstance(value, list) else [value]
            return [identifier for identifier in map(canonical_uuid, items) if identifier]

        if isinstance(value, list):
            value = value[0] if value else None
        return canonical_uuid(value)


class GeoJsonNormalizer(FieldNormalizer):
    """geojson: a mapping with a string ``type`` and a ``coordinates`` list."""

    def normalize(self, definition: FieldDefinition, value: Any) -> Any:
        if not isinstance(value, dict):
            return None
        geometry_type = value.get("type")
        coordinates = value.get("coordinates")
        if not isinstance(geometry_type, str) or not geometry_type:
            return None
        if not isinstance(coordinates, list):
            return None
        return {"type": geometry_type, "coordinates": coordinates}


_TEXT = TextNormalizer()
_DATE = DateNormalizer()
_IDENTIFIER = IdentifierNormalizer()

NORMALIZERS: dict[FieldType, FieldNormalizer] = {
    FieldType.STRING: _TEXT,
    FieldType.TEXT: _TEXT,
    FieldType.NUMBER: NumberNormalizer(),
    FieldType.BOOLEAN: BooleanNormalizer(),
    FieldType.DATE: _DATE,
    FieldType.DATETIME: _DATE,
    FieldType.ENUM: EnumNormalizer(),
    FieldType.REF: _IDENTIFIER,
    FieldType.MEDIA: _IDENTIFIER,
    FieldType.GEOJSON: GeoJsonNormalizer(),
}


def normalize_field_value(definition: FieldDefinition, value: Any) -> Any:
    """Normalize a present value for a declared field.

    Returns:
        The normalized value, or None when it is invalid for the field type.
        An empty list counts as invalid.
    """
    normalized = NORMALIZERS[definition.type].normalize(definition, value)
    if isinstance(normalized, list) and not normalized:
        return None
    return normalized
