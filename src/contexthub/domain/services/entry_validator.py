"""Entry data validation against collection schemas.

Validates and normalizes raw entry data field by field. Declared values and
undeclared ("extra") keys are tracked separately so the extras pass through
untouched, then merged for storage.
"""

from dataclasses import dataclass, field
from typing import Any

from contexthub.core.coercion import is_missing
from contexthub.domain.entities import CollectionType
from contexthub.domain.services.field_normalizers import normalize_field_value


@dataclass(frozen=True)
class FieldError:
    """A single entry validation error."""

    field: str
    message: str
    code: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message, "code": self.code}


@dataclass
class ValidationResult:
    """Outcome of validating entry data.

    Attributes:
        known: Normalized values of declared fields.
        extras: Undeclared keys, passed through verbatim.
        errors: One error per failing field.
    """

    known: dict[str, Any] = field(default_factory=dict)
    extras: dict[str, Any] = field(default_factory=dict)
    errors: list[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def data(self) -> dict[str, Any]:
        """Stored data: extras first, declared values on top."""
        return {**self.extras, **self.known}

    def error_details(self) -> list[dict[str, str]]:
        return [error.to_dict() for error in self.errors]


class EntryValidator:
    """Validator for entry data against a collection type.

    Missing values (None or "") of optional fields are skipped. Default
    values are editor hints and are not applied here.
    """

    REQUIRED_MESSAGE = "Field is required"

    @classmethod
    def validate(cls, collection: CollectionType, data: dict[str, Any] | None) -> ValidationResult:
        """Validate and normalize entry data.

        Args:
            collection: The collection type the entry belongs to.
            data: Raw entry data.

        Returns:
            ValidationResult with normalized data and any errors.
        """
        data = data or {}
        result = ValidationResult()

        for definition in collection.fields:
            raw_value = data.get(definition.key)

            if is_missing(raw_value):
                if definition.required:
                    result.errors.append(
                        FieldError(
                            field=definition.key,
                            message=cls.REQUIRED_MESSAGE,
                            code="required",
                        )
                    )
                continue

            normalized = normalize_field_value(definition, raw_value)
            if normalized is None:
                result.errors.append(
                    FieldError(
                        field=definition.key,
                        message=f"Invalid value for type {definition.type.value}",
                        code="invalid_value",
                    )
                )
                continue

            result.known[definition.key] = normalized

        declared = collection.field_map
        for key, value in data.items():
            if key not in declared:
                result.extras[key] = value

        return result
