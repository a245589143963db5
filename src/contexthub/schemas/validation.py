"""Helpers for validating raw payloads against pydantic schemas."""

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from contexthub.domain.exceptions import InvalidPayload

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def validation_details(error: ValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into ``{"field", "message", "code"}`` dicts."""
    return [
        {
            "field": ".".join(str(part) for part in issue["loc"]),
            "message": issue["msg"],
            "code": issue["type"],
        }
        for issue in error.errors()
    ]


def parse_payload(schema: type[SchemaT], payload: Any) -> SchemaT:
    """Validate a payload, passing through already-validated instances.

    Raises:
        InvalidPayload: If the payload does not match the schema.
    """
    if isinstance(payload, schema):
        return payload
    try:
        return schema.model_validate(payload if payload is not None else {})
    except ValidationError as e:
        raise InvalidPayload("Invalid payload", details=validation_details(e)) from e
