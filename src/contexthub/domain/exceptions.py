"""Typed errors raised by the collection services.

Every error carries a stable machine-readable ``code`` so callers can
map it to a transport status without inspecting messages.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all collection engine errors."""

    code = "DomainError"

    def __init__(self, message: str, details: Any = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for the caller."""
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidPayload(DomainError):
    """Raised when a request payload fails structural validation."""

    code = "ValidationFailed"


class DuplicateCollectionKey(DomainError):
    """Raised when a collection key is already used within the tenant."""

    code = "DuplicateCollectionKey"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__("Collection key already exists for this tenant")


class DuplicateFieldKey(DomainError):
    """Raised when two fields of one collection share a key."""

    code = "DuplicateFieldKey"

    def __init__(self, field_key: str) -> None:
        self.field_key = field_key
        super().__init__(f"Field key '{field_key}' must be unique within the collection")


class CollectionTypeNotFound(DomainError):
    code = "CollectionTypeNotFound"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__("Collection type not found")


class EntryValidationFailed(DomainError):
    """Raised when entry data does not conform to its collection schema.

    ``details`` holds one ``{"field", "message", "code"}`` dict per failing field.
    """

    code = "EntryValidationFailed"

    def __init__(self, details: list[dict[str, Any]]) -> None:
        super().__init__("Entry validation failed", details=details)


class UniqueFieldViolation(DomainError):
    code = "UniqueFieldViolation"

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Field '{field}' must be unique", details=[{"field": field}])


class InvalidEntryId(DomainError):
    code = "InvalidEntryId"

    def __init__(self, entry_id: Any) -> None:
        self.entry_id = entry_id
        super().__init__("Invalid entry id")


class EntryNotFound(DomainError):
    code = "EntryNotFound"

    def __init__(self, entry_id: str) -> None:
        self.entry_id = entry_id
        super().__init__("Entry not found")
