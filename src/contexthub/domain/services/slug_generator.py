"""Slug generator service.

Generates URL-friendly slugs for collection entries and makes them unique
within a tenant's collection by appending a numeric suffix.
"""

import re
import unicodedata
from typing import Any

from contexthub.domain.entities import CollectionType
from contexthub.infrastructure.persistence.repositories import CollectionEntryRepository

# Turkish letters that NFD decomposition does not reduce to ASCII.
TRANSLITERATION_MAP = str.maketrans(
    {
        "ç": "c", "Ç": "c",
        "ğ": "g", "Ğ": "g",
        "ı": "i", "I": "i", "İ": "i",
        "ö": "o", "Ö": "o",
        "ş": "s", "Ş": "s",
        "ü": "u", "Ü": "u",
        "â": "a", "Â": "a",
    }
)


class SlugGenerator:
    """Generate URL-friendly slugs.

    Slug rules:
    - Lowercase ASCII letters, digits and hyphens only
    - Whitespace and underscores become hyphens
    - No leading, trailing or repeated hyphens
    """

    INVALID_CHARS_PATTERN = re.compile(r"[^a-z0-9-]")
    SEPARATOR_PATTERN = re.compile(r"[\s_]+")
    REPEATED_HYPHENS_PATTERN = re.compile(r"-{2,}")

    @classmethod
    def generate(cls, text: str) -> str:
        """Generate a slug from text.

        Args:
            text: The text to convert to a slug.

        Returns:
            URL-friendly slug, possibly empty.

        Examples:
            >>> SlugGenerator.generate("Hello World")
            'hello-world'
            >>> SlugGenerator.generate("Çalışma Saatleri")
            'calisma-saatleri'
            >>> SlugGenerator.generate("  snake_case  & more ")
            'snake-case-more'
        """
        slug = text.translate(TRANSLITERATION_MAP)

        # Drop combining marks left by decomposition
        slug = unicodedata.normalize("NFD", slug)
        slug = "".join(char for char in slug if not unicodedata.combining(char))

        slug = slug.lower().strip()
        slug = cls.SEPARATOR_PATTERN.sub("-", slug)
        slug = cls.INVALID_CHARS_PATTERN.sub("", slug)
        slug = cls.REPEATED_HYPHENS_PATTERN.sub("-", slug)
        return slug.strip("-")


class SlugResolver:
    """Resolves the unique slug of an entry within its collection."""

    def __init__(self, repository: CollectionEntryRepository, max_length: int = 150) -> None:
        self.repository = repository
        self.max_length = max_length

    @staticmethod
    def base_candidate(
        collection: CollectionType,
        requested: str | None,
        data: dict[str, Any],
    ) -> str | None:
        """Derive the base slug from an explicit request or the slug field."""
        if requested:
            slug = SlugGenerator.generate(requested)
            if slug:
                return slug

        slug_field = collection.slug_field
        if slug_field:
            value = data.get(slug_field)
            if value is not None and value != "":
                return SlugGenerator.generate(str(value)) or None
        return None

    async def unique_slug(
        self,
        tenant_id: str,
        collection_key: str,
        base_slug: str,
        exclude_id: str | None = None,
    ) -> str:
        """Append -1, -2, ... to the base slug until no other entry uses it.

        The base is shortened as needed so a suffixed slug stays within
        ``max_length``.
        """
        candidate = base_slug
        counter = 1
        while await self.repository.slug_exists(
            tenant_id, collection_key, candidate, exclude_id=exclude_id
        ):
            suffix = f"-{counter}"
            stem = base_slug[: self.max_length - len(suffix)].rstrip("-")
            candidate = f"{stem}{suffix}"
            counter += 1
        return candidate

    async def resolve(
        self,
        collection: CollectionType,
        tenant_id: str,
        requested: str | None,
        data: dict[str, Any],
        exclude_id: str | None = None,
    ) -> str | None:
        """Resolve the slug for a write, or None when no candidate exists."""
        base_slug = self.base_candidate(collection, requested, data)
        if not base_slug:
            return None
        base_slug = base_slug[: self.max_length].rstrip("-")
        return await self.unique_slug(tenant_id, collection.key, base_slug, exclude_id=exclude_id)
