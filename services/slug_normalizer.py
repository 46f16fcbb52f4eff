"""Slug and collection normalization shared by every slug write and lookup."""

from slugify import slugify as transliterate_slug

import config


def slugify(value: str) -> str:
    """Lowercase ASCII slug: transliterate, hyphenate non-alphanumeric runs, strip edge hyphens."""
    # Length is applied by normalize_slug so the cut stays an exact character truncation
    return transliterate_slug(value, lowercase=True, separator="-")


def normalize_slug(value: str | None, max_length: int | None = None) -> str | None:
    """
    Normalize raw slug input: trim, slugify, truncate.

    Args:
        value: Raw slug input
        max_length: Truncation length (default: settings.SLUG_MAX_LENGTH)

    Returns:
        Normalized slug, or None when nothing usable remains
    """
    if value is None:
        return None

    limit = max_length if max_length is not None else config.settings.SLUG_MAX_LENGTH
    slug = slugify(str(value).strip())[:limit]

    return slug or None


def normalize_collection(value: str | None) -> str | None:
    """Trim a collection name; empty means no collection."""
    if value is None:
        return None

    collection = str(value).strip()
    return collection or None


def normalize_pair(slug: str | None, collection: str | None) -> tuple[str | None, str | None]:
    return normalize_slug(slug), normalize_collection(collection)
