"""
Shared validation functions for Pydantic schemas.

Used by the bookmark, category, team and profile schemas.
"""
from pydantic import HttpUrl, TypeAdapter

from core.config import get_settings

_http_url = TypeAdapter(HttpUrl)


def validate_absolute_url(url: str) -> str:
    """
    Validate that a URL parses as an absolute http(s) URL.

    Returns the URL as given (trimmed) rather than pydantic's normalized form, so
    the stored value matches what the user typed.

    Raises:
        ValueError: If the URL is not an absolute http(s) URL.
    """
    trimmed = url.strip()
    try:
        _http_url.validate_python(trimmed)
    except ValueError as e:
        raise ValueError(f"Invalid URL: '{trimmed}'") from e
    return trimmed


def validate_required_text(value: str, field_name: str) -> str:
    """Trim a required text field and reject blank values."""
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"{field_name} cannot be empty")
    return trimmed


def validate_title_length(title: str | None) -> str | None:
    """Validate that title doesn't exceed maximum length."""
    settings = get_settings()
    if title is not None and len(title) > settings.max_title_length:
        raise ValueError(
            f"Title exceeds maximum length of {settings.max_title_length:,} characters "
            f"(got {len(title):,} characters).",
        )
    return title


def validate_description_length(description: str | None) -> str | None:
    """Validate that description doesn't exceed maximum length."""
    settings = get_settings()
    if description is not None and len(description) > settings.max_description_length:
        max_len = settings.max_description_length
        raise ValueError(
            f"Description exceeds maximum length of {max_len:,} characters "
            f"(got {len(description):,} characters).",
        )
    return description


def normalize_tags(tags: list[str]) -> list[str]:
    """
    Normalize a list of tags.

    Args:
        tags: List of tag strings as entered.

    Returns:
        Trimmed tags with empty strings filtered out and duplicates removed
        (preserving first occurrence order).

    Raises:
        ValueError: If any tag exceeds the maximum tag length.
    """
    max_length = get_settings().max_tag_length
    normalized = []
    seen: set[str] = set()
    for tag in tags:
        trimmed = tag.strip()
        if not trimmed:
            continue  # Skip empty tags silently
        if len(trimmed) > max_length:
            raise ValueError(f"Tag '{trimmed[:20]}...' exceeds {max_length} characters")
        if trimmed not in seen:
            seen.add(trimmed)
            normalized.append(trimmed)
    return normalized


def reject_null(value: object, field_name: str) -> object:
    """
    Reject an explicit null for a field that is optional in a patch but never null once stored.

    Raises:
        ValueError: If value is None.
    """
    if value is None:
        raise ValueError(f"{field_name} cannot be null")
    return value
