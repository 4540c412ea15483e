"""
Handle (slug) generation utility
"""
import re
import unicodedata
from typing import Optional
from sqlalchemy.orm import Session
from catalog.config import settings
from catalog.models.category import Category
from catalog.services.exceptions import CategoryValidationError, HandleExhausted


def generate_slug(text: str) -> str:
    """
    Generate a URL-friendly slug from text

    Args:
        text: Text to convert to slug

    Returns:
        URL-friendly slug
    """
    # Convert to lowercase
    text = text.lower().strip()

    # Remove accents/diacritics
    text = unicodedata.normalize('NFKD', text)
    text = text.encode('ascii', 'ignore').decode('ascii')

    # Whitespace runs become hyphens, then drop everything that is not a word char or hyphen
    text = re.sub(r'\s+', '-', text)
    text = re.sub(r'[^\w-]+', '', text)
    text = re.sub(r'-{2,}', '-', text)

    # Remove leading/trailing hyphens
    text = text.strip('-')

    return text


def handle_exists(db: Session, handle: str, exclude_id: Optional[str] = None) -> bool:
    """Check if a live (non-deleted) category already uses the handle"""
    query = db.query(Category.id).filter(
        Category.handle == handle,
        Category.deleted_at.is_(None)
    )
    if exclude_id:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def generate_unique_handle(
    db: Session,
    title: str,
    custom_handle: Optional[str] = None,
    exclude_id: Optional[str] = None,
) -> str:
    """
    Derive a handle that no live category uses yet

    The explicit handle wins over the title. On collision ``-1``, ``-2``, ...
    are appended until a free handle is found.

    Args:
        db: Database session
        title: Human title the handle is derived from
        custom_handle: Caller supplied handle, used verbatim as the base
        exclude_id: Category whose own handle does not count as a collision

    Returns:
        Unique handle

    Raises:
        CategoryValidationError: base handle is empty or too long
        HandleExhausted: every suffix up to HANDLE_MAX_ATTEMPTS is taken
    """
    max_length = settings.HANDLE_MAX_LENGTH
    base_handle = custom_handle or generate_slug(title)

    if len(base_handle) > max_length:
        raise CategoryValidationError(
            f"Handle exceeds maximum length of {max_length} characters",
            field="handle"
        )
    if not base_handle:
        raise CategoryValidationError(
            "Could not derive a handle from the category name",
            field="handle"
        )

    if not handle_exists(db, base_handle, exclude_id):
        return base_handle

    suffix = 1
    while suffix < settings.HANDLE_MAX_ATTEMPTS:
        tail = f"-{suffix}"
        # Ensure we don't exceed max_length
        handle = f"{base_handle[:max_length - len(tail)]}{tail}"
        if not handle_exists(db, handle, exclude_id):
            return handle
        suffix += 1

    raise HandleExhausted(base_handle, settings.HANDLE_MAX_ATTEMPTS)
