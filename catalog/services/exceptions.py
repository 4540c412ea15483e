"""
Category domain errors.

Services raise these; the HTTP layer maps each ``code`` to a status.
"""
from typing import Any, List, Optional


class CatalogError(Exception):
    """Base error for the category core."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class CategoryValidationError(CatalogError):
    """Malformed input."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[List[Any]] = None):
        super().__init__(message=message, code="VALIDATION_ERROR")
        self.field = field
        self.details = details or []


class CategoryNotFound(CatalogError):
    def __init__(self, category_id: str):
        super().__init__(
            message=f"Category '{category_id}' not found",
            code="NOT_FOUND"
        )
        self.category_id = category_id


class CircularReference(CatalogError):
    def __init__(self, category_id: str, parent_id: Optional[str]):
        super().__init__(
            message="Cannot move category: would create circular reference",
            code="CIRCULAR_REFERENCE"
        )
        self.category_id = category_id
        self.parent_id = parent_id


class DepthExceeded(CatalogError):
    def __init__(self, max_depth: int):
        super().__init__(
            message=f"Maximum category depth of {max_depth} exceeded",
            code="DEPTH_EXCEEDED"
        )
        self.max_depth = max_depth


class ConflictOrNotFound(CatalogError):
    """A conditional write matched zero rows: stale token, missing or deleted row."""

    def __init__(self, category_id: str):
        super().__init__(
            message=f"Category '{category_id}' was modified by another request or not found",
            code="CONFLICT"
        )
        self.category_id = category_id


class HasChildren(CatalogError):
    def __init__(self, category_id: str, child_count: int):
        super().__init__(
            message=(
                f"Category has {child_count} subcategories. "
                "Set cascade=true to delete them all."
            ),
            code="HAS_CHILDREN"
        )
        self.category_id = category_id
        self.child_count = child_count


class HandleExhausted(CatalogError):
    def __init__(self, base_handle: str, attempts: int):
        super().__init__(
            message=f"Could not generate unique handle for '{base_handle}' after {attempts} attempts",
            code="HANDLE_EXHAUSTED"
        )
        self.base_handle = base_handle
        self.attempts = attempts
