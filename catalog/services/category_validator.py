"""
Structural checks for proposed hierarchy edits
"""
from typing import Optional
from sqlalchemy.orm import Session
from catalog.config import settings
from catalog.services.category_tree import get_depth, get_descendant_ids, get_subtree_height
from catalog.services.exceptions import DepthExceeded


def validate_category_move(db: Session, category_id: str, new_parent_id: Optional[str]) -> bool:
    """
    Check if a category can be moved under a new parent

    A move is illegal exactly when the new parent is the category itself
    or lives inside the subtree being moved.
    """
    if category_id == new_parent_id:
        return False

    # Moving to root is always valid
    if not new_parent_id:
        return True

    return new_parent_id not in get_descendant_ids(db, category_id)


def ensure_depth_allows_child(db: Session, parent_id: Optional[str], subtree_height: int = 0) -> int:
    """
    Raise DepthExceeded if a node placed under parent_id would reach MAX_CATEGORY_DEPTH

    ``subtree_height`` is the height of the subtree being attached (0 for a
    new leaf), so its deepest node is checked as well.

    Returns:
        Depth the attached node will have
    """
    if not parent_id:
        child_depth = 0
    else:
        child_depth = get_depth(db, parent_id) + 1

    if child_depth + subtree_height >= settings.MAX_CATEGORY_DEPTH:
        raise DepthExceeded(settings.MAX_CATEGORY_DEPTH)
    return child_depth


def ensure_move_depth(db: Session, category_id: str, new_parent_id: Optional[str]) -> int:
    """Depth check for re-parenting a whole subtree"""
    return ensure_depth_allows_child(db, new_parent_id, get_subtree_height(db, category_id))
