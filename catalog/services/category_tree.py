"""
Read-only queries over the category adjacency list.

Every traversal is a single recursive CTE. The recursive step carries a
depth column and stops at MAX_CATEGORY_DEPTH, so a malformed (cyclic)
parent chain still terminates.
"""
from typing import List, Optional, Set
from sqlalchemy import Integer, func, literal, select
from sqlalchemy.orm import Session, aliased
from catalog.config import settings
from catalog.models.category import Category


def _live(query):
    return query.filter(Category.deleted_at.is_(None))


def get_category(db: Session, category_id: str) -> Optional[Category]:
    """Point lookup by id, excluding soft-deleted rows"""
    if not category_id:
        return None
    return _live(db.query(Category).filter(Category.id == category_id)).first()


def get_category_by_handle(db: Session, handle: str) -> Optional[Category]:
    return _live(db.query(Category).filter(Category.handle == handle)).first()


def get_children(db: Session, category_id: str) -> List[Category]:
    """Direct children ordered by rank"""
    return _live(
        db.query(Category).filter(Category.parent_id == category_id)
    ).order_by(Category.rank.asc(), Category.created_at.asc()).all()


def get_roots(db: Session) -> List[Category]:
    """Categories without a parent ordered by rank"""
    return _live(
        db.query(Category).filter(Category.parent_id.is_(None))
    ).order_by(Category.rank.asc(), Category.created_at.asc()).all()


def _ancestors_cte(category_id: str):
    """The node itself (depth 0) followed by each ancestor one hop further up"""
    anchor = select(
        Category.id,
        Category.parent_id,
        literal(0, type_=Integer).label("depth"),
    ).where(
        Category.id == category_id,
        Category.deleted_at.is_(None),
    )
    path = anchor.cte("category_path", recursive=True)

    parent = aliased(Category)
    return path.union_all(
        select(
            parent.id,
            parent.parent_id,
            (path.c.depth + 1).label("depth"),
        )
        .select_from(parent)
        .join(path, parent.id == path.c.parent_id)
        .where(
            parent.deleted_at.is_(None),
            path.c.depth < settings.MAX_CATEGORY_DEPTH,
        )
    )


def _subtree_cte(anchor_filter, start_depth: int, name: str):
    anchor = select(
        Category.id,
        literal(start_depth, type_=Integer).label("depth"),
    ).where(anchor_filter, Category.deleted_at.is_(None))
    tree = anchor.cte(name, recursive=True)

    child = aliased(Category)
    return tree.union_all(
        select(
            child.id,
            (tree.c.depth + 1).label("depth"),
        )
        .select_from(child)
        .join(tree, child.parent_id == tree.c.id)
        .where(
            child.deleted_at.is_(None),
            tree.c.depth < settings.MAX_CATEGORY_DEPTH,
        )
    )


def _descendants_cte(category_id: str):
    """Every node below category_id; direct children are depth 1"""
    return _subtree_cte(Category.parent_id == category_id, 1, "category_descendants")


def get_depth(db: Session, category_id: Optional[str]) -> int:
    """
    Number of parent hops from the category up to its root

    A root and ``None`` are both depth 0. Unknown ids also report 0.
    """
    if not category_id:
        return 0
    path = _ancestors_cte(category_id)
    depth = db.query(func.max(path.c.depth)).scalar()
    return int(depth or 0)


def get_ancestor_path(db: Session, category_id: str) -> List[Category]:
    """The category and all of its ancestors, root first"""
    path = _ancestors_cte(category_id)
    rows = (
        db.query(Category)
        .join(path, Category.id == path.c.id)
        .order_by(path.c.depth.desc())
        .all()
    )
    seen = set()
    ordered = []
    for row in rows:
        if row.id not in seen:
            seen.add(row.id)
            ordered.append(row)
    return ordered


def get_descendant_ids(db: Session, category_id: str) -> Set[str]:
    """Ids reachable through child links, not including category_id itself"""
    tree = _descendants_cte(category_id)
    ids = {row.id for row in db.query(tree.c.id).all()}
    ids.discard(category_id)
    return ids


def get_descendants(db: Session, category_id: str) -> List[Category]:
    """Descendant rows, deepest first"""
    tree = _descendants_cte(category_id)
    depths = (
        select(tree.c.id, func.max(tree.c.depth).label("depth"))
        .group_by(tree.c.id)
        .subquery()
    )
    return (
        db.query(Category)
        .join(depths, Category.id == depths.c.id)
        .filter(Category.id != category_id)
        .order_by(depths.c.depth.desc(), Category.rank.asc())
        .all()
    )


def get_subtree_height(db: Session, category_id: str) -> int:
    """Hops from the category down to its deepest descendant (0 for a leaf)"""
    tree = _descendants_cte(category_id)
    height = db.query(func.max(tree.c.depth)).scalar()
    return int(height or 0)


def get_full_tree(db: Session, root_id: Optional[str] = None) -> List[Category]:
    """
    A node plus all of its descendants

    Without ``root_id`` every live root and its descendants are returned.
    Rows are de-duplicated by id and ordered by depth, then rank.
    """
    if root_id:
        tree = _subtree_cte(Category.id == root_id, 0, "category_tree")
    else:
        tree = _subtree_cte(Category.parent_id.is_(None), 0, "category_tree")

    depths = (
        select(tree.c.id, func.min(tree.c.depth).label("depth"))
        .group_by(tree.c.id)
        .subquery()
    )
    return (
        db.query(Category)
        .join(depths, Category.id == depths.c.id)
        .order_by(depths.c.depth.asc(), Category.rank.asc(), Category.created_at.asc())
        .all()
    )
