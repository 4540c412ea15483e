"""
Category business logic: create, update, delete, tree reads and product links.

No in-process locking. Concurrent writers are reconciled by the conditional
UPDATE on ``updated_at``; a caller holding a stale token gets
ConflictOrNotFound and is expected to re-read.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from catalog.models.category import Category
from catalog.models.product_category import ProductCategory
from catalog.schemas.category import CategoryCreate, CategoryDeleteResult, CategoryUpdate
from catalog.services.category_tree import (
    get_ancestor_path,
    get_category,
    get_children,
    get_descendants,
    get_full_tree,
    get_roots,
)
from catalog.services.category_validator import (
    ensure_depth_allows_child,
    ensure_move_depth,
    validate_category_move,
)
from catalog.services.exceptions import (
    CatalogError,
    CategoryNotFound,
    CategoryValidationError,
    CircularReference,
    ConflictOrNotFound,
    HasChildren,
)
from catalog.utils.slug import generate_unique_handle, handle_exists

logger = logging.getLogger(__name__)

# Input field -> ORM attribute where they differ
_COLUMN_NAMES = {"metadata": "extra_metadata"}


def _parse(schema, data: Union[BaseModel, Mapping[str, Any]]):
    """Validate raw input against a schema, raising CategoryValidationError"""
    if isinstance(data, schema):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        first = errors[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise CategoryValidationError(first["msg"], field=field, details=errors)


def _next_token(previous: datetime) -> datetime:
    """New version token, strictly later than the one it replaces"""
    return max(datetime.utcnow(), previous + timedelta(microseconds=1))


class CategoryService:
    """Service for category operations."""

    def __init__(self, db: Session):
        self.db = db

    # Reads

    def get_category(self, category_id: str) -> Optional[Category]:
        return get_category(self.db, category_id)

    def get_category_tree(self, root_id: Optional[str] = None) -> List[Category]:
        """Flat list of a node and every descendant (all roots when root_id is None)"""
        return get_full_tree(self.db, root_id)

    def get_children(self, category_id: str) -> List[Category]:
        return get_children(self.db, category_id)

    def get_category_path(self, category_id: str) -> List[Category]:
        """Root-first path ending at the category"""
        return get_ancestor_path(self.db, category_id)

    def get_root_categories(self) -> List[Category]:
        return get_roots(self.db)

    def get_product_categories(self, product_id: str) -> List[Category]:
        return (
            self.db.query(Category)
            .join(ProductCategory, ProductCategory.category_id == Category.id)
            .filter(
                ProductCategory.product_id == product_id,
                Category.deleted_at.is_(None)
            )
            .order_by(Category.rank.asc(), Category.name.asc())
            .all()
        )

    # Writes

    def create_category(self, data: Union[CategoryCreate, Mapping[str, Any]]) -> Category:
        """Create a new category"""
        payload = _parse(CategoryCreate, data)
        parent_id = payload.parent_id or None

        if parent_id:
            if get_category(self.db, parent_id) is None:
                raise CategoryNotFound(parent_id)
            ensure_depth_allows_child(self.db, parent_id)

        handle = generate_unique_handle(self.db, payload.name, payload.handle)

        # created_at == updated_at so the returned token matches what is stored
        now = datetime.utcnow()
        category = Category(
            id=str(uuid.uuid4()),
            name=payload.name,
            handle=handle,
            description=payload.description,
            parent_id=parent_id,
            is_active=payload.is_active,
            is_internal=payload.is_internal,
            rank=payload.rank,
            image_id=payload.image_id,
            thumbnail=payload.thumbnail,
            extra_metadata=payload.metadata,
            created_at=now,
            updated_at=now,
            deleted_at=None,
        )
        self.db.add(category)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race on the live-handle unique index
            self.db.rollback()
            raise CategoryValidationError(f"Handle '{handle}' is already in use", field="handle")
        self.db.refresh(category)

        logger.info(f"Created category: {category.handle} ({category.id})")
        return category

    def update_category(
        self,
        category_id: str,
        data: Union[CategoryUpdate, Mapping[str, Any]],
    ) -> Category:
        """
        Update a category with optimistic locking

        ``expected_updated_at`` must equal the stored ``updated_at``; the write
        is a single ``UPDATE ... WHERE id = ? AND updated_at = ? AND deleted_at IS NULL``.
        """
        payload = _parse(CategoryUpdate, data)
        expected = payload.expected_updated_at
        changes = payload.model_dump(exclude_unset=True, exclude={"expected_updated_at"})

        if "parent_id" in changes:
            new_parent_id = changes["parent_id"] or None
            if not validate_category_move(self.db, category_id, new_parent_id):
                raise CircularReference(category_id, new_parent_id)
            if new_parent_id:
                if get_category(self.db, new_parent_id) is None:
                    raise CategoryNotFound(new_parent_id)
                ensure_move_depth(self.db, category_id, new_parent_id)
            changes["parent_id"] = new_parent_id

        if "handle" in changes and handle_exists(self.db, changes["handle"], exclude_id=category_id):
            raise CategoryValidationError(f"Handle '{changes['handle']}' is already in use", field="handle")

        if changes.get("thumbnail") == "":
            changes["thumbnail"] = None

        values = {getattr(Category, _COLUMN_NAMES.get(key, key)): value for key, value in changes.items()}
        values[Category.updated_at] = _next_token(expected)

        try:
            matched = self.db.query(Category).filter(
                Category.id == category_id,
                Category.updated_at == expected,
                Category.deleted_at.is_(None)
            ).update(values, synchronize_session=False)

            if matched == 0:
                logger.warning(f"Conditional update matched no rows for category {category_id}")
                raise ConflictOrNotFound(category_id)

            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise CategoryValidationError("Handle is already in use", field="handle")
        except CatalogError:
            self.db.rollback()
            raise

        category = get_category(self.db, category_id)
        if category is None:
            raise ConflictOrNotFound(category_id)
        logger.info(f"Updated category: {category.handle} ({category.id}) fields={sorted(changes)}")
        return category

    def delete_category(self, category_id: str, cascade: bool = False) -> CategoryDeleteResult:
        """
        Soft-delete a category and optionally its descendants

        The cascade runs in one transaction: every row is deleted by its own
        conditional write, and if any of them matches nothing the whole
        delete is rolled back.
        """
        children = get_children(self.db, category_id)
        if children and not cascade:
            raise HasChildren(category_id, len(children))

        deleted_at = datetime.utcnow()
        cascaded_ids = []
        try:
            if cascade and children:
                for descendant in get_descendants(self.db, category_id):
                    self._soft_delete(descendant.id, deleted_at)
                    cascaded_ids.append(descendant.id)

            self._soft_delete(category_id, deleted_at)
            self.db.commit()
        except CatalogError:
            self.db.rollback()
            raise

        logger.info(f"Deleted category: {category_id} (cascaded {len(cascaded_ids)})")
        return CategoryDeleteResult(id=category_id, deleted_at=deleted_at, cascaded_ids=cascaded_ids)

    def _soft_delete(self, category_id: str, deleted_at: datetime) -> None:
        # Token is read right before the write it guards
        token = self.db.query(Category.updated_at).filter(
            Category.id == category_id,
            Category.deleted_at.is_(None)
        ).scalar()
        if token is None:
            raise ConflictOrNotFound(category_id)

        matched = self.db.query(Category).filter(
            Category.id == category_id,
            Category.updated_at == token,
            Category.deleted_at.is_(None)
        ).update(
            {Category.deleted_at: deleted_at, Category.updated_at: _next_token(token)},
            synchronize_session=False
        )
        if matched == 0:
            logger.warning(f"Conditional delete matched no rows for category {category_id}")
            raise ConflictOrNotFound(category_id)

    def assign_product_to_categories(self, product_id: str, category_ids: List[str]) -> List[Category]:
        """
        Replace every category link of a product

        All ids are verified before anything is written; an empty list
        clears the product's links.
        """
        unique_ids = list(dict.fromkeys(category_ids))

        if unique_ids:
            found = {
                row.id for row in self.db.query(Category.id).filter(
                    Category.id.in_(unique_ids),
                    Category.deleted_at.is_(None)
                ).all()
            }
            for category_id in unique_ids:
                if category_id not in found:
                    raise CategoryNotFound(category_id)

        self.db.query(ProductCategory).filter(
            ProductCategory.product_id == product_id
        ).delete()
        self.db.add_all([
            ProductCategory(product_id=product_id, category_id=category_id)
            for category_id in unique_ids
        ])
        self.db.commit()

        logger.info(f"Assigned product {product_id} to {len(unique_ids)} categories")
        return self.get_product_categories(product_id)
