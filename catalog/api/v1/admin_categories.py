"""
Admin Categories Management Endpoints
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from catalog.database import get_db
from catalog.schemas.category import (
    CategoryCreate, CategoryUpdate, CategoryResponse, CategoryTreeNode,
    ProductCategoriesAssign
)
from catalog.schemas.common import ResponseModel
from catalog.api.admin_deps import CurrentAdmin, require_admin
from catalog.services.category_service import CategoryService
from catalog.services.exceptions import CategoryNotFound
from catalog.utils.tree import build_category_tree

router = APIRouter()


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


def serialize_category(category) -> dict:
    return CategoryResponse.model_validate(category).model_dump(mode="json")


def serialize_node(node: dict) -> dict:
    return CategoryTreeNode(
        category=CategoryResponse.model_validate(node["category"]),
        depth=node["depth"],
        children=[serialize_node(child) for child in node["children"]],
    ).model_dump(mode="json")


@router.get("", response_model=ResponseModel)
def get_category_tree(
    root_id: Optional[str] = Query(None),
    admin: CurrentAdmin = Depends(require_admin),
    service: CategoryService = Depends(get_category_service)
):
    """Category tree, from one root or from every root"""
    categories = service.get_category_tree(root_id)
    tree = build_category_tree(categories)

    return ResponseModel(
        success=True,
        data=[serialize_node(node) for node in tree],
        message="Categories retrieved successfully"
    )


@router.get("/roots", response_model=ResponseModel)
def list_root_categories(
    admin: CurrentAdmin = Depends(require_admin),
    service: CategoryService = Depends(get_category_service)
):
    return ResponseModel(
        success=True,
        data=[serialize_category(c) for c in service.get_root_categories()]
    )


@router.put("/products/{product_id}", response_model=ResponseModel)
def assign_product_categories(
    product_id: str,
    body: ProductCategoriesAssign,
    admin: CurrentAdmin = Depends(require_admin),
    service: CategoryService = Depends(get_category_service)
):
    """Replace every category link of a product"""
    categories = service.assign_product_to_categories(product_id, body.category_ids)

    return ResponseModel(
        success=True,
        data=[serialize_category(c) for c in categories],
        message="Product categories updated successfully"
    )


@router.get("/products/{product_id}", response_model=ResponseModel)
def list_product_categories(
    product_id: str,
    admin: CurrentAdmin = Depends(require_admin),
    service: CategoryService = Depends(get_category_service)
):
    return ResponseModel(
        success=True,
        data=[serialize_category(c) for c in service.get_product_categories(product_id)]
    )


@router.get("/{category_id}", response_model=ResponseModel)
def get_category(
    category_id: str,
    admin: CurrentAdmin = Depends(require_admin),
    service: CategoryService = Depends(get_category_service)
):
    """Get category details"""
    category = service.get_category(category_id)
    if not category:
        raise CategoryNotFound(category_id)

    return ResponseModel(
        success=True,
        data=serialize_category(category),
        message="Category retrieved successfully"
    )


@router.get("/{category_id}/children", response_model=ResponseModel)
def get_category_children(
    category_id: str,
    admin: CurrentAdmin = Depends(require_admin),
    service: CategoryService = Depends(get_category_service)
):
    return ResponseModel(
        success=True,
        data=[serialize_category(c) for c in service.get_children(category_id)]
    )


@router.get("/{category_id}/path", response_model=ResponseModel)
def get_category_path(
    category_id: str,
    admin: CurrentAdmin = Depends(require_admin),
    service: CategoryService = Depends(get_category_service)
):
    """Root-first path to the category"""
    return ResponseModel(
        success=True,
        data=[serialize_category(c) for c in service.get_category_path(category_id)]
    )


@router.post("", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
def create_category(
    category_data: CategoryCreate,
    admin: CurrentAdmin = Depends(require_admin),
    service: CategoryService = Depends(get_category_service)
):
    """Create a new category or subcategory"""
    category = service.create_category(category_data)

    return ResponseModel(
        success=True,
        data=serialize_category(category),
        message="Category created successfully"
    )


@router.put("/{category_id}", response_model=ResponseModel)
def update_category(
    category_id: str,
    category_data: CategoryUpdate,
    admin: CurrentAdmin = Depends(require_admin),
    service: CategoryService = Depends(get_category_service)
):
    """Update an existing category; expected_updated_at must be the current token"""
    category = service.update_category(category_id, category_data)

    return ResponseModel(
        success=True,
        data=serialize_category(category),
        message="Category updated successfully"
    )


@router.delete("/{category_id}", response_model=ResponseModel)
def delete_category(
    category_id: str,
    cascade: bool = Query(False),
    admin: CurrentAdmin = Depends(require_admin),
    service: CategoryService = Depends(get_category_service)
):
    """Soft-delete a category, optionally with its whole subtree"""
    result = service.delete_category(category_id, cascade=cascade)

    return ResponseModel(
        success=True,
        data=result.model_dump(mode="json"),
        message="Category deleted successfully"
    )
