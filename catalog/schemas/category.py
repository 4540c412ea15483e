"""
Category request/response schemas
"""
from pydantic import (
    AliasChoices, AnyHttpUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError,
    field_validator, model_validator
)
from typing import Any, List, Optional
from datetime import datetime, timezone
import json
from catalog.config import settings

_http_url = TypeAdapter(AnyHttpUrl)


def _strip_name(v):
    if isinstance(v, str):
        return v.strip()
    return v


def _check_thumbnail(v: Optional[str]) -> Optional[str]:
    if v is not None:
        # Keep the caller's string, only check that it parses
        try:
            _http_url.validate_python(v)
        except ValidationError:
            raise ValueError('Invalid thumbnail URL')
    return v


def _check_metadata(v: Any) -> Any:
    if v is None:
        return v
    try:
        # Measure the real UTF-8 payload, not \uXXXX escapes
        serialized = json.dumps(v, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        raise ValueError('Metadata must be JSON serializable')
    if len(serialized.encode("utf-8")) > settings.METADATA_MAX_SIZE:
        raise ValueError(f'Metadata exceeds maximum size of {settings.METADATA_MAX_SIZE // 1000}KB')
    return v


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    handle: Optional[str] = Field(None, max_length=255)
    parent_id: Optional[str] = None
    is_active: bool = False
    is_internal: bool = False
    rank: int = Field(default=0, ge=0)
    image_id: Optional[str] = None
    thumbnail: Optional[str] = None
    metadata: Optional[Any] = None

    @field_validator('name', mode='before')
    @classmethod
    def strip_name(cls, v):
        return _strip_name(v)

    @field_validator('thumbnail')
    @classmethod
    def validate_thumbnail(cls, v):
        return _check_thumbnail(v)

    @field_validator('metadata')
    @classmethod
    def validate_metadata(cls, v):
        return _check_metadata(v)


class CategoryUpdate(BaseModel):
    """Partial update; only fields present in the input are written"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    handle: Optional[str] = Field(None, min_length=1, max_length=255)
    parent_id: Optional[str] = None
    is_active: Optional[bool] = None
    is_internal: Optional[bool] = None
    rank: Optional[int] = Field(None, ge=0)
    image_id: Optional[str] = None
    thumbnail: Optional[str] = None  # "" clears the thumbnail
    metadata: Optional[Any] = None
    expected_updated_at: datetime

    @field_validator('name', mode='before')
    @classmethod
    def strip_name(cls, v):
        return _strip_name(v)

    @field_validator('thumbnail')
    @classmethod
    def validate_thumbnail(cls, v):
        if v == "":
            return v
        return _check_thumbnail(v)

    @field_validator('metadata')
    @classmethod
    def validate_metadata(cls, v):
        return _check_metadata(v)

    @field_validator('expected_updated_at')
    @classmethod
    def normalize_token(cls, v: datetime) -> datetime:
        # Tokens are stored as naive UTC
        if v.tzinfo is not None:
            v = v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @model_validator(mode='after')
    def reject_null_required_columns(self):
        for field in ('name', 'handle', 'is_active', 'is_internal', 'rank'):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f'{field} cannot be null')
        return self


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    handle: str
    description: Optional[str] = None
    parent_id: Optional[str] = None
    is_active: bool
    is_internal: bool
    rank: int
    thumbnail: Optional[str] = None
    image_id: Optional[str] = None
    metadata: Optional[Any] = Field(
        default=None,
        validation_alias=AliasChoices('extra_metadata', 'metadata'),
    )
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None


class CategoryTreeNode(BaseModel):
    category: CategoryResponse
    depth: int
    children: List['CategoryTreeNode'] = []


class CategoryDeleteResult(BaseModel):
    id: str
    deleted_at: datetime
    cascaded_ids: List[str] = []


class ProductCategoriesAssign(BaseModel):
    category_ids: List[str]


# Update forward reference
CategoryTreeNode.model_rebuild()
