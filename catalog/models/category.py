from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, DateTime, Text, JSON, Index, text
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from catalog.database import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False, index=True)
    handle = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(String(36), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
    is_internal = Column(Boolean, default=False, nullable=False)
    rank = Column(Integer, default=0, nullable=False)  # Sibling ordering, ascending
    thumbnail = Column(String(2048), nullable=True)
    image_id = Column(String(36), nullable=True)
    # "metadata" is reserved on declarative classes
    extra_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    # Version token for optimistic locking; advanced explicitly on every write
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index(
            "ix_categories_handle_live",
            "handle",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index(
            "ix_categories_parent_id_live",
            "parent_id",
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    # Relationships
    product_links = relationship("ProductCategory", back_populates="category", passive_deletes=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Category {self.handle}>"
