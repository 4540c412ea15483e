from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship
from catalog.database import Base


class ProductCategory(Base):
    """Many-to-many link between a catalog item and a category"""
    __tablename__ = "product_categories"

    # Products are owned by another module; the id is opaque here
    product_id = Column(String(255), primary_key=True)
    category_id = Column(
        String(36),
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
        index=True
    )

    category = relationship("Category", back_populates="product_links")
