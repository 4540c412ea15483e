"""
Script to recreate the category tables from the ORM models (development only)
"""
from sqlalchemy import inspect
from catalog.database import Base, engine
from catalog.models import Category, ProductCategory  # noqa: F401

print("Dropping category tables...")
Base.metadata.drop_all(bind=engine)

print("Creating database tables...")
Base.metadata.create_all(bind=engine)
print("Database created successfully!")

tables = inspect(engine).get_table_names()
print(f"Created tables: {', '.join(sorted(tables))}")
