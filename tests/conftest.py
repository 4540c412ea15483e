"""
Pytest configuration and fixtures.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import catalog.models  # noqa: F401
from catalog.database import Base, get_db
from catalog.main import app
from catalog.services.category_service import CategoryService
from catalog.utils.security import create_access_token


@pytest.fixture
def engine():
    """In-memory SQLite database with a fresh schema."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def service(db):
    return CategoryService(db)


@pytest.fixture
def make_category(service):
    """Create a category through the service, optionally under a parent."""
    def _make(name, parent=None, **fields):
        data = {"name": name, **fields}
        if parent is not None:
            data["parent_id"] = parent.id
        return service.create_category(data)
    return _make


@pytest.fixture
def electronics_tree(make_category):
    """Electronics > Computers > Laptops > Gaming Laptops"""
    electronics = make_category("Electronics")
    computers = make_category("Computers", parent=electronics)
    laptops = make_category("Laptops", parent=computers)
    gaming = make_category("Gaming Laptops", parent=laptops)
    return electronics, computers, laptops, gaming


@pytest.fixture
def client(session_factory):
    """API client with the database dependency pointed at the test engine."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "admin-1", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}
