"""Pytest configuration and fixtures."""

import os

# The app module builds its engine at import time; keep it off the disk
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from depopro.core import Base, get_db
from main import app
# Import all models to ensure they're registered with Base.metadata
from depopro.models import *
from depopro.models import Product
from depopro.schemas.product import ProductCreate
from depopro.services import ProductService

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict:
    return {"X-User-Name": "Depo Sorumlusu", "X-User-Role": "ADMIN"}


@pytest.fixture
def viewer_headers() -> dict:
    return {"X-User-Name": "Operator", "X-User-Role": "VIEWER"}


@pytest.fixture
def make_product(db_session: Session):
    """Factory for catalog products."""
    def _make(name: str, stock: int = 0, **fields) -> Product:
        return ProductService.create_product(
            db_session, ProductCreate(product_name=name, initial_stock=stock, **fields)
        )
    return _make
