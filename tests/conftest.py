"""Pytest configuration and fixtures."""

import asyncio
import os
import sys

# Tests run against in-memory SQLite; set before config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from db import Base
from main import app
from models.category import Category, CategoryCreate
from models.product import Product, ProductCreate
from models.slug import Slug
from models.url import Url
from services import categories_service, events, products_service, urlable_registry
from services.catalog_urlables import CATEGORY_TYPE, PRODUCT_TYPE, register_catalog_urlables

# Fix Windows asyncio event loop
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Fresh in-memory database per test (one shared connection)."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine):
    """Create a test database session (same settings as the app's sessions)."""
    TestSessionLocal = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture(autouse=True)
def urlable_types():
    """Register the catalog urlables for every test; drop listeners afterwards."""
    register_catalog_urlables()
    yield
    urlable_registry.unregister(CATEGORY_TYPE)
    urlable_registry.unregister(PRODUCT_TYPE)
    events.forget()


@pytest.fixture
def override_get_db(db_session):
    """Override get_db dependency for testing."""
    from api.deps import get_db

    async def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(override_get_db):
    """Async test client sharing the test session with the app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_category(db_session):
    """Factory: create a category through the service (slug + url sync)."""

    async def _make(title, slug=None, parent=None, collection=None, type=None) -> Category:
        outcome = await categories_service.create_category(
            db_session,
            payload=CategoryCreate(
                title=title,
                slug=slug,
                parent_id=parent.id if parent is not None else None,
                collection=collection,
                type=type,
            ),
        )
        return outcome.entity

    return _make


@pytest.fixture
def make_product(db_session):
    """Factory: create a product through the service (slug + url sync)."""

    async def _make(title, slug=None, category=None, collection=None) -> Product:
        outcome = await products_service.create_product(
            db_session,
            payload=ProductCreate(
                title=title,
                slug=slug,
                category_id=category.id if category is not None else None,
                collection=collection,
            ),
        )
        return outcome.entity

    return _make


@pytest.fixture
def url_rows(db_session):
    """Helper: every url row for a full URL (or all rows), oldest first."""

    async def _rows(full_url=None) -> list[Url]:
        query = select(Url).order_by(Url.id)
        if full_url is not None:
            query = query.where(Url.full_url == full_url)
        result = await db_session.execute(query)
        return list(result.scalars().all())

    return _rows


@pytest.fixture
def slug_rows(db_session):
    """Helper: every slug row of an entity id, oldest first."""

    async def _rows(entity_id) -> list[Slug]:
        result = await db_session.execute(
            select(Slug).where(Slug.slugable_id == entity_id).order_by(Slug.id)
        )
        return list(result.scalars().all())

    return _rows
