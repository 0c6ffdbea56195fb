"""
Pytest configuration for the TeachWave backend.

Every test gets its own in-memory SQLite database (aiosqlite) built from the
SQLAlchemy metadata. API tests drive the FastAPI app through httpx with
``get_db`` and ``get_settings`` overridden.
"""
import os
from dataclasses import replace

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_ENV", "test")

import httpx
import pytest
from httpx import ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import main
from shared.config import get_settings
from shared.db import Base, get_db

import services.user_management.models  # noqa: F401
import services.learning_content.models  # noqa: F401


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def test_settings():
    return replace(get_settings(), auto_grant_on_upload=False)


@pytest.fixture
async def client(session_factory, test_settings):
    async def _get_db():
        async with session_factory() as session:
            yield session

    main.app.dependency_overrides[get_db] = _get_db
    main.app.dependency_overrides[get_settings] = lambda: test_settings
    async with httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as c:
        yield c
    main.app.dependency_overrides.clear()
