"""Shared fixtures: an in-memory database and an HTTP client bound to it."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from subway.database import enable_sqlite_foreign_keys, get_db_session
from subway.main import app
from subway.models import Base
from subway.services.line_locks import LineLockRegistry


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory SQLite database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def locks():
    return LineLockRegistry()


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client whose requests use the in-memory database."""

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """Sessions on a SQLite file, each with its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'subway.db'}",
        connect_args={"timeout": 30},
        poolclass=NullPool,
    )
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()
