"""Test fixtures.

Every test gets its own SQLite database file (aiosqlite) with the full schema,
foreign keys switched on. The HTTP client talks to the FastAPI app in-process
with the session and "today" dependencies overridden.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, AsyncIterator, cast

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from db.database import create_db_and_tables, get_async_session, make_engine

# Fixed reference date for the HTTP tests.
TODAY = date(2023, 11, 10)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    test_engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'freezers.db'}")
    await create_db_and_tables(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncClient]:
    from main import app
    from routers.storage import get_today

    async def _override_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = _override_session
    app.dependency_overrides[get_today] = lambda: TODAY

    transport = ASGITransport(app=cast(Any, app))
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
