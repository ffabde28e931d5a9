"""
Core pytest configuration for the entire test suite.

This module provides only the essential database setup that is needed across all
types of tests (services, logging, API handlers, ...).

Domain-specific fixtures are located in:
- tests/test_fixtures/models.py            (test-only mapped models)
- tests/test_fixtures/service_fixtures.py  (CRUDService, record factories, statement recorder)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning (IMPORTANT)
# -------------------------------
# Keep this block above the SQLAlchemy imports so collection stays quiet.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
    "httpx",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from crudkit.config import get_settings
from crudkit.core.logging.builder import setup_logging
from .test_fixtures.models import Base


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """
    Install the crudkit logging configuration for the whole test session, so the
    formatters and filters used in production also run in tests.

    pytest's capture handlers are re-attached for every test phase, so caplog
    keeps working after dictConfig has replaced the root handlers.
    """
    setup_logging(get_settings())
    yield


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------


def sqlite_url(directory: Path) -> str:
    return f"sqlite+aiosqlite:///{directory / 'test.db'}"


@pytest.fixture()
async def async_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """
    A fresh SQLite database file per test, with all test tables created.
    """
    engine = create_async_engine(sqlite_url(tmp_path), echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    An AsyncSession on the per-test database.

    The service only flushes, so nothing is committed; whatever the test wrote is
    rolled back at teardown and the database file is discarded with tmp_path.
    """
    maker = async_sessionmaker(bind=async_engine, class_=AsyncSession, expire_on_commit=False)

    async with maker() as session:
        yield session
        await session.rollback()


# Service test fixtures
from .test_fixtures.service_fixtures import (  # noqa: E402,F401
    templates,
    crud_service,
    create_widget,
    widget_with_parts,
    many_widgets,
    statements,
)
