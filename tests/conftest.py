"""Test fixtures and configuration."""

import logging
import os
import sys
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
import structlog
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, text
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Set ENVIRONMENT for pydantic settings
os.environ["ENVIRONMENT"] = "testing"

from ledger_match.logger import get_logger  # noqa: E402

logger = get_logger(__name__)


def get_test_db_url(tmp_path) -> str:
    """Return the database URL for one test.

    ``DATABASE_URL`` selects a PostgreSQL server; otherwise each test gets a
    fresh SQLite file so commits made through the API stay isolated.
    """
    url = os.environ.get("DATABASE_URL")
    if url and make_url(url).get_backend_name() == "postgresql":
        return url
    return f"sqlite+aiosqlite:///{tmp_path / 'ledger_match_test.db'}"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# --- Structlog Configuration for Tests ---
@pytest.fixture(autouse=True, scope="session")
def configure_structlog_for_tests():
    """Configure structlog for proper capsys capture in tests."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=False),
        foreign_pre_chain=processors[:-1],
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    yield

    structlog.reset_defaults()


async def ensure_database(db_url: str) -> None:
    """Create the PostgreSQL test database if it does not exist yet."""
    url = make_url(db_url)
    db_name = url.database

    engine = create_async_engine(url.set(database="postgres"), isolation_level="AUTOCOMMIT")
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1 FROM pg_database WHERE datname = :name"), {"name": db_name})
            if not result.scalar():
                await conn.execute(text(f'CREATE DATABASE "{db_name}"'))
    except SQLAlchemyError as e:
        logger.error("Test database setup failed", database=db_name, error=str(e))
        raise RuntimeError(f"Cannot proceed without test database: {e}") from e
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Create a test engine with a clean schema.

    Function-scoped: every test starts from empty tables. API handlers
    commit, so rolling back a shared outer transaction would not isolate them.
    """
    from ledger_match import database
    from ledger_match.database import Base
    from ledger_match.models import Account, LineItem, LineItemLink, LineItemTag, Tag  # noqa: F401

    url = get_test_db_url(tmp_path)
    is_sqlite = make_url(url).get_backend_name() == "sqlite"
    if not is_sqlite:
        await ensure_database(url)

    engine = create_async_engine(url, echo=False, poolclass=NullPool)
    if is_sqlite:
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    # API handlers open their sessions from this maker
    test_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    previous = database.set_test_session_maker(test_maker)

    yield engine

    database.set_test_session_maker(previous)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(db_engine):
    """Session for arranging and inspecting data.

    Commit before calling the API so the request's own session can see the rows.
    """
    session = AsyncSession(db_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def auth_headers(user_id):
    from ledger_match.security import create_access_token

    token = create_access_token(data={"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(db_engine, auth_headers):
    """Async test client authenticated as ``user_id``."""
    from ledger_match.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=auth_headers) as client_instance:
        yield client_instance


@pytest_asyncio.fixture
async def public_client(db_engine):
    """Async test client without auth headers."""
    from ledger_match.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client_instance:
        yield client_instance
