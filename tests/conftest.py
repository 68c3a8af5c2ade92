"""Test fixtures and configuration."""

import logging
import os
import sys
from datetime import date
from uuid import uuid4
from zoneinfo import ZoneInfo

# Settings are read at import time; pin them before storedash is imported.
os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("SECRET_KEY", "test_secret_key")
os.environ.setdefault("STORE_TIMEZONE", "UTC")

import pytest
import pytest_asyncio
import structlog
from httpx import ASGITransport, AsyncClient

from storedash.services.periods import ReportWindow
from tests.factories import STORE_ID
from tests.fakes import InMemoryDocumentStore


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
        processor=structlog.dev.ConsoleRenderer(),
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


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    """Empty in-memory store; tests add the rows they need."""
    return InMemoryDocumentStore()


@pytest.fixture
def june_window() -> ReportWindow:
    return ReportWindow(date(2024, 6, 1), date(2024, 6, 30), ZoneInfo("UTC"))


def _bearer(user_id: str) -> dict[str, str]:
    from storedash.security import create_access_token

    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture
def admin_headers(memory_store: InMemoryDocumentStore) -> dict[str, str]:
    user = memory_store.add_user(str(uuid4()), STORE_ID, role="admin")
    return _bearer(user.id)


@pytest.fixture
def user_headers(memory_store: InMemoryDocumentStore) -> dict[str, str]:
    user = memory_store.add_user(str(uuid4()), STORE_ID, role="user")
    return _bearer(user.id)


@pytest.fixture
def storeless_headers(memory_store: InMemoryDocumentStore) -> dict[str, str]:
    user = memory_store.add_user(str(uuid4()), None, role="admin")
    return _bearer(user.id)


@pytest_asyncio.fixture
async def client(memory_store: InMemoryDocumentStore):
    """HTTP client against the app with the store swapped for ``memory_store``."""
    from storedash.main import app
    from storedash.services.document_store import get_document_store

    app.dependency_overrides[get_document_store] = lambda: memory_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
