"""Pytest configuration and fixtures."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport

from config import Config
from shortlinks.database.memory import InMemoryLinkStore
from shortlinks.database.models import ShortLink
from shortlinks.service import LinkService
from shortlinks.shortcode import ShortCodeGenerator
from shortlinks.common.logging_config import setup_logging
from web_app import create_app


OWNER = "alice"
OTHER_OWNER = "bob"


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
async def test_db(logger) -> AsyncGenerator[InMemoryLinkStore, None]:
    """Create test store instance."""
    db = InMemoryLinkStore(logger=logger)

    yield db

    await db.close()


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=6)


@pytest.fixture
def service(test_db, short_code_generator, logger) -> LinkService:
    """Create service instance."""
    return LinkService(
        db=test_db,
        cache=None,  # No cache for tests
        short_code_generator=short_code_generator,
        logger=logger,
    )


@pytest.fixture
def config():
    """Test configuration, isolated from the environment's .env file."""
    return Config(
        _env_file=None,
        database_url="memory://",
        base_url="http://testserver",
        expired_sweep_interval_seconds=0,
    )


@pytest.fixture
def app(service, config):
    """Create test FastAPI app."""
    return create_app(service_instance=service, config=config)


@pytest.fixture
async def client(app):
    """Create test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def owner_headers():
    return {"X-User-Id": OWNER}


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]


@pytest.fixture
def store_link(test_db):
    """Insert a link straight into the store, bypassing creation-time validation.

    Lets tests hold links whose expiry is already in the past.
    """

    async def _store_link(code, original_url="https://example.com/stored", **fields):
        now = datetime.now(timezone.utc)
        link = ShortLink(
            id=uuid.uuid4().hex,
            original_url=original_url,
            code=code,
            created_at=fields.pop("created_at", now),
            **fields,
        )
        return await test_db.insert_link(link)

    return _store_link


def past(seconds: int = 60) -> datetime:
    return datetime.now(timezone.utc) - timedelta(seconds=seconds)


def future(seconds: int = 3600) -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=seconds)
