import os
import tempfile

# Point the app at a throwaway SQLite store before any settings are loaded.
_DB_DIR = tempfile.mkdtemp(prefix="pushrelay-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/pushrelay.db"
os.environ["NOTIFY_PROVIDER"] = "log"

import httpx
import pytest
from asgi_lifespan import LifespanManager
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from pushrelay.core.config import settings
from pushrelay.core.db import Base, get_session
from pushrelay.main import app
from pushrelay.models import models  # noqa: F401
from pushrelay.notifications.config import NotificationsConfig
from pushrelay.services.notifications.service import (
    NotificationService,
    get_notification_service,
    reset_notification_service,
)
from tests.fixtures import FakePushProvider


@pytest.fixture
def provider():
    return FakePushProvider()


@pytest.fixture
def service(provider):
    return NotificationService(config=NotificationsConfig(), provider=provider)


@pytest.fixture
async def db_engine():
    engine = create_async_engine(settings.DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
async def client(service, session_factory):
    async def _session_override():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_notification_service] = lambda: service
    app.dependency_overrides[get_session] = _session_override
    async with LifespanManager(app):
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    app.dependency_overrides.pop(get_notification_service, None)
    app.dependency_overrides.pop(get_session, None)
    reset_notification_service()
