from typing import List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from commerce_iam.adapter.cache.memory_cache import InMemoryCache
from commerce_iam.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from commerce_iam.api.app import create_app
from commerce_iam.app.services.login_throttle import LoginThrottle
from commerce_iam.app.services.notification import INotificationService, Message
from commerce_iam.depends import get_cache, get_login_throttle, get_notifier, get_unit_of_work
from tests.fixtures.factories import FakeClock
from tests.fixtures.json_loader import TestDataLoader


class RecordingNotifier(INotificationService):
    """Keeps every message instead of delivering it; can be told to fail"""

    def __init__(self):
        self.sent: List[tuple] = []
        self.fail = False

    async def send(self, to: str, subject: str, text: str, html: str) -> bool:
        if self.fail:
            return False
        self.sent.append((to, Message(subject=subject, text=text, html=html)))
        return True

    def last_text(self, to: Optional[str] = None) -> str:
        for recipient, message in reversed(self.sent):
            if to is None or recipient == to:
                return message.text
        raise AssertionError(f"No message sent to {to}")


@pytest.fixture
def test_data():
    return TestDataLoader()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryCache(clock=clock)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session, cache, notifier, clock):
    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_login_throttle] = lambda: LoginThrottle(cache, clock=clock)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
