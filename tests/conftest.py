import os
import uuid
from datetime import datetime, timedelta, timezone

# Настройки читаются при импорте app.core.config
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("WORKER_ENABLED", "false")

import fakeredis
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.db.models  # noqa: F401
from app.core.db import Base
from app.domains.posts.cache import PublishedPostCache
from app.domains.posts.services import PostLifecycleService, PublicPostService


class FrozenClock:
    """Управляемое время для детерминированных проверок"""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta) -> datetime:
        self.current = self.current + timedelta(**delta)
        return self.current


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cms.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def redis():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    await client.flushall()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def cache(redis):
    return PublishedPostCache(redis, post_ttl=300, list_ttl=60)


@pytest.fixture
def service(session, cache, clock):
    return PostLifecycleService(session, cache, clock)


class PublicReader:
    """Публичное чтение, каждый запрос в своей сессии"""

    def __init__(self, session_factory, cache):
        self.session_factory = session_factory
        self.cache = cache

    async def get(self, post_id):
        async with self.session_factory() as session:
            return await PublicPostService(session, self.cache).get_published(post_id)

    async def list(self, page=1, limit=20):
        async with self.session_factory() as session:
            return await PublicPostService(session, self.cache).list_published(page, limit)


@pytest.fixture
def public_reader(session_factory, cache):
    return PublicReader(session_factory, cache)


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def other_owner_id():
    return uuid.uuid4()
