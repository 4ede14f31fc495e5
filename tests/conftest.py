import random

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from luckypaws.api.deps import get_repository
from luckypaws.config import Settings
from luckypaws.db.database import get_session
from luckypaws.main import app
from luckypaws.models.db import Base
from luckypaws.models.game import GameConfig, PrizeTier
from luckypaws.services.game_repository import GameRepository

ADMIN_TOKEN = "test-admin-token"

# Fixed start time (epoch ms) for the fake clock
T0 = 1_700_000_000_000


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
async def async_engine(tmp_path):
    """
    Create a file-backed SQLite engine for testing.

    A file (rather than :memory:) gives every session its own connection,
    which is what optimistic-concurrency tests need.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        game_id="test-game",
        admin_token=ADMIN_TOKEN,
        scheduler_enabled=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(session_factory, test_settings, clock) -> GameRepository:
    return GameRepository(session_factory, test_settings, clock=clock)


@pytest.fixture
def small_config() -> GameConfig:
    """Four cards, one winner of 100."""
    return GameConfig(
        tiers=[PrizeTier(count=1, amount=100)],
        total_cards=4,
        win_message="Winner!",
        lose_message="Not this time",
    )


@pytest.fixture
async def published(repository, small_config):
    """Repository with a published 4-card game."""
    await repository.publish_config(small_config, random.Random(7))
    return repository


@pytest.fixture
async def client(repository, session_factory):
    """Provide an async test client bound to the test repository and database."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
