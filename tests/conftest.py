from collections.abc import Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardclash.db.database import build_engine, get_session, init_db
from cardclash.main import app
from cardclash.models.card import Attribute, Card, CardDefinition, CardType, Rarity
from cardclash.models.catalog import CardCatalog
from cardclash.models.db import Base
from cardclash.services.battle_resolver import BattleResolver
from cardclash.services.catalog import build_default_catalog
from cardclash.services.gacha import GachaDrawer
from cardclash.services.match_registry import MatchRegistry, get_match_registry
from cardclash.services.player_locks import PlayerLockRegistry, get_player_locks
from cardclash.services.random_source import SeededRandomSource, new_session_source

CardFactory = Callable[..., Card]


@pytest.fixture
def make_card() -> CardFactory:
    """Build a card with just the fields a test cares about."""

    def _make(
        power: int = 50,
        attribute: Attribute = Attribute.FIRE,
        name: str = "Test Card",
        rarity: Rarity = Rarity.COMMON,
        card_type: CardType = CardType.BALANCED,
    ) -> Card:
        definition = CardDefinition(
            name=name,
            attribute=attribute,
            rarity=rarity,
            card_type=card_type,
            description="",
            base_power_range=(0, 200),
        )
        return Card(definition=definition, base_power=power)

    return _make


@pytest.fixture
def catalog() -> CardCatalog:
    return build_default_catalog()


@pytest.fixture
def seeded_source() -> SeededRandomSource:
    return SeededRandomSource(1234)


@pytest.fixture
def drawer(catalog: CardCatalog, seeded_source: SeededRandomSource) -> GachaDrawer:
    return GachaDrawer(catalog, seeded_source)


@pytest.fixture
def resolver() -> BattleResolver:
    return BattleResolver(advantage_multiplier=1.5)


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
async def client(async_engine):
    """
    Provide an async test client with an in-memory database.

    Registries are fresh per test and draws use a fixed seed.
    """
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    registry = MatchRegistry()
    locks = PlayerLockRegistry()
    seeds = iter(range(100, 10_000))

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_match_registry] = lambda: registry
    app.dependency_overrides[get_player_locks] = lambda: locks
    app.dependency_overrides[new_session_source] = lambda: SeededRandomSource(next(seeds))

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
