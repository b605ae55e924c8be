"""Tests for database CRUD operations."""

from dataclasses import replace

import pytest
from sqlalchemy import create_engine, delete, event, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardclash.db.database import build_engine, init_db
from cardclash.db.operations import (
    append_cards_to_collection,
    append_match_record,
    create_player,
    list_match_records,
    list_players,
    load_collection,
    load_player,
    require_player,
    save_player,
)
from cardclash.models.card import Attribute, Rarity
from cardclash.models.db import MatchRecordDB, OwnedCardDB, PlayerDB
from cardclash.models.failure import (
    FailureKind,
    InvalidRequestError,
    PlayerNotFoundError,
    StaleRecordError,
)
from cardclash.models.match import MatchOutcome, MatchWinner
from cardclash.models.player import Player
from cardclash.services.gacha import GachaDrawer
from cardclash.services.progression import ProgressionEngine


class TestPlayerOperations:
    async def test_create_player(self, session: AsyncSession) -> None:
        """New players start with baseline stats."""
        player = await create_player(session, "ash")

        assert player.username == "ash"
        assert player.level == 1
        assert player.xp == 0
        assert player.currency == 0
        assert player.rating == 1000
        assert player.version == 0

    async def test_create_duplicate(self, session: AsyncSession) -> None:
        await create_player(session, "ash")
        await session.commit()

        with pytest.raises(InvalidRequestError):
            await create_player(session, "ash")

    async def test_create_blank_username(self, session: AsyncSession) -> None:
        with pytest.raises(InvalidRequestError):
            await create_player(session, "   ")

    async def test_load_player(self, session: AsyncSession) -> None:
        await create_player(session, "ash")
        await session.commit()

        player = await load_player(session, "ash")

        assert player is not None
        assert player.username == "ash"

    async def test_load_player_not_found(self, session: AsyncSession) -> None:
        """Returns None for non-existent player."""
        assert await load_player(session, "nobody") is None

    async def test_require_player_not_found(self, session: AsyncSession) -> None:
        with pytest.raises(PlayerNotFoundError) as exc_info:
            await require_player(session, "nobody")
        assert exc_info.value.kind == FailureKind.NOT_FOUND
        assert exc_info.value.status_code == 404

    async def test_save_player_bumps_version(self, session: AsyncSession) -> None:
        player = await create_player(session, "ash")
        await session.commit()

        saved = await save_player(session, replace(player, currency=250, rating=1040))
        await session.commit()

        assert saved.version == 1
        loaded = await load_player(session, "ash")
        assert loaded is not None
        assert loaded.currency == 250
        assert loaded.rating == 1040
        assert loaded.version == 1

    async def test_save_player_stale_version(self, session: AsyncSession) -> None:
        player = await create_player(session, "ash")
        await save_player(session, player)
        await session.commit()

        with pytest.raises(StaleRecordError) as exc_info:
            await save_player(session, player, expected_version=0)

        assert exc_info.value.kind == FailureKind.PERSISTENCE_CONFLICT
        assert exc_info.value.actual_version == 1
        loaded = await load_player(session, "ash")
        assert loaded is not None
        assert loaded.version == 1

    async def test_save_player_not_found(self, session: AsyncSession) -> None:
        with pytest.raises(PlayerNotFoundError):
            await save_player(session, Player(username="ghost"))

    async def test_list_players_by_rating(self, session: AsyncSession) -> None:
        for name, rating in [("ash", 1000), ("brock", 1100), ("misty", 1100)]:
            player = await create_player(session, name)
            await save_player(session, replace(player, rating=rating))
        await session.commit()

        players = await list_players(session, sort_by="rating")

        assert [p.username for p in players] == ["brock", "misty", "ash"]

    async def test_list_players_by_level_limit(self, session: AsyncSession) -> None:
        for name, level in [("ash", 3), ("brock", 1), ("misty", 5)]:
            player = await create_player(session, name)
            await save_player(session, replace(player, level=level))
        await session.commit()

        players = await list_players(session, sort_by="level", limit=2)

        assert [p.username for p in players] == ["misty", "ash"]


class TestCollectionOperations:
    async def test_append_and_load(self, session: AsyncSession, drawer: GachaDrawer) -> None:
        await create_player(session, "ash")
        cards = drawer.draw(5)

        owned = await append_cards_to_collection(session, "ash", cards)
        await session.commit()

        assert [o.card for o in owned] == cards
        assert len({o.id for o in owned}) == 5

        loaded = await load_collection(session, "ash")
        assert [o.id for o in loaded] == [o.id for o in owned]
        assert [o.card for o in loaded] == cards

    async def test_duplicates_kept(self, session: AsyncSession, make_card) -> None:
        await create_player(session, "ash")
        card = make_card(30, Attribute.WATER, name="Tide Crab")

        await append_cards_to_collection(session, "ash", [card, card])
        await append_cards_to_collection(session, "ash", [card])
        await session.commit()

        loaded = await load_collection(session, "ash")
        assert len(loaded) == 3

    async def test_card_fields_round_trip(self, session: AsyncSession, make_card) -> None:
        await create_player(session, "ash")
        card = make_card(77, Attribute.DARK, name="Void Empress", rarity=Rarity.LEGENDARY)

        await append_cards_to_collection(session, "ash", [card])
        await session.commit()

        (loaded,) = await load_collection(session, "ash")
        assert loaded.card == card

    async def test_load_player_with_collection(
        self, session: AsyncSession, drawer: GachaDrawer
    ) -> None:
        await create_player(session, "ash")
        cards = drawer.draw(3)
        await append_cards_to_collection(session, "ash", cards)
        await session.commit()

        player = await load_player(session, "ash", with_collection=True)

        assert player is not None
        assert [o.card for o in player.collection] == cards
        assert list(player.collection) == await load_collection(session, "ash")

    async def test_save_player_keeps_collection(
        self, session: AsyncSession, drawer: GachaDrawer
    ) -> None:
        player = await create_player(session, "ash")
        await append_cards_to_collection(session, "ash", drawer.draw(4))
        await save_player(session, player)
        await session.commit()

        assert len(await load_collection(session, "ash")) == 4

    async def test_unknown_player(self, session: AsyncSession, drawer: GachaDrawer) -> None:
        with pytest.raises(PlayerNotFoundError):
            await append_cards_to_collection(session, "nobody", drawer.draw(1))
        with pytest.raises(PlayerNotFoundError):
            await load_collection(session, "nobody")


class TestMatchRecordOperations:
    async def test_append_and_list(self, session: AsyncSession) -> None:
        player = await create_player(session, "ash")
        engine = ProgressionEngine()

        for scores in [(6, 3, 1), (2, 8, 0)]:
            outcome = MatchOutcome.from_scores(*scores)
            update = engine.apply_outcome(player, outcome)
            await append_match_record(session, "ash", outcome, update)
        await session.commit()

        records = await list_match_records(session, "ash")

        assert [r.winner for r in records] == [MatchWinner.OPPONENT, MatchWinner.PLAYER]
        latest = records[0]
        assert latest.player_score == 2
        assert latest.opponent_score == 8
        assert latest.rating_change < 0
        assert records[1].ties == 1
        assert records[1].xp_gained == 50

    async def test_list_limit(self, session: AsyncSession) -> None:
        player = await create_player(session, "ash")
        engine = ProgressionEngine()
        outcome = MatchOutcome.from_scores(5, 5)
        for _ in range(3):
            await append_match_record(
                session, "ash", outcome, engine.apply_outcome(player, outcome)
            )
        await session.commit()

        assert len(await list_match_records(session, "ash", limit=2)) == 2

    async def test_unknown_player(self, session: AsyncSession) -> None:
        with pytest.raises(PlayerNotFoundError):
            await list_match_records(session, "nobody")


class TestCascade:
    async def test_deleting_player_removes_cards_and_history(
        self, session: AsyncSession, make_card
    ) -> None:
        """Foreign keys are enforced, so stored rows follow their player."""
        player = await create_player(session, "ash")
        await append_cards_to_collection(session, "ash", [make_card()])
        outcome = MatchOutcome.from_scores(6, 4)
        await append_match_record(
            session, "ash", outcome, ProgressionEngine().apply_outcome(player, outcome)
        )
        await session.commit()

        await session.execute(delete(PlayerDB).where(PlayerDB.username == "ash"))
        await session.commit()

        owned = await session.scalar(select(func.count()).select_from(OwnedCardDB))
        records = await session.scalar(select(func.count()).select_from(MatchRecordDB))
        assert owned == 0
        assert records == 0


@pytest.fixture
async def file_engine(tmp_path):
    """A SQLite file database that several sessions and engines can share."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'players.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


class TestConcurrentWriters:
    async def test_second_session_sees_conflict(self, file_engine) -> None:
        sessions = async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)
        async with sessions() as setup:
            player = await create_player(setup, "ash")
            await setup.commit()

        async with sessions() as writer_a, sessions() as writer_b:
            await require_player(writer_a, "ash")

            await save_player(writer_b, replace(player, currency=222), expected_version=0)
            await writer_b.commit()

            with pytest.raises(StaleRecordError):
                await save_player(writer_a, replace(player, currency=111), expected_version=0)
            await writer_a.rollback()

        async with sessions() as check:
            stored = await require_player(check, "ash")
        assert stored.currency == 222
        assert stored.version == 1

    async def test_write_between_read_and_update_is_not_lost(
        self, file_engine, tmp_path
    ) -> None:
        """Another process commits right before this session's UPDATE runs."""
        sessions = async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)
        async with sessions() as setup:
            await create_player(setup, "ash")
            await setup.commit()

        other_process = create_engine(f"sqlite:///{tmp_path / 'players.db'}")
        fired = []

        def interleave(conn, cursor, statement, parameters, context, executemany):
            if fired or not statement.lstrip().upper().startswith("UPDATE PLAYERS"):
                return
            fired.append(statement)
            with other_process.begin() as other:
                other.execute(
                    text(
                        "UPDATE players SET currency = 222, version = version + 1 "
                        "WHERE username = 'ash'"
                    )
                )

        event.listen(file_engine.sync_engine, "before_cursor_execute", interleave)
        try:
            async with sessions() as writer:
                loaded = await require_player(writer, "ash")
                with pytest.raises(StaleRecordError) as exc_info:
                    await save_player(
                        writer, replace(loaded, currency=111), expected_version=loaded.version
                    )
                await writer.rollback()
        finally:
            event.remove(file_engine.sync_engine, "before_cursor_execute", interleave)
            other_process.dispose()

        assert fired
        assert exc_info.value.actual_version == 1
        async with sessions() as check:
            stored = await require_player(check, "ash")
        assert stored.currency == 222
        assert stored.version == 1
