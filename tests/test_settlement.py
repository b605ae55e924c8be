"""Tests for match settlement and the in-memory registries."""

import asyncio
from dataclasses import replace

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from cardclash.db.operations import create_player, list_match_records, load_player, save_player
from cardclash.models.failure import MatchNotFoundError, StaleRecordError, StateError
from cardclash.models.match import MatchWinner
from cardclash.models.player import Player
from cardclash.services.battle_resolver import BattleResolver
from cardclash.services.match_registry import MatchRegistry
from cardclash.services.match_session import MatchSession
from cardclash.services.player_locks import PlayerLockRegistry
from cardclash.services.progression import ProgressionEngine
from cardclash.services.settlement import settle_match


class StubDrawer:
    def __init__(self, cards):
        self.cards = list(cards)

    def draw(self, n):
        return self.cards[:n]


def _match(player: Player, make_card, won: bool = True, size: int = 3) -> MatchSession:
    opponent_power = 10 if won else 90
    session = MatchSession(
        player=player,
        drawer=StubDrawer([make_card(opponent_power) for _ in range(size)]),
        resolver=BattleResolver(),
        progression=ProgressionEngine(),
        battle_size=size,
    )
    session.confirm_hand([make_card(50) for _ in range(size)])
    return session


def _finish(match: MatchSession) -> MatchSession:
    for position in list(match.remaining_positions):
        match.play_round(position)
    return match


class TestSettleMatch:
    async def test_persists_progression(self, session: AsyncSession, make_card) -> None:
        player = await create_player(session, "ash")
        await session.commit()
        match = _finish(_match(player, make_card))

        record = await settle_match(session, match, PlayerLockRegistry())

        assert record.winner == MatchWinner.PLAYER
        assert record.player_score == 3
        assert match.settled
        stored = await load_player(session, "ash")
        assert stored is not None
        assert stored.xp == 50
        assert stored.currency == 100
        assert stored.rating == 1016
        assert stored.version == 1
        assert match.player == stored

    async def test_writes_history(self, session: AsyncSession, make_card) -> None:
        player = await create_player(session, "ash")
        await session.commit()

        await settle_match(session, _finish(_match(player, make_card)), PlayerLockRegistry())

        records = await list_match_records(session, "ash")
        assert len(records) == 1
        assert records[0].rating_change == 16

    async def test_incomplete_match_rejected(self, session: AsyncSession, make_card) -> None:
        player = await create_player(session, "ash")
        await session.commit()
        match = _match(player, make_card)
        match.play_round(0)

        with pytest.raises(StateError):
            await settle_match(session, match, PlayerLockRegistry())

        stored = await load_player(session, "ash")
        assert stored is not None
        assert stored.version == 0

    async def test_settles_exactly_once(self, session: AsyncSession, make_card) -> None:
        player = await create_player(session, "ash")
        await session.commit()
        match = _finish(_match(player, make_card))
        locks = PlayerLockRegistry()

        await settle_match(session, match, locks)
        with pytest.raises(StateError):
            await settle_match(session, match, locks)
        assert len(locks) == 0

        stored = await load_player(session, "ash")
        assert stored is not None
        assert stored.xp == 50
        assert len(await list_match_records(session, "ash")) == 1

    async def test_stale_player_reapplies_outcome(self, session: AsyncSession, make_card) -> None:
        player = await create_player(session, "ash")
        await session.commit()
        match = _finish(_match(player, make_card))

        # Someone else updates the player while the match runs
        await save_player(session, replace(player, currency=500))
        await session.commit()

        await settle_match(session, match, PlayerLockRegistry())

        stored = await load_player(session, "ash")
        assert stored is not None
        assert stored.currency == 600
        assert stored.xp == 50
        assert stored.version == 2
        assert match.progression is not None
        assert match.progression.player.currency == 600

    async def test_gives_up_after_retries(self, session: AsyncSession, make_card) -> None:
        player = await create_player(session, "ash")
        await session.commit()
        match = _finish(_match(player, make_card))
        await save_player(session, replace(player, currency=500))
        await session.commit()

        with pytest.raises(StaleRecordError):
            await settle_match(session, match, PlayerLockRegistry(), max_retries=0)

        assert not match.settled
        assert await list_match_records(session, "ash") == []

    async def test_concurrent_matches_no_lost_update(
        self, session: AsyncSession, make_card
    ) -> None:
        player = await create_player(session, "ash")
        await session.commit()
        win = _finish(_match(player, make_card, won=True))
        loss = _finish(_match(player, make_card, won=False))
        locks = PlayerLockRegistry()

        await asyncio.gather(
            settle_match(session, win, locks),
            settle_match(session, loss, locks),
        )

        stored = await load_player(session, "ash")
        assert stored is not None
        assert stored.xp == 50 + 10
        assert stored.currency == 100 + 20
        assert stored.version == 2
        assert len(await list_match_records(session, "ash")) == 2


class TestPlayerLockRegistry:
    async def test_same_username_serialized(self) -> None:
        locks = PlayerLockRegistry()
        events: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("ash"):
                events.append(f"{name} in")
                await asyncio.sleep(0)
                events.append(f"{name} out")

        await asyncio.gather(worker("a"), worker("b"))

        assert events == ["a in", "a out", "b in", "b out"]

    async def test_different_usernames_do_not_block(self) -> None:
        locks = PlayerLockRegistry()

        async with locks.hold("ash"):
            async with locks.hold("misty"):
                assert len(locks) == 2

    async def test_lock_dropped_after_release(self) -> None:
        locks = PlayerLockRegistry()

        async with locks.hold("ash"):
            assert len(locks) == 1
        assert len(locks) == 0

    async def test_lock_kept_while_someone_waits(self) -> None:
        locks = PlayerLockRegistry()
        first_in = asyncio.Event()
        release_first = asyncio.Event()
        release_second = asyncio.Event()

        async def first() -> None:
            async with locks.hold("ash"):
                first_in.set()
                await release_first.wait()

        async def second() -> None:
            async with locks.hold("ash"):
                await release_second.wait()

        first_task = asyncio.create_task(first())
        await first_in.wait()
        second_task = asyncio.create_task(second())
        await asyncio.sleep(0)
        release_first.set()
        await first_task

        assert len(locks) == 1
        release_second.set()
        await second_task
        assert len(locks) == 0


class TestMatchRegistry:
    def test_register_and_get(self, make_card) -> None:
        registry = MatchRegistry()
        match = _match(Player(username="ash"), make_card)

        assert registry.register(match) is None
        assert registry.get(match.match_id) is match
        assert registry.active_for("ash") is match

    def test_unknown_match(self) -> None:
        with pytest.raises(MatchNotFoundError):
            MatchRegistry().get("missing")

    def test_new_match_abandons_previous(self, make_card) -> None:
        registry = MatchRegistry()
        first = _match(Player(username="ash"), make_card)
        second = _match(Player(username="ash"), make_card)

        registry.register(first)
        replaced = registry.register(second)

        assert replaced is first
        assert registry.active_for("ash") is second
        assert len(registry) == 1
        with pytest.raises(MatchNotFoundError):
            registry.get(first.match_id)

    def test_usernames_independent(self, make_card) -> None:
        registry = MatchRegistry()
        registry.register(_match(Player(username="ash"), make_card))
        registry.register(_match(Player(username="misty"), make_card))

        assert len(registry) == 2
