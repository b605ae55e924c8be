"""
Database CRUD operations.

Provides async functions for players, their card collections, and match
history. This module is the game's persistence store: the engine never
touches the database directly.
"""

from dataclasses import replace
from typing import Literal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cardclash.models.card import Attribute, Card, CardDefinition, CardType, Rarity
from cardclash.models.db import MatchRecordDB, OwnedCardDB, PlayerDB
from cardclash.models.failure import InvalidRequestError, PlayerNotFoundError, StaleRecordError
from cardclash.models.match import MatchOutcome, MatchRecord, MatchWinner, ProgressionUpdate
from cardclash.models.player import OwnedCard, Player

LeaderboardKey = Literal["level", "currency", "rating"]


# --- Player Operations ---


async def get_player_row(session: AsyncSession, username: str) -> PlayerDB | None:
    """Get the player row, or None if no such player exists."""
    # Always read current column values so version checks see other writers
    stmt = (
        select(PlayerDB)
        .where(PlayerDB.username == username)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_player(session: AsyncSession, username: str) -> Player:
    """
    Create a new player with starting stats.

    Raises:
        InvalidRequestError: If the username is empty or already taken
    """
    username = username.strip()
    if not username:
        raise InvalidRequestError("Username must not be empty.")
    if await get_player_row(session, username) is not None:
        raise InvalidRequestError(f"Username '{username}' is already taken.")

    defaults = Player(username=username)
    row = PlayerDB(
        username=username,
        level=defaults.level,
        xp=defaults.xp,
        currency=defaults.currency,
        rating=defaults.rating,
        version=defaults.version,
    )
    session.add(row)
    try:
        await session.flush()
    except IntegrityError as e:
        raise InvalidRequestError(f"Username '{username}' is already taken.") from e
    return player_to_model(row)


async def load_player(
    session: AsyncSession, username: str, with_collection: bool = False
) -> Player | None:
    """
    Load a player by username.

    Returns None if the player does not exist. The collection is only
    loaded when requested.
    """
    stmt = (
        select(PlayerDB)
        .where(PlayerDB.username == username)
        .execution_options(populate_existing=True)
    )
    if with_collection:
        stmt = stmt.options(selectinload(PlayerDB.cards))
    result = await session.execute(stmt)
    row = result.scalar_one_or_none()
    if row is None:
        return None
    return player_to_model(row, row.cards if with_collection else None)


async def require_player(
    session: AsyncSession, username: str, with_collection: bool = False
) -> Player:
    """Load a player or raise PlayerNotFoundError."""
    player = await load_player(session, username, with_collection)
    if player is None:
        raise PlayerNotFoundError(username)
    return player


async def save_player(
    session: AsyncSession,
    player: Player,
    expected_version: int | None = None,
) -> Player:
    """
    Save a player's progression stats.

    The collection is not touched; use append_cards_to_collection().
    The version check and the write are one UPDATE, so a writer in another
    session or process cannot slip in between them.

    Args:
        player: The player state to store
        expected_version: When given, the stored version must still match it

    Returns:
        The player with its new version

    Raises:
        PlayerNotFoundError: If the player does not exist
        StaleRecordError: If the stored version differs from expected_version
    """
    stmt = update(PlayerDB).where(PlayerDB.username == player.username)
    if expected_version is not None:
        stmt = stmt.where(PlayerDB.version == expected_version)
    stmt = stmt.values(
        level=player.level,
        xp=player.xp,
        currency=player.currency,
        rating=player.rating,
        version=PlayerDB.version + 1,
    ).execution_options(synchronize_session=False)
    result = await session.execute(stmt)

    row = await get_player_row(session, player.username)
    if row is None:
        raise PlayerNotFoundError(player.username)
    # rowcount is set on UPDATE results; async type stubs lack it
    if result.rowcount == 0:  # type: ignore[attr-defined]
        raise StaleRecordError(player.username, expected_version, row.version)

    return replace(player, version=row.version)


async def list_players(
    session: AsyncSession,
    sort_by: LeaderboardKey = "rating",
    limit: int = 50,
) -> list[Player]:
    """Players ordered by the given stat (highest first), username as tiebreak."""
    column = {
        "level": PlayerDB.level,
        "currency": PlayerDB.currency,
        "rating": PlayerDB.rating,
    }[sort_by]
    result = await session.execute(
        select(PlayerDB)
        .order_by(column.desc(), PlayerDB.username)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    return [player_to_model(row) for row in result.scalars().all()]


def player_to_model(row: PlayerDB, cards: list[OwnedCardDB] | None = None) -> Player:
    """Convert a database player to a domain model."""
    collection = tuple(OwnedCard(id=c.id, card=owned_card_to_model(c)) for c in cards or ())
    return Player(
        username=row.username,
        level=row.level,
        xp=row.xp,
        currency=row.currency,
        rating=row.rating,
        collection=collection,
        version=row.version,
    )


# --- Collection Operations ---


async def append_cards_to_collection(
    session: AsyncSession, username: str, cards: list[Card]
) -> list[OwnedCard]:
    """
    Add drawn cards to a player's collection.

    Raises:
        PlayerNotFoundError: If the player does not exist
    """
    row = await get_player_row(session, username)
    if row is None:
        raise PlayerNotFoundError(username)

    owned = [
        OwnedCardDB(
            player_id=row.id,
            card_name=card.name,
            attribute=card.attribute.value,
            rarity=card.rarity.value,
            card_type=card.card_type.value,
            description=card.definition.description,
            power_min=card.definition.min_power,
            power_max=card.definition.max_power,
            base_power=card.base_power,
        )
        for card in cards
    ]
    session.add_all(owned)
    await session.flush()
    return [OwnedCard(id=o.id, card=card) for o, card in zip(owned, cards, strict=True)]


async def load_collection(session: AsyncSession, username: str) -> list[OwnedCard]:
    """
    Get every card a player owns, oldest first.

    Raises:
        PlayerNotFoundError: If the player does not exist
    """
    player = await require_player(session, username, with_collection=True)
    return list(player.collection)


def owned_card_to_model(owned: OwnedCardDB) -> Card:
    """Convert a stored card to a domain model."""
    definition = CardDefinition(
        name=owned.card_name,
        attribute=Attribute(owned.attribute),
        rarity=Rarity(owned.rarity),
        card_type=CardType(owned.card_type),
        description=owned.description,
        base_power_range=(owned.power_min, owned.power_max),
    )
    return Card(definition=definition, base_power=owned.base_power)


# --- Match History Operations ---


async def append_match_record(
    session: AsyncSession,
    username: str,
    outcome: MatchOutcome,
    update: ProgressionUpdate,
) -> MatchRecord:
    """
    Store the summary of a settled match.

    Raises:
        PlayerNotFoundError: If the player does not exist
    """
    row = await get_player_row(session, username)
    if row is None:
        raise PlayerNotFoundError(username)

    record = MatchRecordDB(
        player_id=row.id,
        winner=outcome.winner.value,
        player_score=outcome.player_score,
        opponent_score=outcome.opponent_score,
        ties=outcome.ties,
        rating_change=update.rating_change,
        xp_gained=update.xp_gained,
        currency_gained=update.currency_gained,
    )
    session.add(record)
    await session.flush()
    return match_record_to_model(record, username)


async def list_match_records(
    session: AsyncSession, username: str, limit: int = 50
) -> list[MatchRecord]:
    """
    Get a player's match history, newest first.

    Raises:
        PlayerNotFoundError: If the player does not exist
    """
    row = await get_player_row(session, username)
    if row is None:
        raise PlayerNotFoundError(username)

    result = await session.execute(
        select(MatchRecordDB)
        .where(MatchRecordDB.player_id == row.id)
        .order_by(MatchRecordDB.id.desc())
        .limit(limit)
    )
    return [match_record_to_model(r, username) for r in result.scalars().all()]


def match_record_to_model(record: MatchRecordDB, username: str) -> MatchRecord:
    """Convert a database match record to a domain model."""
    return MatchRecord(
        username=username,
        winner=MatchWinner(record.winner),
        player_score=record.player_score,
        opponent_score=record.opponent_score,
        ties=record.ties,
        rating_change=record.rating_change,
        xp_gained=record.xp_gained,
        currency_gained=record.currency_gained,
        created_at=record.created_at,
    )
