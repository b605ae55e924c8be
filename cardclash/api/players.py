"""
Player API endpoints.

Create players, read their stats, collection and match history, and draw
new cards into their collection.
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from cardclash.api.schemas import CardResponse, OwnedCardResponse, PlayerResponse
from cardclash.config import MAX_DRAW_COUNT
from cardclash.db import (
    append_cards_to_collection,
    create_player,
    list_match_records,
    require_player,
)
from cardclash.db.database import get_session
from cardclash.models.failure import InvalidRequestError
from cardclash.services.gacha import new_drawer
from cardclash.services.random_source import RandomSource, new_session_source

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/players", tags=["players"])


class PlayerCreateRequest(BaseModel):
    """Request model for creating a player."""

    username: str = Field(..., max_length=255, examples=["ash"])


class CollectionResponse(BaseModel):
    """Response model for a player's collection."""

    username: str
    cards: list[OwnedCardResponse] = Field(default_factory=list)
    counts: dict[str, int] = Field(
        default_factory=dict,
        description="Number of copies owned per card name",
    )
    total_cards: int = 0
    unique_cards: int = 0


class DrawRequest(BaseModel):
    """Request model for a gacha draw."""

    count: int = Field(
        default=1,
        description=f"Number of cards to draw (1 for a single draw, 10 for a ten draw, "
        f"at most {MAX_DRAW_COUNT})",
        examples=[1, 10],
    )


class DrawResponse(BaseModel):
    """Response model for a gacha draw."""

    username: str
    cards: list[OwnedCardResponse]
    best: CardResponse | None = Field(
        default=None,
        description="Highest rarity card of the draw",
    )


class MatchRecordResponse(BaseModel):
    """One settled match."""

    winner: str
    player_score: int
    opponent_score: int
    ties: int
    rating_change: int
    xp_gained: int
    currency_gained: int
    created_at: datetime | None = None


class HistoryResponse(BaseModel):
    """Response model for a player's match history."""

    username: str
    matches: list[MatchRecordResponse] = Field(default_factory=list)


@router.post("", response_model=PlayerResponse, status_code=status.HTTP_201_CREATED)
async def create_player_endpoint(
    request: PlayerCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlayerResponse:
    """Create a player with starting stats and an empty collection."""
    player = await create_player(session, request.username)
    logger.info("Created player %s", player.username)
    return PlayerResponse.from_player(player)


@router.get("/{username}", response_model=PlayerResponse)
async def get_player_endpoint(
    username: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlayerResponse:
    """Get a player's progression stats."""
    player = await require_player(session, username)
    return PlayerResponse.from_player(player)


@router.get("/{username}/collection", response_model=CollectionResponse)
async def get_collection_endpoint(
    username: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollectionResponse:
    """Get every card the player owns plus per-name counts."""
    player = await require_player(session, username, with_collection=True)
    counts = player.collection_counts()
    return CollectionResponse(
        username=player.username,
        cards=[OwnedCardResponse.from_owned(o) for o in player.collection],
        counts=counts,
        total_cards=len(player.collection),
        unique_cards=len(counts),
    )


@router.get("/{username}/history", response_model=HistoryResponse)
async def get_history_endpoint(
    username: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> HistoryResponse:
    """Get the player's settled matches, newest first."""
    records = await list_match_records(session, username, limit)
    return HistoryResponse(
        username=username,
        matches=[
            MatchRecordResponse(
                winner=r.winner.value,
                player_score=r.player_score,
                opponent_score=r.opponent_score,
                ties=r.ties,
                rating_change=r.rating_change,
                xp_gained=r.xp_gained,
                currency_gained=r.currency_gained,
                created_at=r.created_at,
            )
            for r in records
        ],
    )


@router.post(
    "/{username}/draws",
    response_model=DrawResponse,
    status_code=status.HTTP_201_CREATED,
)
async def draw_endpoint(
    username: str,
    request: DrawRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    source: Annotated[RandomSource, Depends(new_session_source)],
) -> DrawResponse:
    """
    Draw cards and add them to the player's collection.

    Every drawn card is kept, duplicates included.
    """
    if request.count > MAX_DRAW_COUNT:
        raise InvalidRequestError(
            f"At most {MAX_DRAW_COUNT} cards can be drawn at once.",
            detail=f"count={request.count}",
        )
    await require_player(session, username)

    cards = new_drawer(source).draw(request.count)
    owned = await append_cards_to_collection(session, username, cards)

    best = max(cards, key=lambda c: c.rarity.rank)
    logger.info(
        "Player %s drew %d cards (best: %s %s)",
        username,
        len(cards),
        best.rarity.value,
        best.name,
    )
    return DrawResponse(
        username=username,
        cards=[OwnedCardResponse.from_owned(o) for o in owned],
        best=CardResponse.from_card(best),
    )
