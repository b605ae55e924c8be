"""
Match API endpoints.

A match starts by confirming a battle hand of owned cards, then plays one
round per request. The round that completes the match also settles it:
the player's progression is saved and a history record is written.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from cardclash.api.schemas import CardResponse, PlayerResponse
from cardclash.config import settings
from cardclash.db import require_player
from cardclash.db.database import get_session
from cardclash.models.failure import InvalidRequestError
from cardclash.models.match import RoundResult
from cardclash.services.battle_resolver import get_resolver
from cardclash.services.gacha import new_drawer
from cardclash.services.match_registry import MatchRegistry, get_match_registry
from cardclash.services.match_session import MatchSession
from cardclash.services.player_locks import PlayerLockRegistry, get_player_locks
from cardclash.services.progression import ProgressionEngine
from cardclash.services.random_source import RandomSource, new_session_source
from cardclash.services.settlement import settle_match

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matches", tags=["matches"])


class MatchStartRequest(BaseModel):
    """Request model for starting a match."""

    username: str
    card_ids: list[int] = Field(
        ...,
        description="Collection ids of the cards to battle with, in hand order",
    )


class RoundRequest(BaseModel):
    """Request model for playing a round."""

    position: int = Field(
        ...,
        description="Position (0-based) of the card in the confirmed hand",
    )


class HandCardResponse(BaseModel):
    position: int
    played: bool
    card: CardResponse


class MatchResultResponse(BaseModel):
    """Outcome and progression of a completed match."""

    winner: str
    xp_gained: int
    levels_gained: int
    currency_gained: int
    rating_change: int
    player: PlayerResponse


class MatchResponse(BaseModel):
    """Current state of a match."""

    match_id: str
    username: str
    state: str
    battle_size: int
    round_index: int
    player_score: int
    opponent_score: int
    ties: int
    hand: list[HandCardResponse] = Field(default_factory=list)
    opponent_hand: list[CardResponse] = Field(
        default_factory=list,
        description="Opponent cards not played yet",
    )
    result: MatchResultResponse | None = None
    settled: bool = False


class RoundResponse(BaseModel):
    """Response model for one played round."""

    round_number: int
    player_card: CardResponse
    opponent_card: CardResponse
    player_power: float
    opponent_power: float
    round_winner: str
    margin: str
    match: MatchResponse


def match_to_response(match: MatchSession) -> MatchResponse:
    """Convert a match session to its API representation."""
    remaining = set(match.remaining_positions)
    result = None
    if match.outcome is not None and match.progression is not None:
        result = MatchResultResponse(
            winner=match.outcome.winner.value,
            xp_gained=match.progression.xp_gained,
            levels_gained=match.progression.levels_gained,
            currency_gained=match.progression.currency_gained,
            rating_change=match.progression.rating_change,
            player=PlayerResponse.from_player(match.progression.player),
        )
    return MatchResponse(
        match_id=match.match_id,
        username=match.player.username,
        state=match.state.value,
        battle_size=match.battle_size,
        round_index=match.round_index,
        player_score=match.player_score,
        opponent_score=match.opponent_score,
        ties=match.ties,
        hand=[
            HandCardResponse(
                position=i,
                played=i not in remaining,
                card=CardResponse.from_card(card),
            )
            for i, card in enumerate(match.confirmed_hand)
        ],
        opponent_hand=[CardResponse.from_card(card) for card in match.opponent_hand],
        result=result,
        settled=match.settled,
    )


def round_to_response(result: RoundResult, match: MatchSession) -> RoundResponse:
    return RoundResponse(
        round_number=result.round_number,
        player_card=CardResponse.from_card(result.player_card),
        opponent_card=CardResponse.from_card(result.opponent_card),
        player_power=result.battle.first_power,
        opponent_power=result.battle.second_power,
        round_winner=result.round_winner.value,
        margin=result.battle.margin.value,
        match=match_to_response(match),
    )


@router.post("", response_model=MatchResponse, status_code=status.HTTP_201_CREATED)
async def start_match(
    request: MatchStartRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    registry: Annotated[MatchRegistry, Depends(get_match_registry)],
    source: Annotated[RandomSource, Depends(new_session_source)],
) -> MatchResponse:
    """
    Confirm a battle hand and start a match against a drawn opponent.

    The hand must be exactly the configured battle size, built from
    distinct cards the player owns. Any unfinished match the player had is
    abandoned.
    """
    player = await require_player(session, request.username, with_collection=True)

    if len(set(request.card_ids)) != len(request.card_ids):
        raise InvalidRequestError(
            "A card can only be placed in the hand once.",
            detail=f"card_ids={request.card_ids}",
        )

    owned = {o.id: o.card for o in player.collection}
    missing = [card_id for card_id in request.card_ids if card_id not in owned]
    if missing:
        raise InvalidRequestError(
            "The hand contains cards that are not in your collection.",
            detail=f"unknown card ids: {missing}",
        )

    match = MatchSession(
        player=player,
        drawer=new_drawer(source),
        resolver=get_resolver(),
        progression=ProgressionEngine(),
        battle_size=settings.battle_size,
    )
    match.confirm_hand([owned[card_id] for card_id in request.card_ids])
    registry.register(match)

    return match_to_response(match)


@router.get("/{match_id}", response_model=MatchResponse)
async def get_match(
    match_id: str,
    registry: Annotated[MatchRegistry, Depends(get_match_registry)],
) -> MatchResponse:
    """Get the current state of a match."""
    return match_to_response(registry.get(match_id))


@router.post("/{match_id}/rounds", response_model=RoundResponse)
async def play_round(
    match_id: str,
    request: RoundRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    registry: Annotated[MatchRegistry, Depends(get_match_registry)],
    locks: Annotated[PlayerLockRegistry, Depends(get_player_locks)],
) -> RoundResponse:
    """
    Play the card at `position` against the opponent's next card.

    The final round settles the match before responding.
    """
    match = registry.get(match_id)
    result = match.play_round(request.position)

    if match.is_complete and not match.settled:
        await settle_match(session, match, locks)

    return round_to_response(result, match)


@router.post("/{match_id}/settle", response_model=MatchResponse)
async def settle(
    match_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    registry: Annotated[MatchRegistry, Depends(get_match_registry)],
    locks: Annotated[PlayerLockRegistry, Depends(get_player_locks)],
) -> MatchResponse:
    """
    Retry settling a completed match.

    Only needed when settlement failed on the final round.
    """
    match = registry.get(match_id)
    await settle_match(session, match, locks)
    return match_to_response(match)
