"""
Leaderboard API endpoint.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from cardclash.db import list_players
from cardclash.db.database import get_session
from cardclash.db.operations import LeaderboardKey

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


class LeaderboardEntry(BaseModel):
    rank: int
    username: str
    level: int
    currency: int
    rating: int


class LeaderboardResponse(BaseModel):
    """Players ranked by one stat."""

    sort_by: LeaderboardKey
    entries: list[LeaderboardEntry] = Field(default_factory=list)


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    session: Annotated[AsyncSession, Depends(get_session)],
    sort_by: LeaderboardKey = "rating",
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> LeaderboardResponse:
    """
    Rank players by level, currency, or rating.

    Ties keep alphabetical username order.
    """
    players = await list_players(session, sort_by=sort_by, limit=limit)
    return LeaderboardResponse(
        sort_by=sort_by,
        entries=[
            LeaderboardEntry(
                rank=i,
                username=p.username,
                level=p.level,
                currency=p.currency,
                rating=p.rating,
            )
            for i, p in enumerate(players, start=1)
        ],
    )
