"""
Liveness and readiness probes.

`/ready` answers 503 until both the database and the card catalog work;
a server that cannot draw cards is not ready for players.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cardclash.db.database import get_session
from cardclash.models.catalog import CatalogError
from cardclash.services.catalog import get_catalog
from cardclash.services.match_registry import MatchRegistry, get_match_registry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    database: str | None = None
    catalog_cards: int | None = None
    active_matches: int | None = None


async def _database_ok(session: AsyncSession) -> bool:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Database unreachable", exc_info=True)
        return False
    return True


def _catalog_size() -> int | None:
    try:
        return len(get_catalog())
    except (CatalogError, OSError):
        logger.warning("Card catalog failed to load", exc_info=True)
        return None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Process is up. Nothing else is checked."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    registry: Annotated[MatchRegistry, Depends(get_match_registry)],
) -> HealthResponse:
    if not await _database_ok(session):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")

    catalog_cards = _catalog_size()
    if catalog_cards is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="connected")

    return HealthResponse(
        status="ready",
        database="connected",
        catalog_cards=catalog_cards,
        active_matches=len(registry),
    )
