import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from cardclash.api import (
    health_router,
    leaderboard_router,
    matches_router,
    players_router,
)
from cardclash.config import settings
from cardclash.db.database import init_db
from cardclash.models.failure import KnownError, create_unknown_failure
from cardclash.services.catalog import get_catalog

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging, load the catalog and create tables before serving."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Fail fast on a broken catalog file
    catalog = get_catalog()
    logger.info("Catalog ready: %d cards", len(catalog))
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardclash"),
    lifespan=lifespan,
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=create_unknown_failure(exc).model_dump(mode="json"),
    )


app.include_router(health_router)
app.include_router(leaderboard_router)
app.include_router(matches_router)
app.include_router(players_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)
