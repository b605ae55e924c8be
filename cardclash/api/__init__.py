from cardclash.api.health import router as health_router
from cardclash.api.leaderboard import router as leaderboard_router
from cardclash.api.matches import router as matches_router
from cardclash.api.players import router as players_router

__all__ = [
    "health_router",
    "leaderboard_router",
    "matches_router",
    "players_router",
]
