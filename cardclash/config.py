from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Card Clash"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./card_clash.db"

    # JSON catalog file; the built-in catalog is used when unset
    catalog_path: Path | None = None

    # Fixed seed makes every draw and opponent hand reproducible (tests, demos).
    # When unset each session is seeded from OS entropy.
    rng_seed: int | None = None

    battle_size: int = 10
    power_distribution: Literal["uniform", "triangular"] = "uniform"
    advantage_multiplier: float = 1.5

    # Browser origins allowed to call the API
    cors_origins: list[str] = ["*"]


settings = Settings()


# =============================================================================
# GAME CONSTANTS
# =============================================================================

# Number of cards in the "ten draw" option
TEN_DRAW_COUNT = 10

# Upper bound for a single draw request
MAX_DRAW_COUNT = 100

# Starting values for a freshly created player
STARTING_LEVEL = 1
STARTING_CURRENCY = 0
BASELINE_RATING = 1000

# Computer opponents are rated at the baseline
OPPONENT_RATING = BASELINE_RATING

# Optimistic-concurrency retries when settling a match
SETTLEMENT_MAX_RETRIES = 3
