from dataclasses import dataclass, field

from cardclash.config import BASELINE_RATING, STARTING_CURRENCY, STARTING_LEVEL
from cardclash.models.card import Card

XP_BASE = 100
XP_PER_LEVEL = 50


def xp_to_next_level(level: int) -> int:
    """
    XP needed to advance from `level` to `level + 1`.

    Grows linearly with level, so leveling never gets easier.
    """
    if level < 1:
        raise ValueError(f"Level must be >= 1, got {level}")
    return XP_BASE + XP_PER_LEVEL * (level - 1)


@dataclass(frozen=True)
class OwnedCard:
    """A card in a player's collection, with the id it is stored under."""

    id: int
    card: Card


@dataclass(frozen=True)
class Player:
    """
    A player's persistent progression state.

    Players are immutable; progression produces a new Player via
    dataclasses.replace.

    Attributes:
        username: Unique identity
        level: Current level (>= 1)
        xp: Progress toward the next level (0 <= xp < xp_to_next_level)
        currency: Spendable balance (>= 0)
        rating: Competitive rating (>= 0)
        collection: Owned cards, duplicates allowed
        version: Incremented on every save, used to detect lost updates
    """

    username: str
    level: int = STARTING_LEVEL
    xp: int = 0
    currency: int = STARTING_CURRENCY
    rating: int = BASELINE_RATING
    collection: tuple[OwnedCard, ...] = field(default=(), compare=False)
    version: int = 0

    def __post_init__(self) -> None:
        if not self.username:
            raise ValueError("Player username must not be empty")
        if self.level < 1:
            raise ValueError(f"Player level must be >= 1, got {self.level}")
        if not 0 <= self.xp < self.xp_to_next_level:
            raise ValueError(
                f"Player xp {self.xp} outside [0, {self.xp_to_next_level}) at level {self.level}"
            )
        if self.currency < 0:
            raise ValueError(f"Player currency must be >= 0, got {self.currency}")
        if self.rating < 0:
            raise ValueError(f"Player rating must be >= 0, got {self.rating}")

    @property
    def xp_to_next_level(self) -> int:
        return xp_to_next_level(self.level)

    def collection_counts(self) -> dict[str, int]:
        """Owned cards aggregated by name, in first-acquired order."""
        counts: dict[str, int] = {}
        for owned in self.collection:
            counts[owned.card.name] = counts.get(owned.card.name, 0) + 1
        return counts
