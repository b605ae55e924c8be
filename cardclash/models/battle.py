from dataclasses import dataclass
from enum import Enum

from cardclash.models.card import Card


class Margin(str, Enum):
    """How a single encounter was decided."""

    ELEMENTAL = "elemental"  # winner held the elemental advantage
    POWER = "power"  # no advantage either way, higher power won
    UPSET = "upset"  # winner overcame the opponent's advantage
    TIE = "tie"


@dataclass(frozen=True)
class BattleResult:
    """
    Outcome of one card-vs-card encounter.

    Attributes:
        first: The first combatant passed to the resolver
        second: The second combatant passed to the resolver
        winning_card: first, second, or None for an exact tie
        margin: How decisive the result was
        first_power: Effective power of the first card
        second_power: Effective power of the second card
    """

    first: Card
    second: Card
    winning_card: Card | None
    margin: Margin
    first_power: float
    second_power: float

    @property
    def is_tie(self) -> bool:
        return self.winning_card is None

    def __str__(self) -> str:
        if self.winning_card is None:
            return f"Tie: {self.first.name} and {self.second.name} ({self.first_power:g} each)"
        if self.winning_card is self.first:
            loser, winner_power, loser_power = self.second, self.first_power, self.second_power
        else:
            loser, winner_power, loser_power = self.first, self.second_power, self.first_power
        return (
            f"{self.winning_card.name} defeats {loser.name} "
            f"({winner_power:g} vs {loser_power:g}, {self.margin.value})"
        )
