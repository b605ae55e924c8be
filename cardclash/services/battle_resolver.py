"""
Battle resolver.

Resolves a single encounter between two cards. The result depends only on
the two cards and the resolver's multiplier: no randomness, no state.

Elemental advantage is a lookup in BEATS (attribute -> the attribute it
beats). An attribute with advantage multiplies its base power; the higher
effective power wins and equal effective power is a tie.
"""

from cardclash.config import settings
from cardclash.models.battle import BattleResult, Margin
from cardclash.models.card import Attribute, Card

BEATS: dict[Attribute, Attribute] = {
    Attribute.WATER: Attribute.FIRE,
    Attribute.FIRE: Attribute.WIND,
    Attribute.WIND: Attribute.EARTH,
    Attribute.EARTH: Attribute.WATER,
    Attribute.LIGHT: Attribute.DARK,
    Attribute.DARK: Attribute.LIGHT,
}

DEFAULT_ADVANTAGE_MULTIPLIER = 1.5


def validate_dominance(beats: dict[Attribute, Attribute]) -> None:
    """
    Check that a dominance table forms cycles over every attribute.

    Each attribute must beat exactly one other attribute (never itself)
    and be beaten by exactly one.

    Raises:
        ValueError: If the table is not a set of cycles covering all attributes
    """
    attributes = set(Attribute)
    if set(beats) != attributes:
        missing = attributes - set(beats)
        raise ValueError(f"Dominance table missing attributes: {sorted(a.value for a in missing)}")
    for attacker, defender in beats.items():
        if attacker == defender:
            raise ValueError(f"{attacker.value} cannot beat itself")
    if set(beats.values()) != attributes:
        raise ValueError("Every attribute must lose to exactly one other attribute")


validate_dominance(BEATS)


class BattleResolver:
    """Pure card-vs-card resolution with a fixed advantage multiplier."""

    def __init__(
        self,
        advantage_multiplier: float = DEFAULT_ADVANTAGE_MULTIPLIER,
        beats: dict[Attribute, Attribute] | None = None,
    ):
        if advantage_multiplier <= 1.0:
            raise ValueError(f"Advantage multiplier must exceed 1.0, got {advantage_multiplier}")
        self.advantage_multiplier = advantage_multiplier
        self.beats = dict(beats) if beats is not None else BEATS
        if beats is not None:
            validate_dominance(self.beats)

    def effective_power(self, card: Card, opponent: Card) -> float:
        """Base power, multiplied when card's attribute beats the opponent's."""
        if self.beats[card.attribute] == opponent.attribute:
            return card.base_power * self.advantage_multiplier
        return float(card.base_power)

    def fight(self, a: Card, b: Card) -> BattleResult:
        """Resolve a against b."""
        a_power = self.effective_power(a, b)
        b_power = self.effective_power(b, a)

        if a_power > b_power:
            winner, loser = a, b
        elif b_power > a_power:
            winner, loser = b, a
        else:
            return BattleResult(
                first=a,
                second=b,
                winning_card=None,
                margin=Margin.TIE,
                first_power=a_power,
                second_power=b_power,
            )

        winner_advantage = self.beats[winner.attribute] == loser.attribute
        loser_advantage = self.beats[loser.attribute] == winner.attribute
        # Mutual advantage (LIGHT vs DARK) cancels out
        if winner_advantage and not loser_advantage:
            margin = Margin.ELEMENTAL
        elif loser_advantage and not winner_advantage:
            margin = Margin.UPSET
        else:
            margin = Margin.POWER

        return BattleResult(
            first=a,
            second=b,
            winning_card=winner,
            margin=margin,
            first_power=a_power,
            second_power=b_power,
        )


def get_resolver() -> BattleResolver:
    """Resolver configured from settings."""
    return BattleResolver(advantage_multiplier=settings.advantage_multiplier)
