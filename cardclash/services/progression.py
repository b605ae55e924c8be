"""
Progression engine.

Turns a match outcome into a player update: experience (with level-ups),
currency, and an ELO-style rating change.

apply_outcome() is a pure function of (player, outcome). It is NOT safe to
apply the same outcome twice to the persisted player; match sessions and
settlement make sure each completed match is applied exactly once.
"""

import logging
from dataclasses import dataclass, replace

from cardclash.models.match import MatchOutcome, MatchWinner, ProgressionUpdate
from cardclash.models.player import Player, xp_to_next_level

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressionRules:
    """Reward table and rating parameters."""

    win_xp: int = 50
    draw_xp: int = 20
    loss_xp: int = 10
    win_currency: int = 100
    draw_currency: int = 40
    loss_currency: int = 20
    level_up_bonus: int = 50
    k_factor: int = 32

    def __post_init__(self) -> None:
        if min(self.win_xp, self.draw_xp, self.loss_xp) < 0:
            raise ValueError("XP rewards must be non-negative")
        if not self.win_xp >= self.draw_xp >= self.loss_xp:
            raise ValueError("XP rewards must satisfy win >= draw >= loss")
        if min(self.win_currency, self.draw_currency, self.loss_currency, self.level_up_bonus) < 0:
            raise ValueError("Currency rewards must be non-negative")
        if not self.win_currency >= self.draw_currency >= self.loss_currency:
            raise ValueError("Currency rewards must satisfy win >= draw >= loss")
        if self.k_factor <= 0:
            raise ValueError("K factor must be positive")


DEFAULT_RULES = ProgressionRules()

_ACTUAL_SCORE = {
    MatchWinner.PLAYER: 1.0,
    MatchWinner.DRAW: 0.5,
    MatchWinner.OPPONENT: 0.0,
}


def expected_score(rating: int, opponent_rating: int) -> float:
    """ELO expected score of `rating` against `opponent_rating`."""
    return 1.0 / (1.0 + 10 ** ((opponent_rating - rating) / 400))


def rating_change(
    rating: int,
    opponent_rating: int,
    winner: MatchWinner,
    k_factor: int = DEFAULT_RULES.k_factor,
) -> int:
    """
    Rating delta for the player.

    A win never loses rating, a loss never gains, and the result never
    takes the rating below zero.
    """
    expected = expected_score(rating, opponent_rating)
    delta = round(k_factor * (_ACTUAL_SCORE[winner] - expected))

    if winner == MatchWinner.PLAYER:
        delta = max(delta, 0)
    elif winner == MatchWinner.OPPONENT:
        delta = min(delta, 0)

    # Floor at zero
    return max(delta, -rating)


def add_xp(level: int, xp: int, gained: int) -> tuple[int, int, int]:
    """
    Add experience, leveling up as many times as the total allows.

    Returns:
        (new_level, new_xp, levels_gained)
    """
    new_level = level
    new_xp = xp + gained
    while new_xp >= xp_to_next_level(new_level):
        new_xp -= xp_to_next_level(new_level)
        new_level += 1
    return new_level, new_xp, new_level - level


class ProgressionEngine:
    """Applies match outcomes to players according to a rule set."""

    def __init__(self, rules: ProgressionRules = DEFAULT_RULES):
        self.rules = rules

    def apply_outcome(self, player: Player, outcome: MatchOutcome) -> ProgressionUpdate:
        """Compute the player's state after a completed match."""
        rules = self.rules
        if outcome.winner == MatchWinner.PLAYER:
            xp_gained, currency = rules.win_xp, rules.win_currency
        elif outcome.winner == MatchWinner.DRAW:
            xp_gained, currency = rules.draw_xp, rules.draw_currency
        else:
            xp_gained, currency = rules.loss_xp, rules.loss_currency

        level, xp, levels_gained = add_xp(player.level, player.xp, xp_gained)
        currency += levels_gained * rules.level_up_bonus

        delta = rating_change(
            player.rating, outcome.opponent_rating, outcome.winner, rules.k_factor
        )

        updated = replace(
            player,
            level=level,
            xp=xp,
            currency=player.currency + currency,
            rating=player.rating + delta,
        )

        if levels_gained:
            logger.info(
                "Player %s leveled up %d -> %d",
                player.username,
                player.level,
                updated.level,
            )

        return ProgressionUpdate(
            player=updated,
            xp_gained=xp_gained,
            levels_gained=levels_gained,
            currency_gained=currency,
            rating_change=delta,
        )
