from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from cardclash.config import OPPONENT_RATING
from cardclash.models.battle import BattleResult
from cardclash.models.card import Card
from cardclash.models.player import Player


class MatchWinner(str, Enum):
    """Winner of a round or of a whole match."""

    PLAYER = "player"
    OPPONENT = "opponent"
    DRAW = "draw"


class MatchState(str, Enum):
    """Lifecycle of a match session."""

    AWAITING_HAND = "awaiting_hand"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class MatchOutcome:
    """Final tally of a completed match, consumed by progression."""

    winner: MatchWinner
    player_score: int
    opponent_score: int
    ties: int = 0
    opponent_rating: int = OPPONENT_RATING

    @property
    def rounds_played(self) -> int:
        return self.player_score + self.opponent_score + self.ties

    @classmethod
    def from_scores(
        cls,
        player_score: int,
        opponent_score: int,
        ties: int = 0,
        opponent_rating: int = OPPONENT_RATING,
    ) -> "MatchOutcome":
        """Build an outcome, deciding the winner from the scores."""
        if player_score > opponent_score:
            winner = MatchWinner.PLAYER
        elif opponent_score > player_score:
            winner = MatchWinner.OPPONENT
        else:
            winner = MatchWinner.DRAW
        return cls(
            winner=winner,
            player_score=player_score,
            opponent_score=opponent_score,
            ties=ties,
            opponent_rating=opponent_rating,
        )


@dataclass(frozen=True)
class RoundResult:
    """One played round: the two cards and how the battle went."""

    round_number: int
    player_card: Card
    opponent_card: Card
    battle: BattleResult

    @property
    def round_winner(self) -> MatchWinner:
        if self.battle.winning_card is None:
            return MatchWinner.DRAW
        if self.battle.winning_card is self.player_card:
            return MatchWinner.PLAYER
        return MatchWinner.OPPONENT


@dataclass(frozen=True)
class ProgressionUpdate:
    """A progression step: the updated player plus what changed."""

    player: Player
    xp_gained: int
    levels_gained: int
    currency_gained: int
    rating_change: int


@dataclass(frozen=True)
class MatchRecord:
    """A persisted summary of one completed match."""

    username: str
    winner: MatchWinner
    player_score: int
    opponent_score: int
    ties: int
    rating_change: int
    xp_gained: int
    currency_gained: int
    created_at: datetime | None = None
