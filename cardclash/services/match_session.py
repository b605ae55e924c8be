"""
Match session.

A session runs one player-vs-opponent match:

    AWAITING_HAND --confirm_hand--> IN_PROGRESS --last play_round--> COMPLETE

confirm_hand() draws the opponent hand once. Each play_round() takes the
player's chosen card and the opponent policy's card, resolves the battle,
and updates the scores. When both hands are empty the session computes the
match outcome and applies progression exactly once.

Rejected calls raise InvalidRequestError, InvalidSelectionError or
StateError and leave the session untouched.
"""

import logging
import uuid
from collections.abc import Sequence
from typing import Protocol

from cardclash.config import OPPONENT_RATING
from cardclash.models.card import Card
from cardclash.models.failure import InvalidRequestError, InvalidSelectionError, StateError
from cardclash.models.match import (
    MatchOutcome,
    MatchRecord,
    MatchState,
    MatchWinner,
    ProgressionUpdate,
    RoundResult,
)
from cardclash.models.player import Player
from cardclash.services.battle_resolver import BattleResolver
from cardclash.services.gacha import GachaDrawer
from cardclash.services.progression import ProgressionEngine

logger = logging.getLogger(__name__)


class OpponentPolicy(Protocol):
    """Chooses which remaining opponent card to play."""

    def choose(self, remaining: Sequence[Card], player_card: Card) -> int: ...


class FirstCardPolicy:
    """The opponent always plays its first remaining card."""

    def choose(self, remaining: Sequence[Card], player_card: Card) -> int:
        return 0


class MatchSession:
    """
    One match between a player hand and a drawn opponent hand.

    Player cards are selected by their position in the confirmed hand.
    Positions stay stable for the whole match; a position can be played
    once.
    """

    def __init__(
        self,
        player: Player,
        drawer: GachaDrawer,
        resolver: BattleResolver,
        progression: ProgressionEngine,
        battle_size: int = 10,
        opponent_policy: OpponentPolicy | None = None,
        opponent_rating: int = OPPONENT_RATING,
        match_id: str | None = None,
    ):
        if battle_size < 1:
            raise ValueError(f"Battle size must be positive, got {battle_size}")
        self.match_id = match_id or uuid.uuid4().hex
        self.player = player
        self.battle_size = battle_size
        self.opponent_rating = opponent_rating
        self._drawer = drawer
        self._resolver = resolver
        self._progression = progression
        self._policy: OpponentPolicy = opponent_policy or FirstCardPolicy()

        self.state = MatchState.AWAITING_HAND
        self.player_score = 0
        self.opponent_score = 0
        self.ties = 0
        self.round_index = 0
        self.rounds: list[RoundResult] = []
        self.outcome: MatchOutcome | None = None
        self.progression: ProgressionUpdate | None = None
        self.record: MatchRecord | None = None
        self.settled = False

        self._confirmed_hand: tuple[Card, ...] = ()
        self._played: set[int] = set()
        self._opponent_hand: list[Card] = []

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def confirmed_hand(self) -> tuple[Card, ...]:
        """The full hand as confirmed, including played cards."""
        return self._confirmed_hand

    @property
    def player_hand(self) -> list[Card]:
        """Remaining (unplayed) player cards, in hand order."""
        return [
            card for i, card in enumerate(self._confirmed_hand) if i not in self._played
        ]

    @property
    def opponent_hand(self) -> list[Card]:
        """Remaining opponent cards, in hand order."""
        return list(self._opponent_hand)

    @property
    def remaining_positions(self) -> list[int]:
        """Hand positions that can still be played."""
        return [i for i in range(len(self._confirmed_hand)) if i not in self._played]

    @property
    def is_complete(self) -> bool:
        return self.state == MatchState.COMPLETE

    @property
    def progression_engine(self) -> ProgressionEngine:
        return self._progression

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def confirm_hand(self, hand: Sequence[Card]) -> list[Card]:
        """
        Lock in the player's hand and draw the opponent's.

        Returns:
            The opponent hand

        Raises:
            StateError: If a hand was already confirmed
            InvalidRequestError: If the hand size differs from the battle size
        """
        if self.state != MatchState.AWAITING_HAND:
            raise StateError("confirm a hand", self.state.value)
        if len(hand) != self.battle_size:
            raise InvalidRequestError(
                f"A battle hand must contain exactly {self.battle_size} cards.",
                detail=f"received {len(hand)} cards",
            )

        opponent_hand = self._drawer.draw(self.battle_size)

        self._confirmed_hand = tuple(hand)
        self._opponent_hand = list(opponent_hand)
        self._played = set()
        self.player_score = 0
        self.opponent_score = 0
        self.ties = 0
        self.round_index = 0
        self.rounds = []
        self.state = MatchState.IN_PROGRESS

        logger.info(
            "Match %s started for %s with %d cards",
            self.match_id,
            self.player.username,
            self.battle_size,
        )
        return list(opponent_hand)

    def play_round(self, selector: int) -> RoundResult:
        """
        Play the card at hand position `selector` against the opponent's pick.

        Raises:
            StateError: If the match is not in progress
            InvalidSelectionError: If the position is out of range or already played
        """
        if self.state != MatchState.IN_PROGRESS:
            raise StateError("play a round", self.state.value)
        if (
            isinstance(selector, bool)
            or not isinstance(selector, int)
            or not 0 <= selector < len(self._confirmed_hand)
            or selector in self._played
        ):
            raise InvalidSelectionError(selector, self.remaining_positions)

        player_card = self._confirmed_hand[selector]
        opponent_index = self._policy.choose(tuple(self._opponent_hand), player_card)
        if not 0 <= opponent_index < len(self._opponent_hand):
            raise RuntimeError(f"Opponent policy chose invalid index {opponent_index}")

        battle = self._resolver.fight(player_card, self._opponent_hand[opponent_index])

        # Validation is done; state changes start here
        opponent_card = self._opponent_hand.pop(opponent_index)
        self._played.add(selector)
        self.round_index += 1
        result = RoundResult(
            round_number=self.round_index,
            player_card=player_card,
            opponent_card=opponent_card,
            battle=battle,
        )
        self.rounds.append(result)

        if result.round_winner == MatchWinner.PLAYER:
            self.player_score += 1
        elif result.round_winner == MatchWinner.OPPONENT:
            self.opponent_score += 1
        else:
            self.ties += 1

        logger.debug(
            "Match %s round %d: %s vs %s -> %s",
            self.match_id,
            self.round_index,
            player_card,
            opponent_card,
            result.round_winner.value,
        )

        if not self._opponent_hand and len(self._played) == len(self._confirmed_hand):
            self._complete()

        return result

    def _complete(self) -> None:
        self.state = MatchState.COMPLETE
        self.outcome = MatchOutcome.from_scores(
            player_score=self.player_score,
            opponent_score=self.opponent_score,
            ties=self.ties,
            opponent_rating=self.opponent_rating,
        )
        self.progression = self._progression.apply_outcome(self.player, self.outcome)
        logger.info(
            "Match %s complete for %s: %s (%d-%d, %d ties)",
            self.match_id,
            self.player.username,
            self.outcome.winner.value,
            self.player_score,
            self.opponent_score,
            self.ties,
        )

    def mark_settled(self, update: ProgressionUpdate, record: MatchRecord) -> None:
        """
        Record that the outcome was persisted.

        `update` replaces the in-memory progression when settlement had to
        re-apply the outcome to a fresher player.
        """
        if not self.is_complete:
            raise StateError("settle", self.state.value)
        if self.settled:
            raise StateError("settle", "already settled")
        self.progression = update
        self.player = update.player
        self.record = record
        self.settled = True
