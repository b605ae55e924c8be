from cardclash.models.battle import BattleResult, Margin
from cardclash.models.card import Attribute, Card, CardDefinition, CardType, Rarity
from cardclash.models.catalog import CardCatalog, CatalogError, RarityTier
from cardclash.models.failure import (
    ApiResponse,
    FailureDetail,
    FailureKind,
    InvalidRequestError,
    InvalidSelectionError,
    KnownError,
    MatchNotFoundError,
    OutcomeType,
    PlayerNotFoundError,
    StaleRecordError,
    StateError,
    create_unknown_failure,
)
from cardclash.models.match import (
    MatchOutcome,
    MatchRecord,
    MatchState,
    MatchWinner,
    ProgressionUpdate,
    RoundResult,
)
from cardclash.models.player import OwnedCard, Player, xp_to_next_level

__all__ = [
    "ApiResponse",
    "Attribute",
    "BattleResult",
    "Card",
    "CardCatalog",
    "CardDefinition",
    "CardType",
    "CatalogError",
    "FailureDetail",
    "FailureKind",
    "InvalidRequestError",
    "InvalidSelectionError",
    "KnownError",
    "Margin",
    "MatchNotFoundError",
    "MatchOutcome",
    "MatchRecord",
    "MatchState",
    "MatchWinner",
    "OutcomeType",
    "OwnedCard",
    "Player",
    "PlayerNotFoundError",
    "ProgressionUpdate",
    "Rarity",
    "RarityTier",
    "RoundResult",
    "StaleRecordError",
    "StateError",
    "create_unknown_failure",
    "xp_to_next_level",
]
