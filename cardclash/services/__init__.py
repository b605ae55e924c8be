"""
Card Clash services.

Game engine (drawing, battles, matches, progression) and the coordination
around it (catalog loading, settlement, registries).
"""

from cardclash.services.battle_resolver import BEATS, BattleResolver, get_resolver
from cardclash.services.catalog import (
    DEFAULT_TIERS,
    build_default_catalog,
    get_catalog,
    load_catalog,
    parse_catalog,
)
from cardclash.services.gacha import GachaDrawer, new_drawer
from cardclash.services.match_registry import MatchRegistry, get_match_registry
from cardclash.services.match_session import FirstCardPolicy, MatchSession, OpponentPolicy
from cardclash.services.player_locks import PlayerLockRegistry, get_player_locks
from cardclash.services.progression import (
    DEFAULT_RULES,
    ProgressionEngine,
    ProgressionRules,
    add_xp,
    expected_score,
    rating_change,
)
from cardclash.services.random_source import (
    RandomSource,
    SeededRandomSource,
    SequenceRandomSource,
    new_session_source,
)
from cardclash.services.settlement import settle_match

__all__ = [
    "BEATS",
    "DEFAULT_RULES",
    "DEFAULT_TIERS",
    "BattleResolver",
    "FirstCardPolicy",
    "GachaDrawer",
    "MatchRegistry",
    "MatchSession",
    "OpponentPolicy",
    "PlayerLockRegistry",
    "ProgressionEngine",
    "ProgressionRules",
    "RandomSource",
    "SeededRandomSource",
    "SequenceRandomSource",
    "add_xp",
    "build_default_catalog",
    "expected_score",
    "get_catalog",
    "get_match_registry",
    "get_player_locks",
    "get_resolver",
    "load_catalog",
    "new_drawer",
    "new_session_source",
    "parse_catalog",
    "rating_change",
    "settle_match",
]
