from cardclash.db.database import get_session, init_db
from cardclash.db.operations import (
    append_cards_to_collection,
    append_match_record,
    create_player,
    list_match_records,
    list_players,
    load_collection,
    load_player,
    match_record_to_model,
    owned_card_to_model,
    player_to_model,
    require_player,
    save_player,
)

__all__ = [
    "append_cards_to_collection",
    "append_match_record",
    "create_player",
    "get_session",
    "init_db",
    "list_match_records",
    "list_players",
    "load_collection",
    "load_player",
    "match_record_to_model",
    "owned_card_to_model",
    "player_to_model",
    "require_player",
    "save_player",
]
