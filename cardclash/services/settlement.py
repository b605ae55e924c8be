"""
Match settlement.

Persists the progression of a completed match exactly once:

1. Take the player's lock so no other update for that username interleaves
2. Save the updated player, requiring the version the match started from
3. If the stored player moved on (StaleRecordError), reload it and apply the
   same outcome to the fresh state, then save again
4. Append the match record and mark the session settled

The outcome is never applied twice: each retry starts from the reloaded
player, not from the previously updated one.
"""

import logging
from dataclasses import replace

from sqlalchemy.ext.asyncio import AsyncSession

from cardclash.config import SETTLEMENT_MAX_RETRIES
from cardclash.db.operations import append_match_record, require_player, save_player
from cardclash.models.failure import StaleRecordError, StateError
from cardclash.models.match import MatchRecord
from cardclash.services.match_session import MatchSession
from cardclash.services.player_locks import PlayerLockRegistry

logger = logging.getLogger(__name__)


async def settle_match(
    db_session: AsyncSession,
    match: MatchSession,
    locks: PlayerLockRegistry,
    max_retries: int = SETTLEMENT_MAX_RETRIES,
) -> MatchRecord:
    """
    Persist a completed match's progression and history record.

    Commits before releasing the player's lock.

    Raises:
        StateError: If the match is not complete or was already settled
        StaleRecordError: If the player kept changing through every retry
        PlayerNotFoundError: If the player was removed mid-match
    """
    if not match.is_complete:
        raise StateError("settle", match.state.value)
    if match.settled:
        raise StateError("settle", "already settled")

    outcome = match.outcome
    update = match.progression
    if outcome is None or update is None:
        raise StateError("settle", match.state.value)

    username = match.player.username
    expected_version = match.player.version

    async with locks.hold(username):
        # Another request may have settled it while we waited
        if match.settled:
            raise StateError("settle", "already settled")

        attempt = 0
        while True:
            try:
                saved = await save_player(db_session, update.player, expected_version)
                break
            except StaleRecordError as e:
                attempt += 1
                if attempt > max_retries:
                    logger.warning(
                        "Giving up settling match %s for %s after %d retries",
                        match.match_id,
                        username,
                        max_retries,
                    )
                    raise
                logger.warning(
                    "Stale player %s (expected v%d, found v%d), re-applying outcome",
                    username,
                    e.expected_version,
                    e.actual_version,
                )
                current = await require_player(db_session, username)
                update = match.progression_engine.apply_outcome(current, outcome)
                expected_version = current.version

        record = await append_match_record(db_session, username, outcome, update)
        await db_session.commit()

        match.mark_settled(replace(update, player=saved), record)

    logger.info(
        "Settled match %s for %s: %s, rating %+d",
        match.match_id,
        username,
        outcome.winner.value,
        update.rating_change,
    )
    return record
