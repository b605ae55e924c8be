"""
In-memory registry of match sessions.

Each username has at most one active match. Registering a new match for a
username drops the previous one; an unfinished match dropped this way is
abandoned and never settled.
"""

import logging
from functools import lru_cache

from cardclash.models.failure import MatchNotFoundError
from cardclash.services.match_session import MatchSession

logger = logging.getLogger(__name__)


class MatchRegistry:
    """Match sessions by id, with one active match per username."""

    def __init__(self) -> None:
        self._matches: dict[str, MatchSession] = {}
        self._by_username: dict[str, str] = {}

    def register(self, match: MatchSession) -> MatchSession | None:
        """
        Add a match, replacing the username's previous one.

        Returns:
            The replaced match, or None
        """
        username = match.player.username
        previous_id = self._by_username.get(username)
        previous = self._matches.pop(previous_id, None) if previous_id else None

        if previous is not None and not previous.settled:
            logger.warning(
                "Abandoning match %s for %s (%s)",
                previous.match_id,
                username,
                previous.state.value,
            )

        self._matches[match.match_id] = match
        self._by_username[username] = match.match_id
        return previous

    def get(self, match_id: str) -> MatchSession:
        """
        Raises:
            MatchNotFoundError: If no match has this id
        """
        match = self._matches.get(match_id)
        if match is None:
            raise MatchNotFoundError(match_id)
        return match

    def active_for(self, username: str) -> MatchSession | None:
        match_id = self._by_username.get(username)
        return self._matches.get(match_id) if match_id else None

    def __len__(self) -> int:
        return len(self._matches)


@lru_cache(maxsize=1)
def get_match_registry() -> MatchRegistry:
    """Process-wide match registry."""
    return MatchRegistry()
