"""
Error envelope for the card game.

Errors the game can explain derive from KnownError. Each subclass names
its FailureKind and the HTTP status the API answers with, so handlers only
need `to_response()`. Anything else becomes an unknown failure whose
message never leaks the original exception text.

Engine rejections (bad draw count, bad round selection, wrong match state)
leave game state untouched and are never worth retrying as-is. Persistence
kinds are kept separate and flagged retryable.
"""

from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """What went wrong, as reported to clients."""

    INVALID_INPUT = "invalid_input"
    INVALID_SELECTION = "invalid_selection"
    INVALID_STATE = "invalid_state"
    NOT_FOUND = "not_found"
    PERSISTENCE_CONFLICT = "persistence_conflict"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        """Whether the same request may succeed if sent again."""
        return self in _RETRYABLE_KINDS


_RETRYABLE_KINDS = frozenset(
    {FailureKind.PERSISTENCE_CONFLICT, FailureKind.SERVICE_UNAVAILABLE, FailureKind.UNKNOWN}
)


class OutcomeType(str, Enum):
    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


T = TypeVar("T")


class FailureDetail(BaseModel):
    kind: FailureKind = Field(..., description="Failure category")
    message: str = Field(..., description="Explanation safe to show a player")
    detail: str | None = Field(default=None, description="Extra context, e.g. valid positions")
    suggestion: str | None = Field(default=None, description="What the player can do next")
    retryable: bool = Field(default=False, description="True if resending may succeed")

    @classmethod
    def of(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "FailureDetail":
        return cls(
            kind=kind,
            message=message,
            detail=detail,
            suggestion=suggestion,
            retryable=kind.retryable,
        )


class ApiResponse(BaseModel, Generic[T]):
    """
    Result envelope.

    Error responses always use it. `data` is only set for success, and
    `failure` only for the two failure outcomes.
    """

    outcome: OutcomeType
    data: T | None = None
    failure: FailureDetail | None = None

    @classmethod
    def success(cls, data: T) -> "ApiResponse[T]":
        return cls(outcome=OutcomeType.SUCCESS, data=data)

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse[Any]":
        failure = FailureDetail.of(kind, message, detail, suggestion)
        return cls(outcome=OutcomeType.KNOWN_FAILURE, failure=failure)


UNKNOWN_FAILURE_MESSAGE = "Something went wrong and the cause is not known. Please retry."


def create_unknown_failure(exception: Exception, include_type: bool = True) -> ApiResponse[Any]:
    """Wrap an unexpected exception, exposing at most its type name."""
    failure = FailureDetail.of(
        FailureKind.UNKNOWN,
        UNKNOWN_FAILURE_MESSAGE,
        detail=type(exception).__name__ if include_type else None,
        suggestion="If this keeps happening, report it along with the time of the request.",
    )
    return ApiResponse(outcome=OutcomeType.UNKNOWN_FAILURE, failure=failure)


class KnownError(Exception):
    """
    A failure the game can explain to the player.

    Subclasses set `kind` and `status_code` on the class.
    """

    kind: ClassVar[FailureKind] = FailureKind.INVALID_INPUT
    status_code: ClassVar[int] = 400

    def __init__(self, message: str, detail: str | None = None, suggestion: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.suggestion = suggestion

    def to_response(self) -> ApiResponse[Any]:
        return ApiResponse.known_failure(self.kind, self.message, self.detail, self.suggestion)


# --- Engine rejections ---


class InvalidRequestError(KnownError):
    """Malformed input, such as a bad draw count or a wrong hand size."""

    kind = FailureKind.INVALID_INPUT


class InvalidSelectionError(KnownError):
    """The chosen hand position is out of range or was already played."""

    kind = FailureKind.INVALID_SELECTION

    def __init__(self, selector: object, remaining: list[int]):
        self.selector = selector
        self.remaining = remaining
        super().__init__(
            f"Card {selector!r} is not a remaining card in your hand.",
            detail=f"Playable positions: {remaining}",
            suggestion="Pick one of the cards you have not played yet.",
        )


class StateError(KnownError):
    kind = FailureKind.INVALID_STATE
    status_code = 409

    def __init__(self, operation: str, state: str):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while the match is {state}.")


# --- Lookups and persistence ---


class PlayerNotFoundError(KnownError):
    kind = FailureKind.NOT_FOUND
    status_code = 404

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Player '{username}' not found.", suggestion="Create the player first.")


class MatchNotFoundError(KnownError):
    """Unknown match id, or the match was replaced by a newer one."""

    kind = FailureKind.NOT_FOUND
    status_code = 404

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(
            f"Match '{match_id}' not found.",
            suggestion="Start a new match by confirming a hand.",
        )


class StaleRecordError(KnownError):
    """The stored player version moved on since it was loaded."""

    kind = FailureKind.PERSISTENCE_CONFLICT
    status_code = 409

    def __init__(self, username: str, expected_version: int, actual_version: int):
        self.username = username
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Player '{username}' was modified concurrently.",
            detail=f"expected version {expected_version}, found {actual_version}",
            suggestion="Reload the player and retry.",
        )
