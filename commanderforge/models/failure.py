"""
Failure envelope and the deck-build error taxonomy.

Every user-visible outcome is classified before it leaves the API:

- Success: the deck (or suggestion list) was produced
- KnownFailure: the engine knows exactly why it stopped

Deck build failures are terminal. The engine never returns a partial deck;
it raises one of the DeckBuildError subclasses below and the message is shown
to the player verbatim.

AUTHORITY BOUNDARY:
All error responses pass through `finalize_response()`.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Resource failures
    NOT_FOUND = "not_found"
    MISSING_CARD_DATA = "missing_card_data"
    EMPTY_RESULT = "empty_result"


class OutcomeType(str, Enum):
    """High-level outcome classification."""

    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"


T = TypeVar("T")


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class ApiResponse(BaseModel, Generic[T]):
    """Universal response envelope for API failures and successes."""

    outcome: OutcomeType = Field(
        ...,
        description="High-level classification of the result",
    )
    data: T | None = Field(
        default=None,
        description="Response data (present on success)",
    )
    failure: FailureDetail | None = Field(
        default=None,
        description="Failure details (present on non-success)",
    )

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse[Any]":
        """Create a known failure response."""
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=kind,
                message=message,
                detail=detail,
                suggestion=suggestion,
            ),
        )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ApiResponse[Any]:
        """Convert to an ApiResponse."""
        return ApiResponse.known_failure(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


SYNC_HINT = "Sync the card database from Settings first."


class DeckBuildError(KnownError):
    """Base class for terminal deck build failures."""


class MissingCardDataError(DeckBuildError):
    """Owned card names could not be resolved to card records."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        shown = ", ".join(self.missing[:5])
        extra = len(self.missing) - 5
        if extra > 0:
            shown = f"{shown} and {extra} more"
        super().__init__(
            kind=FailureKind.MISSING_CARD_DATA,
            message=f"Cards not in database: {shown}. {SYNC_HINT}",
            detail=f"{len(self.missing)} unresolved card names",
            suggestion=SYNC_HINT,
            status_code=422,
        )


class CommanderNotFoundError(DeckBuildError):
    """The commander name could not be resolved."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Commander not found: {name}. {SYNC_HINT}",
            suggestion=SYNC_HINT,
            status_code=404,
        )


class EmptyCollectionError(DeckBuildError):
    """The owned pool had no usable cards at all."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.EMPTY_RESULT,
            message=(
                "No cards in your collection could be used. "
                "Sync the card database from Settings, then try again."
            ),
            suggestion="Import a collection before building a deck.",
        )


class NoCompatibleCandidatesError(DeckBuildError):
    """Cards were owned, but none survived identity and legality filtering."""

    def __init__(self, owned_count: int):
        self.owned_count = owned_count
        super().__init__(
            kind=FailureKind.EMPTY_RESULT,
            message=(
                "No nonland cards from your collection match this commander's "
                "color identity (or legality). Add nonland cards in the "
                "commander's colors, or turn off legality for casual play."
            ),
            detail=f"{owned_count} owned cards filtered out",
        )


# =============================================================================
# FAILURE AUTHORITY BOUNDARY
# =============================================================================


def finalize_response(response: ApiResponse[Any]) -> ApiResponse[Any]:
    """
    Finalize a response through the authority boundary.

    Raises:
        ValueError: If response structure is invalid
    """
    if response.outcome == OutcomeType.SUCCESS:
        if response.failure is not None:
            raise ValueError("Success response must not have failure details")
    else:
        if response.failure is None:
            raise ValueError(f"{response.outcome.value} response must have failure details")

    return response
