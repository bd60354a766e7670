"""
Failure classification for API responses.

Every user-visible failure is a KnownError (explainable, mapped to a status
code) or an unexpected exception (rendered as a generic 500 by main.py).

Per-card lookup failures are NOT exceptions: they degrade a single card to
an unavailable price and never abort the request.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"

    # Resource failures
    NOT_FOUND = "not_found"

    # Service failures
    DATA_UNAVAILABLE = "data_unavailable"
    EXTERNAL_API_ERROR = "external_api_error"

    # Unknown
    UNKNOWN = "unknown"


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
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(message)

    def to_payload(self) -> dict[str, str]:
        """Render as the JSON error body."""
        payload = {"error": self.message, "kind": self.kind.value}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class InvalidRequestError(KnownError):
    """Request body is missing or malformed."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=message,
            detail=detail,
            status_code=400,
        )


class DataUnavailableError(KnownError):
    """
    No price data can be served.

    Raised when the bulk price index has never been populated and a
    refresh attempt failed.
    """

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.DATA_UNAVAILABLE,
            message="Card price data is currently unavailable. Please try again later.",
            detail=detail,
            status_code=503,
        )


class CardNotFoundError(KnownError):
    """A single-card lookup found no match."""

    def __init__(self, card_name: str):
        self.card_name = card_name
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Card not found: {card_name}",
            status_code=404,
        )


class UpstreamServiceError(KnownError):
    """The card database answered with an error or could not be reached."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.EXTERNAL_API_ERROR,
            message="The card database could not be reached.",
            detail=detail,
            status_code=502,
        )
