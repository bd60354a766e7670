from cardbored.models.card import (
    PLACEHOLDER_SET_NAMES,
    UNAVAILABLE,
    CardRequest,
    LookupStatus,
    PriceRecord,
    ResolvedCard,
)
from cardbored.models.failure import (
    CardNotFoundError,
    DataUnavailableError,
    FailureKind,
    InvalidRequestError,
    KnownError,
    UpstreamServiceError,
)

__all__ = [
    "PLACEHOLDER_SET_NAMES",
    "UNAVAILABLE",
    "CardNotFoundError",
    "CardRequest",
    "DataUnavailableError",
    "FailureKind",
    "InvalidRequestError",
    "KnownError",
    "LookupStatus",
    "PriceRecord",
    "ResolvedCard",
    "UpstreamServiceError",
]
