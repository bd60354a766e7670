"""
Health check endpoints.

Provides liveness and readiness probes. Readiness reports whether the bulk
price index has data.
"""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from cardbored.api.dependencies import get_price_index
from cardbored.services.price_index import PriceIndex

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime


class ReadyResponse(BaseModel):
    """Readiness response with price index status."""

    status: str
    price_index: str
    cards: int = 0
    fetched_at: datetime | None = None
    stale: bool | None = None
    refreshing: bool = False


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy", timestamp=datetime.now(UTC))


@router.get(
    "/ready",
    response_model=ReadyResponse,
    responses={503: {"model": ReadyResponse}},
)
async def ready(
    response: Response,
    index: Annotated[PriceIndex, Depends(get_price_index)],
) -> ReadyResponse:
    """
    Readiness probe.

    Returns ready once a price snapshot is loaded, 503 otherwise. A stale
    snapshot still counts as ready since it keeps being served.
    """
    snapshot = index.snapshot
    if snapshot is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadyResponse(
            status="not ready",
            price_index="empty",
            refreshing=index.refresh_in_progress,
        )

    return ReadyResponse(
        status="ready",
        price_index="loaded",
        cards=len(snapshot),
        fetched_at=datetime.fromtimestamp(snapshot.fetched_at_ms / 1000, tz=UTC),
        stale=index.is_stale(),
        refreshing=index.refresh_in_progress,
    )
