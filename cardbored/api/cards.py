"""
Single-card lookup endpoint.

Used for hover previews: returns Scryfall's card object as-is.
"""

from typing import Annotated, Any

import httpx
from fastapi import APIRouter, Depends, Query, Response

from cardbored.api.dependencies import get_scryfall_client
from cardbored.models.failure import CardNotFoundError, InvalidRequestError, UpstreamServiceError
from cardbored.services.scryfall_client import ScryfallClient

router = APIRouter(tags=["cards"])


@router.options("/card-proxy")
async def card_proxy_options() -> Response:
    return Response(status_code=200)


@router.get("/card-proxy")
async def card_proxy(
    scryfall: Annotated[ScryfallClient, Depends(get_scryfall_client)],
    card: Annotated[str | None, Query(description="Card name (fuzzy matched)")] = None,
) -> dict[str, Any]:
    """
    Look up one card by name.

    Returns 400 without a card name, 404 if nothing matches, and 502 if
    Scryfall fails.
    """
    if not card or not card.strip():
        raise InvalidRequestError("Missing card parameter")

    try:
        data = await scryfall.get_named(card.strip(), fuzzy=True)
    except httpx.HTTPStatusError as e:
        raise UpstreamServiceError(detail=f"Scryfall returned {e.response.status_code}") from e
    except httpx.RequestError as e:
        raise UpstreamServiceError(detail=type(e).__name__) from e
    except ValueError as e:
        raise UpstreamServiceError(detail="Unreadable Scryfall response") from e

    if data is None:
        raise CardNotFoundError(card.strip())

    return data
