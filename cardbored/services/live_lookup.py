"""
Live per-card price lookup against the Scryfall API.

Used when the bulk index cannot answer: no bulk data is available, the
caller bypasses it, or a name is missing from it.

Per card:
1. Exact name lookup.
2. On "not found" only, full-text search, taking the first result.

Failures degrade that one card to an unavailable price and the batch goes
on. Calls are paced, and at most max_cards cards are looked up per batch;
the rest are returned as not processed.
"""

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from cardbored.models.card import CardRequest, LookupStatus, ResolvedCard
from cardbored.parsers.scryfall import price_record_from_card
from cardbored.services.pacing import RequestPacer
from cardbored.services.scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL_SECONDS = 0.1
DEFAULT_MAX_CARDS = 15


class LiveLookup:
    """Resolves cards one at a time through the Scryfall API."""

    def __init__(
        self,
        client: ScryfallClient,
        min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS,
        max_cards: int = DEFAULT_MAX_CARDS,
        pacer: RequestPacer | None = None,
    ):
        if max_cards < 0:
            raise ValueError("max_cards must be >= 0")
        self.client = client
        self.max_cards = max_cards
        self.pacer = pacer or RequestPacer(min_interval)

    async def resolve_all(self, requests: Sequence[CardRequest]) -> list[ResolvedCard]:
        """
        Resolve cards sequentially, in input order.

        Cards past max_cards are marked NOT_PROCESSED without any call.
        """
        results: list[ResolvedCard] = []

        for position, request in enumerate(requests):
            if position >= self.max_cards:
                results.append(ResolvedCard.unresolved(request, LookupStatus.NOT_PROCESSED))
                continue
            results.append(await self.resolve(request))

        skipped = len(requests) - self.max_cards
        if skipped > 0:
            logger.warning(
                "Live lookup cap of %d reached; %d cards not processed", self.max_cards, skipped
            )

        return results

    async def resolve(self, request: CardRequest) -> ResolvedCard:
        """Resolve one card. Never raises for lookup failures."""
        try:
            card = await self._find_card(request.name)
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Scryfall error for %r: status %d", request.name, e.response.status_code
            )
            return ResolvedCard.unresolved(request, LookupStatus.SEARCH_FAILED)
        except httpx.RequestError as e:
            logger.warning("Transport error looking up %r: %s", request.name, e)
            return ResolvedCard.unresolved(request, LookupStatus.TRANSPORT_ERROR)
        except ValueError as e:
            # Undecodable response body
            logger.warning("Bad Scryfall response for %r: %s", request.name, e)
            return ResolvedCard.unresolved(request, LookupStatus.SEARCH_FAILED)

        if card is None or not card.get("name"):
            logger.debug("No match for %r", request.name)
            return ResolvedCard.unresolved(request, LookupStatus.NOT_FOUND)

        record = price_record_from_card(card)
        logger.debug(
            "Resolved %r as %r at %s", request.name, record.canonical_name, record.usd_price
        )
        return ResolvedCard.from_record(request, record)

    async def _find_card(self, name: str) -> dict[str, Any] | None:
        await self.pacer.wait()
        card = await self.client.get_named(name)
        if card is not None:
            return card

        await self.pacer.wait()
        return await self.client.search_first(name)
