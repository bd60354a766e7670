"""
Card price resolution: bulk index first, live lookup second.

Bulk hits are answered from one snapshot taken at the start of the request,
so a refresh completing mid-request cannot mix data from two snapshots.
Misses are sent to live lookup as one batch so its per-request cap applies.
"""

import logging
from collections.abc import Sequence

from cardbored.models.card import CardRequest, LookupStatus, ResolvedCard
from cardbored.models.failure import DataUnavailableError
from cardbored.parsers.card_names import normalize_name
from cardbored.services.live_lookup import LiveLookup
from cardbored.services.price_index import PriceIndex

logger = logging.getLogger(__name__)


class CardPriceResolver:
    """Resolves parsed card requests into priced cards, preserving order."""

    def __init__(
        self,
        index: PriceIndex | None,
        live_lookup: LiveLookup | None,
        fallback_on_miss: bool = True,
    ):
        self.index = index
        self.live_lookup = live_lookup
        self.fallback_on_miss = fallback_on_miss

    async def resolve(
        self,
        requests: Sequence[CardRequest],
        bypass_bulk: bool = False,
    ) -> list[ResolvedCard]:
        """
        Resolve every request to a ResolvedCard.

        Args:
            requests: Parsed card requests in decklist order
            bypass_bulk: Skip the bulk index and look every card up live

        Raises:
            DataUnavailableError: If the bulk index has no data and live
                lookup is not configured
        """
        if not requests:
            return []

        if bypass_bulk or self.index is None:
            return await self._resolve_live(requests)

        try:
            snapshot = await self.index.ensure_fresh()
        except DataUnavailableError:
            if self.live_lookup is None:
                raise
            logger.warning(
                "Bulk price data unavailable, resolving %d cards live", len(requests)
            )
            return await self.live_lookup.resolve_all(requests)

        resolved: list[ResolvedCard | None] = []
        misses: list[int] = []
        for position, request in enumerate(requests):
            record = snapshot.get(normalize_name(request.name))
            if record is None:
                misses.append(position)
                resolved.append(None)
            else:
                resolved.append(ResolvedCard.from_record(request, record))

        if misses:
            logger.info("%d of %d cards missing from bulk index", len(misses), len(requests))
            fallback = await self._resolve_misses([requests[i] for i in misses])
            for position, card in zip(misses, fallback, strict=True):
                resolved[position] = card

        return [card for card in resolved if card is not None]

    async def _resolve_live(self, requests: Sequence[CardRequest]) -> list[ResolvedCard]:
        if self.live_lookup is None:
            raise DataUnavailableError(detail="Live lookup is disabled")
        return await self.live_lookup.resolve_all(requests)

    async def _resolve_misses(self, requests: Sequence[CardRequest]) -> list[ResolvedCard]:
        if self.fallback_on_miss and self.live_lookup is not None:
            return await self.live_lookup.resolve_all(requests)
        return [ResolvedCard.unresolved(request, LookupStatus.NOT_FOUND) for request in requests]
