"""
Pricing service wiring.

Builds the process-wide pricing objects from settings. The FastAPI lifespan
owns one PricingServices instance; tests build their own.
"""

import logging
from dataclasses import dataclass

import httpx

from cardbored.config import Settings, settings
from cardbored.services.card_resolver import CardPriceResolver
from cardbored.services.live_lookup import LiveLookup
from cardbored.services.price_index import PriceIndex, ScryfallBulkSource, SnapshotStore
from cardbored.services.scryfall_client import ScryfallClient, create_http_client

logger = logging.getLogger(__name__)


@dataclass
class PricingServices:
    """Shared pricing objects with a lifetime longer than one request."""

    http_client: httpx.AsyncClient
    scryfall: ScryfallClient
    price_index: PriceIndex
    live_lookup: LiveLookup | None
    resolver: CardPriceResolver

    async def aclose(self) -> None:
        """Let an in-flight refresh settle, then close the HTTP client."""
        await self.price_index.wait_for_refresh()
        await self.http_client.aclose()


def create_pricing_services(
    config: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> PricingServices:
    """
    Build pricing services from settings.

    Args:
        config: Settings to use. Defaults to the global settings.
        http_client: Shared HTTP client. Created from settings if omitted.
    """
    config = config or settings
    http_client = http_client or create_http_client(config.http_timeout_seconds)

    scryfall = ScryfallClient(
        http_client,
        base_url=config.scryfall_api_url,
        bulk_type=config.scryfall_bulk_type,
        bulk_timeout=config.bulk_download_timeout_seconds,
    )

    store = SnapshotStore(config.price_lookup_path) if config.price_lookup_path else None
    price_index = PriceIndex(
        ScryfallBulkSource(scryfall),
        max_age_seconds=config.bulk_max_age_hours * 3600,
        retry_after_seconds=config.bulk_retry_after_minutes * 60,
        store=store,
        background_refresh=config.bulk_background_refresh,
    )

    live_lookup = None
    if config.live_lookup_enabled:
        live_lookup = LiveLookup(
            scryfall,
            min_interval=config.live_lookup_interval_ms / 1000,
            max_cards=config.live_lookup_max_cards,
        )

    resolver = CardPriceResolver(
        price_index,
        live_lookup,
        fallback_on_miss=config.live_fallback_on_miss,
    )

    return PricingServices(
        http_client=http_client,
        scryfall=scryfall,
        price_index=price_index,
        live_lookup=live_lookup,
        resolver=resolver,
    )
