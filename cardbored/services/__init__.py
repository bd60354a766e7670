"""
Cardbored services.

Price lookup, caching, and keep/proxy classification.
"""

from cardbored.services.card_resolver import CardPriceResolver
from cardbored.services.classifier import (
    DeckSplit,
    calculate_total,
    classify_cards,
    format_price,
)
from cardbored.services.live_lookup import LiveLookup
from cardbored.services.pacing import RequestPacer
from cardbored.services.pile_export import export_pile, export_split
from cardbored.services.price_index import (
    BulkData,
    BulkIndexSnapshot,
    PriceIndex,
    ScryfallBulkSource,
    SnapshotStore,
)
from cardbored.services.pricing import PricingServices, create_pricing_services
from cardbored.services.scryfall_client import ScryfallClient, create_http_client

__all__ = [
    "BulkData",
    "BulkIndexSnapshot",
    "CardPriceResolver",
    "DeckSplit",
    "LiveLookup",
    "PriceIndex",
    "PricingServices",
    "RequestPacer",
    "ScryfallBulkSource",
    "ScryfallClient",
    "SnapshotStore",
    "calculate_total",
    "classify_cards",
    "create_http_client",
    "create_pricing_services",
    "export_pile",
    "export_split",
    "format_price",
]
