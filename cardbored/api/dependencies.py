"""
FastAPI dependencies for the pricing services.

The lifespan handler in main.py stores a PricingServices instance on
app.state. Tests replace these dependencies via app.dependency_overrides.
"""

from fastapi import Request

from cardbored.services.card_resolver import CardPriceResolver
from cardbored.services.price_index import PriceIndex
from cardbored.services.pricing import PricingServices
from cardbored.services.scryfall_client import ScryfallClient


def get_pricing_services(request: Request) -> PricingServices:
    services: PricingServices | None = getattr(request.app.state, "pricing", None)
    if services is None:
        raise RuntimeError("Pricing services are not initialized (lifespan did not run)")
    return services


def get_card_resolver(request: Request) -> CardPriceResolver:
    return get_pricing_services(request).resolver


def get_price_index(request: Request) -> PriceIndex:
    return get_pricing_services(request).price_index


def get_scryfall_client(request: Request) -> ScryfallClient:
    return get_pricing_services(request).scryfall
