"""
Decklist API endpoints.

Prices a pasted decklist and splits it into keep and proxy piles.
/classify and /export-piles work on already-priced cards and never call
the card database.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cardbored.api.dependencies import get_card_resolver
from cardbored.config import settings
from cardbored.models.card import UNAVAILABLE, LookupStatus, ResolvedCard
from cardbored.parsers.decklist import parse_decklist_with_diagnostics
from cardbored.services.card_resolver import CardPriceResolver
from cardbored.services.classifier import DeckSplit, classify_cards, format_price
from cardbored.services.pile_export import export_split

logger = logging.getLogger(__name__)

router = APIRouter(tags=["decklist"])


class ApiModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CardInput(ApiModel):
    """A priced card as sent back by the client for re-classification."""

    name: str = Field(..., min_length=1, description="Display name")
    quantity: int = Field(..., ge=0)
    price: Literal["unavailable"] | Decimal = Field(
        default=UNAVAILABLE,
        description='USD price per copy, or "unavailable"',
    )
    requested_name: str | None = None
    image_url: str | None = None
    set_name: str = "Unknown"
    mana_cost: str = ""
    type_line: str = "Unknown"
    lookup_status: LookupStatus = LookupStatus.FOUND

    def to_card(self) -> ResolvedCard:
        return ResolvedCard(
            display_name=self.name,
            quantity=self.quantity,
            price=None if self.price == UNAVAILABLE else Decimal(self.price),
            set_name=self.set_name,
            mana_cost=self.mana_cost,
            type_line=self.type_line,
            image_url=self.image_url,
            lookup_status=self.lookup_status,
            requested_name=self.requested_name or self.name,
        )


class CardResponse(CardInput):
    """A priced card in API responses."""

    subtotal: str = Field(..., description="price x quantity, 2 decimals")

    @classmethod
    def from_card(cls, card: ResolvedCard) -> "CardResponse":
        return cls(
            name=card.display_name,
            requested_name=card.requested_name or card.display_name,
            quantity=card.quantity,
            price=card.price if card.price is not None else UNAVAILABLE,
            subtotal=format_price(card.subtotal),
            image_url=card.image_url,
            set_name=card.set_name,
            mana_cost=card.mana_cost,
            type_line=card.type_line,
            lookup_status=card.lookup_status,
        )


class DeckSplitResponse(ApiModel):
    """Keep/proxy split with totals. Money values are 2-decimal strings."""

    cards: list[CardResponse] = Field(default_factory=list)
    do_not_proxy: list[CardResponse] = Field(default_factory=list)
    proxy: list[CardResponse] = Field(default_factory=list)
    threshold: str
    keep_total: str
    proxy_total: str
    total_cost: str
    timestamp: datetime


class ProcessDecklistResponse(DeckSplitResponse):
    skipped_lines: int = Field(
        default=0,
        description="Lines that did not match '<quantity> <card name>' and were ignored",
    )


class ProcessDecklistRequest(ApiModel):
    deck_text: str = Field(
        ...,
        min_length=1,
        description="Decklist, one '<quantity> <card name>' per line",
        examples=["4 Lightning Bolt\n1 Sol Ring"],
    )
    threshold: Decimal | None = Field(
        default=None,
        ge=0,
        description="Cards priced above this (USD) go to the proxy pile",
    )
    bypass_bulk: bool = Field(
        default=False,
        description="Look every card up live instead of using the bulk price index",
    )


class ClassifyRequest(ApiModel):
    cards: list[CardInput]
    threshold: Decimal | None = Field(default=None, ge=0)


class UsageResponse(BaseModel):
    message: str
    example: dict[str, object]


def _default_threshold() -> Decimal:
    return Decimal(str(settings.default_price_threshold))


def _split_fields(cards: list[ResolvedCard], split: DeckSplit) -> dict[str, object]:
    return {
        "cards": [CardResponse.from_card(card) for card in cards],
        "do_not_proxy": [CardResponse.from_card(card) for card in split.keep_pile],
        "proxy": [CardResponse.from_card(card) for card in split.proxy_pile],
        "threshold": format_price(split.threshold),
        "keep_total": format_price(split.keep_total),
        "proxy_total": format_price(split.proxy_total),
        "total_cost": format_price(split.total_cost),
        "timestamp": datetime.now(UTC),
    }


@router.get("/process-decklist", response_model=UsageResponse)
async def process_decklist_usage() -> UsageResponse:
    """Usage hint for clients that GET the processing endpoint."""
    return UsageResponse(
        message="POST a JSON body with deckText (and optionally threshold) to price a decklist.",
        example={"deckText": "4 Lightning Bolt\n1 Sol Ring", "threshold": 3.0},
    )


@router.options("/process-decklist")
async def process_decklist_options() -> Response:
    return Response(status_code=200)


@router.post("/process-decklist", response_model=ProcessDecklistResponse)
async def process_decklist(
    request: ProcessDecklistRequest,
    resolver: Annotated[CardPriceResolver, Depends(get_card_resolver)],
) -> ProcessDecklistResponse:
    """
    Price a decklist and split it by threshold.

    Lines that don't parse are skipped and counted in skippedLines.
    Cards that can't be priced come back with price "unavailable" and stay
    in the keep pile.
    """
    parsed = parse_decklist_with_diagnostics(request.deck_text)
    if parsed.skipped_lines:
        logger.info("Skipped %d unparseable decklist lines", parsed.skipped_lines)

    cards = await resolver.resolve(parsed.cards, bypass_bulk=request.bypass_bulk)

    threshold = request.threshold if request.threshold is not None else _default_threshold()
    split = classify_cards(cards, threshold)

    return ProcessDecklistResponse(
        **_split_fields(cards, split),
        skipped_lines=parsed.skipped_lines,
    )


@router.post("/classify", response_model=DeckSplitResponse)
async def classify_deck(request: ClassifyRequest) -> DeckSplitResponse:
    """Re-split already priced cards with a (new) threshold. Makes no lookups."""
    cards = [card.to_card() for card in request.cards]
    threshold = request.threshold if request.threshold is not None else _default_threshold()
    split = classify_cards(cards, threshold)
    return DeckSplitResponse(**_split_fields(cards, split))


@router.post("/export-piles", response_class=PlainTextResponse)
async def export_piles(request: ClassifyRequest) -> str:
    """Export both piles as decklist text."""
    cards = [card.to_card() for card in request.cards]
    threshold = request.threshold if request.threshold is not None else _default_threshold()
    return export_split(classify_cards(cards, threshold))
