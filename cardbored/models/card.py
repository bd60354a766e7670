"""
Card data flowing through the pricing pipeline.

CardRequest (parsed line) -> PriceRecord (index entry) -> ResolvedCard (priced line).
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

UNAVAILABLE = "unavailable"


class LookupStatus(str, Enum):
    """How a card's price was (or was not) obtained."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    SEARCH_FAILED = "search_failed"
    TRANSPORT_ERROR = "transport_error"
    NOT_PROCESSED = "not_processed"


# Placeholder set names shown for cards without a record
PLACEHOLDER_SET_NAMES: dict[LookupStatus, str] = {
    LookupStatus.NOT_FOUND: "Not Found",
    LookupStatus.SEARCH_FAILED: "Search Failed",
    LookupStatus.TRANSPORT_ERROR: "Error",
    LookupStatus.NOT_PROCESSED: "Not Processed",
}


@dataclass(frozen=True, slots=True)
class CardRequest:
    """
    One parsed decklist line.

    Attributes:
        name: Card name exactly as typed
        quantity: Number of copies from the line's numeric prefix
    """

    name: str
    quantity: int


@dataclass(frozen=True, slots=True)
class PriceRecord:
    """
    Price and display metadata for one card name.

    usd_price is None when the source has no USD price. That is a
    different state from a price of 0.
    """

    canonical_name: str
    usd_price: Decimal | None
    set_name: str
    mana_cost: str = ""
    type_line: str = ""
    image_url: str | None = None

    def to_lookup_entry(self) -> dict[str, Any]:
        """Serialize to the lookup file entry shape."""
        return {
            "name": self.canonical_name,
            "price": str(self.usd_price) if self.usd_price is not None else None,
            "imageUrl": self.image_url,
            "setName": self.set_name,
            "manaCost": self.mana_cost,
            "type": self.type_line,
        }

    @classmethod
    def from_lookup_entry(cls, entry: dict[str, Any]) -> "PriceRecord":
        """Deserialize a lookup file entry."""
        price = entry.get("price")
        return cls(
            canonical_name=entry["name"],
            usd_price=Decimal(str(price)) if price is not None else None,
            set_name=entry.get("setName") or "Unknown",
            mana_cost=entry.get("manaCost") or "",
            type_line=entry.get("type") or "Unknown",
            image_url=entry.get("imageUrl"),
        )


@dataclass(frozen=True, slots=True)
class ResolvedCard:
    """
    A decklist line merged with its price lookup result.

    price is None when the price is unavailable (not found, lookup
    failure, or no USD price).
    """

    display_name: str
    quantity: int
    price: Decimal | None
    set_name: str
    mana_cost: str = ""
    type_line: str = "Unknown"
    image_url: str | None = None
    lookup_status: LookupStatus = LookupStatus.FOUND
    requested_name: str = ""

    @property
    def has_price(self) -> bool:
        return self.price is not None

    @property
    def subtotal(self) -> Decimal:
        """price x quantity, with unavailable prices contributing 0."""
        if self.price is None:
            return Decimal("0")
        return self.price * self.quantity

    @classmethod
    def from_record(cls, request: CardRequest, record: PriceRecord) -> "ResolvedCard":
        return cls(
            display_name=record.canonical_name,
            quantity=request.quantity,
            price=record.usd_price,
            set_name=record.set_name,
            mana_cost=record.mana_cost,
            type_line=record.type_line,
            image_url=record.image_url,
            lookup_status=LookupStatus.FOUND,
            requested_name=request.name,
        )

    @classmethod
    def unresolved(cls, request: CardRequest, status: LookupStatus) -> "ResolvedCard":
        """Build the placeholder for a card whose lookup did not produce a record."""
        if status is LookupStatus.FOUND:
            raise ValueError("unresolved() requires a failure status")
        return cls(
            display_name=request.name,
            quantity=request.quantity,
            price=None,
            set_name=PLACEHOLDER_SET_NAMES[status],
            mana_cost="",
            type_line="Unknown",
            image_url=None,
            lookup_status=status,
            requested_name=request.name,
        )
