"""
Keep/proxy classification.

Splits resolved cards by a per-card price threshold:
- keep pile: price unavailable, or price <= threshold
- proxy pile: price > threshold

Pure functions over already-resolved cards. Changing the threshold only
repartitions; nothing is fetched again.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from cardbored.models.card import ResolvedCard

CENT = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class DeckSplit:
    """Result of classifying a resolved deck."""

    keep_pile: tuple[ResolvedCard, ...]
    proxy_pile: tuple[ResolvedCard, ...]
    threshold: Decimal

    @property
    def keep_total(self) -> Decimal:
        return calculate_total(self.keep_pile)

    @property
    def proxy_total(self) -> Decimal:
        return calculate_total(self.proxy_pile)

    @property
    def total_cost(self) -> Decimal:
        return self.keep_total + self.proxy_total

    @property
    def cards(self) -> tuple[ResolvedCard, ...]:
        return self.keep_pile + self.proxy_pile


def to_threshold(value: Decimal | float | int | str) -> Decimal:
    """Convert a threshold to Decimal without float noise (3.1 -> Decimal("3.1"))."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def is_proxy(card: ResolvedCard, threshold: Decimal) -> bool:
    """A card is proxied only when its price is known and above the threshold."""
    return card.price is not None and card.price > threshold


def calculate_total(cards: Iterable[ResolvedCard]) -> Decimal:
    """Sum of price x quantity. Unavailable prices contribute 0."""
    return sum((card.subtotal for card in cards), Decimal("0"))


def format_price(value: Decimal) -> str:
    """Format a money amount with 2 decimals: Decimal("14") -> "14.00"."""
    return str(value.quantize(CENT, rounding=ROUND_HALF_UP))


def classify_cards(
    cards: Sequence[ResolvedCard],
    threshold: Decimal | float | int | str,
) -> DeckSplit:
    """
    Partition resolved cards into keep and proxy piles.

    Both piles keep the input order.
    """
    limit = to_threshold(threshold)

    keep: list[ResolvedCard] = []
    proxy: list[ResolvedCard] = []
    for card in cards:
        if is_proxy(card, limit):
            proxy.append(card)
        else:
            keep.append(card)

    return DeckSplit(keep_pile=tuple(keep), proxy_pile=tuple(proxy), threshold=limit)
