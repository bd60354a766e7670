"""
Pile export.

Renders piles as decklist text that parse_decklist() reads back:

    // Keep Pile (<=$3.00)

    4 Lightning Bolt
    1 Sol Ring
"""

from collections.abc import Iterable

from cardbored.models.card import ResolvedCard
from cardbored.services.classifier import DeckSplit, format_price


def _format_card_line(card: ResolvedCard) -> str:
    return f"{card.quantity} {card.display_name}"


def export_pile(cards: Iterable[ResolvedCard], title: str | None = None) -> str:
    """
    Format a pile as decklist text.

    Args:
        cards: Cards in display order
        title: Optional header, emitted as a "//" comment line
    """
    lines: list[str] = []
    if title:
        lines.append(f"// {title}")
        lines.append("")

    lines.extend(_format_card_line(card) for card in cards)
    return "\n".join(lines)


def export_split(split: DeckSplit) -> str:
    """Format both piles with threshold headers."""
    threshold = format_price(split.threshold)
    keep = export_pile(split.keep_pile, f"Keep Pile (<=${threshold})")
    proxy = export_pile(split.proxy_pile, f"Proxy Pile (>${threshold})")
    return f"{keep}\n\n{proxy}"
