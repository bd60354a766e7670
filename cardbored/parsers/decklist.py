"""
Parser for pasted decklists.

Format: one card per line, "<quantity> <card name>".
    - "4 Lightning Bolt"
    - "1 Jace, the Mind Sculptor"

Blank lines and comment lines ("//" or "#") are ignored. Lines that do not
match the format are dropped without an error; the count of dropped lines is
available from parse_decklist_with_diagnostics().
"""

import re
from dataclasses import dataclass, field

from cardbored.models.card import CardRequest

# Pattern: "4 Lightning Bolt"
# Groups: (quantity, card_name)
LINE_PATTERN = re.compile(r"^([0-9]+)\s+(.+)$")

COMMENT_PREFIXES = ("//", "#")


@dataclass
class ParsedDecklist:
    """Parsed card requests plus the number of unparseable lines."""

    cards: list[CardRequest] = field(default_factory=list)
    skipped_lines: int = 0


def parse_line(line: str) -> CardRequest | None:
    """
    Parse a single non-comment line.

    Returns:
        CardRequest, or None if the line does not match "<digits> <name>".
    """
    match = LINE_PATTERN.match(line.strip())
    if not match:
        return None

    name = match.group(2).strip()
    if not name:
        return None

    return CardRequest(name=name, quantity=int(match.group(1)))


def parse_decklist_with_diagnostics(text: str) -> ParsedDecklist:
    """
    Parse decklist text, counting lines that were dropped.

    Input order is preserved and duplicate names are kept as separate
    requests.
    """
    result = ParsedDecklist()

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(COMMENT_PREFIXES):
            continue

        request = parse_line(line)
        if request is None:
            result.skipped_lines += 1
            continue

        result.cards.append(request)

    return result


def parse_decklist(text: str) -> list[CardRequest]:
    """Parse decklist text into card requests, dropping invalid lines."""
    return parse_decklist_with_diagnostics(text).cards
