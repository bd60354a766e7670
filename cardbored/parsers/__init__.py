from cardbored.parsers.card_names import normalize_name
from cardbored.parsers.decklist import (
    ParsedDecklist,
    parse_decklist,
    parse_decklist_with_diagnostics,
    parse_line,
)
from cardbored.parsers.scryfall import (
    build_price_lookup,
    extract_usd_price,
    load_price_lookup,
    price_record_from_card,
    write_price_lookup,
)

__all__ = [
    "ParsedDecklist",
    "build_price_lookup",
    "extract_usd_price",
    "load_price_lookup",
    "normalize_name",
    "parse_decklist",
    "parse_decklist_with_diagnostics",
    "parse_line",
    "price_record_from_card",
    "write_price_lookup",
]
