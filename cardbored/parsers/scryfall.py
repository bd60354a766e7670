"""
Scryfall card data parsing.

Turns Scryfall card objects (bulk data entries or API responses) into
PriceRecords, builds the name-keyed price lookup, and reads/writes the
lookup file.

Card objects: https://scryfall.com/docs/api/cards
Bulk data: https://scryfall.com/docs/api/bulk-data
"""

import json
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from cardbored.models.card import PriceRecord
from cardbored.parsers.card_names import normalize_name

METADATA_KEY = "_metadata"


def _parse_price(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        return None
    return price if price.is_finite() else None


def extract_usd_price(card: dict[str, Any]) -> Decimal | None:
    """
    Get a card's USD price, preferring non-foil.

    Returns:
        prices.usd if present, else prices.usd_foil, else None.
    """
    prices = card.get("prices") or {}
    price = _parse_price(prices.get("usd"))
    if price is None:
        price = _parse_price(prices.get("usd_foil"))
    return price


def _first_face(card: dict[str, Any]) -> dict[str, Any]:
    faces = card.get("card_faces") or []
    if faces and isinstance(faces[0], dict):
        return faces[0]
    return {}


def _card_field(card: dict[str, Any], key: str) -> Any:
    """Read a field, falling back to the front face for double-faced cards."""
    value = card.get(key)
    if value:
        return value
    return _first_face(card).get(key)


def card_image_url(card: dict[str, Any]) -> str | None:
    """Small image URL for a card (front face for double-faced cards)."""
    image_uris = _card_field(card, "image_uris") or {}
    small: str | None = image_uris.get("small")
    return small


def price_record_from_card(card: dict[str, Any]) -> PriceRecord:
    """
    Build a PriceRecord from a Scryfall card object.

    Raises:
        KeyError: If the card has no name
    """
    return PriceRecord(
        canonical_name=card["name"],
        usd_price=extract_usd_price(card),
        set_name=card.get("set_name") or "Unknown",
        mana_cost=_card_field(card, "mana_cost") or "",
        type_line=_card_field(card, "type_line") or "Unknown",
        image_url=card_image_url(card),
    )


def build_price_lookup(
    cards: Iterable[dict[str, Any]],
    drop_non_positive: bool = False,
) -> dict[str, PriceRecord]:
    """
    Build normalized name -> PriceRecord lookup from bulk card data.

    Args:
        cards: Scryfall card objects in dataset order
        drop_non_positive: Also drop entries priced at 0 or below
            (used for the bundled lookup file)

    Returns:
        Dict keyed by normalize_name(card name).

    Note:
        Entries without a usable USD price are skipped. Among the remaining
        printings of a name, the first one in dataset order wins.
    """
    lookup: dict[str, PriceRecord] = {}

    for card in cards:
        name = card.get("name")
        if not name or not card.get("prices"):
            continue

        key = normalize_name(name)
        if key in lookup:
            continue

        price = extract_usd_price(card)
        if price is None:
            continue
        if drop_non_positive and price <= 0:
            continue

        lookup[key] = price_record_from_card(card)

    return lookup


def write_price_lookup(
    path: Path,
    records: dict[str, PriceRecord],
    metadata: dict[str, Any],
) -> None:
    """
    Write the lookup file.

    The file is one JSON object: the "_metadata" key holds the metadata
    dict, every other key is a normalized name mapping to a lookup entry.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {METADATA_KEY: metadata}
    for key, record in records.items():
        data[key] = record.to_lookup_entry()

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f)
    # Readers never see a half-written file
    tmp_path.replace(path)


def load_price_lookup(path: Path) -> tuple[dict[str, PriceRecord], dict[str, Any]]:
    """
    Load a lookup file written by write_price_lookup().

    Returns:
        (records, metadata). Keys are re-normalized on load.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid lookup JSON
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Price lookup file {path} is corrupted: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Price lookup file {path} is not a JSON object")

    metadata = data.pop(METADATA_KEY, None) or {}

    records: dict[str, PriceRecord] = {}
    for entry in data.values():
        try:
            record = PriceRecord.from_lookup_entry(entry)
        except (AttributeError, KeyError, TypeError, InvalidOperation) as e:
            raise ValueError(f"Price lookup file {path} has an invalid entry: {e}") from e
        records[normalize_name(record.canonical_name)] = record

    return records, metadata
