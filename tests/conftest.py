import asyncio
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

from cardbored.models.card import PriceRecord
from cardbored.services.price_index import BulkData


class FakeClock:
    """Settable wall clock (seconds since epoch)."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBulkSource:
    """
    Bulk source returning queued results.

    Each fetch() consumes the next result; the last one repeats.
    Exceptions in the queue are raised. If a gate is set, fetch()
    waits on it first.
    """

    def __init__(self, *results: BulkData | Exception, gate: asyncio.Event | None = None):
        self.results = list(results)
        self.gate = gate
        self.calls = 0

    async def fetch(self) -> BulkData:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


def make_record(name: str, price: str | None, set_name: str = "Test Set") -> PriceRecord:
    return PriceRecord(
        canonical_name=name,
        usd_price=Decimal(price) if price is not None else None,
        set_name=set_name,
        mana_cost="{1}",
        type_line="Artifact",
        image_url=None,
    )


def make_bulk_data(
    prices: dict[str, str], updated_at: str = "2024-01-01T09:00:00+00:00"
) -> BulkData:
    records = {name.lower(): make_record(name, price) for name, price in prices.items()}
    return BulkData(records=records, source_updated_at=updated_at)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_bulk_path() -> Path:
    return Path(__file__).parent / "fixtures" / "scryfall_sample.json"


@pytest.fixture
def sample_cards(sample_bulk_path: Path) -> list[dict[str, Any]]:
    """Sample Scryfall bulk data entries."""
    with open(sample_bulk_path, encoding="utf-8") as f:
        cards: list[dict[str, Any]] = json.load(f)
    return cards


@pytest.fixture
def sample_decklist() -> str:
    """Sample pasted decklist."""
    return """// Burn
4 Lightning Bolt
1 Sol Ring

# Sideboard
2 Jace, the Mind Sculptor
Counterspell"""


@pytest.fixture
def scryfall_card() -> dict[str, Any]:
    """A single Scryfall API card object."""
    return {
        "object": "card",
        "name": "Counterspell",
        "set_name": "Dominaria Remastered",
        "mana_cost": "{U}{U}",
        "type_line": "Instant",
        "image_uris": {"small": "https://cards.scryfall.io/small/front/counterspell.jpg"},
        "prices": {"usd": "1.50", "usd_foil": "4.00"},
    }
