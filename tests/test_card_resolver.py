"""Tests for bulk-first card price resolution."""

from collections.abc import Sequence
from decimal import Decimal

import httpx
import pytest
from conftest import FakeBulkSource, FakeClock, make_bulk_data

from cardbored.models.card import CardRequest, LookupStatus, ResolvedCard
from cardbored.models.failure import DataUnavailableError
from cardbored.services.card_resolver import CardPriceResolver
from cardbored.services.price_index import PriceIndex


class FakeLiveLookup:
    """Records batches and answers every card at a fixed price."""

    def __init__(self, price: str = "9.99"):
        self.price = Decimal(price)
        self.batches: list[list[str]] = []

    async def resolve_all(self, requests: Sequence[CardRequest]) -> list[ResolvedCard]:
        self.batches.append([r.name for r in requests])
        return [
            ResolvedCard(
                display_name=r.name.title(),
                quantity=r.quantity,
                price=self.price,
                set_name="Live Set",
                requested_name=r.name,
            )
            for r in requests
        ]


@pytest.fixture
def index(fake_clock: FakeClock) -> PriceIndex:
    source = FakeBulkSource(make_bulk_data({"Lightning Bolt": "0.50", "Sol Ring": "2.00"}))
    return PriceIndex(source, clock=fake_clock)


@pytest.fixture
def live() -> FakeLiveLookup:
    return FakeLiveLookup()


REQUESTS = [
    CardRequest("lightning bolt", 4),
    CardRequest("Counterspell", 2),
    CardRequest("SOL RING", 1),
]


class TestBulkFirst:
    async def test_bulk_hits_use_canonical_names(self, index: PriceIndex) -> None:
        resolver = CardPriceResolver(index, None)

        cards = await resolver.resolve([CardRequest("lightning bolt", 4)])

        assert cards[0].display_name == "Lightning Bolt"
        assert cards[0].requested_name == "lightning bolt"
        assert cards[0].price == Decimal("0.50")
        assert cards[0].subtotal == Decimal("2.00")

    async def test_misses_go_to_live_in_one_batch(
        self, index: PriceIndex, live: FakeLiveLookup
    ) -> None:
        resolver = CardPriceResolver(index, live)

        cards = await resolver.resolve(REQUESTS)

        assert live.batches == [["Counterspell"]]
        assert [c.display_name for c in cards] == ["Lightning Bolt", "Counterspell", "Sol Ring"]
        assert cards[1].price == Decimal("9.99")

    async def test_misses_not_found_without_fallback(
        self, index: PriceIndex, live: FakeLiveLookup
    ) -> None:
        resolver = CardPriceResolver(index, live, fallback_on_miss=False)

        cards = await resolver.resolve(REQUESTS)

        assert live.batches == []
        assert cards[1].lookup_status == LookupStatus.NOT_FOUND
        assert cards[1].display_name == "Counterspell"
        assert cards[1].price is None

    async def test_misses_not_found_without_live(self, index: PriceIndex) -> None:
        resolver = CardPriceResolver(index, None)

        cards = await resolver.resolve(REQUESTS)

        assert [c.lookup_status for c in cards] == [
            LookupStatus.FOUND,
            LookupStatus.NOT_FOUND,
            LookupStatus.FOUND,
        ]

    async def test_empty_request(self, index: PriceIndex) -> None:
        source = index.source
        resolver = CardPriceResolver(index, None)

        assert await resolver.resolve([]) == []
        assert isinstance(source, FakeBulkSource)
        assert source.calls == 0


class TestBulkUnavailable:
    async def test_falls_back_to_live(self, fake_clock: FakeClock, live: FakeLiveLookup) -> None:
        index = PriceIndex(FakeBulkSource(httpx.ConnectError("down")), clock=fake_clock)
        resolver = CardPriceResolver(index, live)

        cards = await resolver.resolve(REQUESTS)

        assert live.batches == [["lightning bolt", "Counterspell", "SOL RING"]]
        assert len(cards) == 3

    async def test_raises_without_live(self, fake_clock: FakeClock) -> None:
        index = PriceIndex(FakeBulkSource(httpx.ConnectError("down")), clock=fake_clock)
        resolver = CardPriceResolver(index, None)

        with pytest.raises(DataUnavailableError) as exc_info:
            await resolver.resolve(REQUESTS)

        assert exc_info.value.status_code == 503


class TestBypass:
    async def test_bypass_skips_bulk(self, index: PriceIndex, live: FakeLiveLookup) -> None:
        resolver = CardPriceResolver(index, live)

        cards = await resolver.resolve(REQUESTS, bypass_bulk=True)

        assert isinstance(index.source, FakeBulkSource)
        assert index.source.calls == 0
        assert len(live.batches) == 1
        assert all(c.price == Decimal("9.99") for c in cards)

    async def test_bypass_without_live(self, index: PriceIndex) -> None:
        resolver = CardPriceResolver(index, None)

        with pytest.raises(DataUnavailableError):
            await resolver.resolve(REQUESTS, bypass_bulk=True)

    async def test_no_index_uses_live(self, live: FakeLiveLookup) -> None:
        resolver = CardPriceResolver(None, live)

        cards = await resolver.resolve(REQUESTS)

        assert len(cards) == 3
