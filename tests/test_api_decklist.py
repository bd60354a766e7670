"""Tests for decklist API endpoints."""

import httpx
import pytest
from conftest import FakeBulkSource, FakeClock, make_bulk_data
from httpx import ASGITransport, AsyncClient

from cardbored.api.dependencies import get_card_resolver
from cardbored.main import app
from cardbored.services.card_resolver import CardPriceResolver
from cardbored.services.price_index import PriceIndex


def _resolver(source: FakeBulkSource, clock: FakeClock) -> CardPriceResolver:
    return CardPriceResolver(PriceIndex(source, clock=clock), live_lookup=None)


@pytest.fixture
def bulk_source() -> FakeBulkSource:
    return FakeBulkSource(
        make_bulk_data(
            {
                "Lightning Bolt": "0.50",
                "Jace, the Mind Sculptor": "12.00",
                "Sol Ring": "2.00",
            }
        )
    )


@pytest.fixture
async def client(bulk_source: FakeBulkSource, fake_clock: FakeClock):
    """Provide an async test client backed by a fake bulk source."""
    resolver = _resolver(bulk_source, fake_clock)
    app.dependency_overrides[get_card_resolver] = lambda: resolver

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


class TestProcessDecklist:
    async def test_prices_and_splits(self, client: AsyncClient) -> None:
        response = await client.post(
            "/process-decklist",
            json={"deckText": "4 Lightning Bolt\n1 Jace, the Mind Sculptor", "threshold": 3.0},
        )

        assert response.status_code == 200
        data = response.json()
        assert [c["name"] for c in data["doNotProxy"]] == ["Lightning Bolt"]
        assert [c["name"] for c in data["proxy"]] == ["Jace, the Mind Sculptor"]
        assert data["keepTotal"] == "2.00"
        assert data["proxyTotal"] == "12.00"
        assert data["totalCost"] == "14.00"
        assert data["threshold"] == "3.00"
        assert data["skippedLines"] == 0
        assert "timestamp" in data

    async def test_card_fields(self, client: AsyncClient) -> None:
        response = await client.post("/process-decklist", json={"deckText": "4 lightning bolt"})

        card = response.json()["cards"][0]
        assert card["name"] == "Lightning Bolt"
        assert card["requestedName"] == "lightning bolt"
        assert card["quantity"] == 4
        assert card["price"] == "0.50"
        assert card["subtotal"] == "2.00"
        assert card["setName"] == "Test Set"
        assert card["manaCost"] == "{1}"
        assert card["typeLine"] == "Artifact"
        assert card["lookupStatus"] == "found"

    async def test_unknown_card_is_unavailable_and_kept(self, client: AsyncClient) -> None:
        response = await client.post(
            "/process-decklist", json={"deckText": "2 Xyzzy\n1 Sol Ring", "threshold": 1}
        )

        data = response.json()
        xyzzy = data["cards"][0]
        assert xyzzy["price"] == "unavailable"
        assert xyzzy["subtotal"] == "0.00"
        assert xyzzy["lookupStatus"] == "not_found"
        assert [c["name"] for c in data["doNotProxy"]] == ["Xyzzy"]
        assert data["totalCost"] == "2.00"

    async def test_default_threshold(self, client: AsyncClient) -> None:
        response = await client.post(
            "/process-decklist", json={"deckText": "1 Jace, the Mind Sculptor\n1 Sol Ring"}
        )

        data = response.json()
        assert data["threshold"] == "3.00"
        assert [c["name"] for c in data["proxy"]] == ["Jace, the Mind Sculptor"]

    async def test_counts_skipped_lines(self, client: AsyncClient, sample_decklist: str) -> None:
        response = await client.post("/process-decklist", json={"deckText": sample_decklist})

        data = response.json()
        assert response.status_code == 200
        assert data["skippedLines"] == 1
        assert [c["name"] for c in data["cards"]] == [
            "Lightning Bolt",
            "Sol Ring",
            "Jace, the Mind Sculptor",
        ]

    async def test_no_card_lines(self, client: AsyncClient, bulk_source: FakeBulkSource) -> None:
        response = await client.post("/process-decklist", json={"deckText": "// just a comment"})

        assert response.status_code == 200
        assert response.json()["cards"] == []
        assert bulk_source.calls == 0

    async def test_missing_deck_text(self, client: AsyncClient) -> None:
        response = await client.post("/process-decklist", json={"threshold": 3})

        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "invalid_input"
        assert "deckText" in data["detail"]

    async def test_wrong_type_deck_text(self, client: AsyncClient) -> None:
        response = await client.post("/process-decklist", json={"deckText": 42})

        assert response.status_code == 400

    async def test_invalid_json(self, client: AsyncClient) -> None:
        response = await client.post(
            "/process-decklist",
            content="not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400

    async def test_negative_threshold(self, client: AsyncClient) -> None:
        response = await client.post(
            "/process-decklist", json={"deckText": "1 Sol Ring", "threshold": -1}
        )

        assert response.status_code == 400

    async def test_data_unavailable(self, fake_clock: FakeClock) -> None:
        resolver = _resolver(FakeBulkSource(httpx.ConnectError("down")), fake_clock)
        app.dependency_overrides[get_card_resolver] = lambda: resolver

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/process-decklist", json={"deckText": "1 Sol Ring"})

        app.dependency_overrides.clear()

        assert response.status_code == 503
        data = response.json()
        assert data["kind"] == "data_unavailable"
        assert "unavailable" in data["error"]

    async def test_unexpected_error_is_generic_500(self) -> None:
        class BrokenResolver:
            async def resolve(self, requests, bypass_bulk=False):
                raise RuntimeError("secret internals")

        app.dependency_overrides[get_card_resolver] = lambda: BrokenResolver()

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post(
                "/process-decklist",
                json={"deckText": "1 Sol Ring"},
                headers={"Origin": "http://localhost:5173"},
            )

        app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "kind": "unknown"}
        assert response.headers["access-control-allow-origin"] == "*"


class TestUsageAndPreflight:
    async def test_get_returns_usage(self, client: AsyncClient) -> None:
        response = await client.get("/process-decklist")

        assert response.status_code == 200
        data = response.json()
        assert "deckText" in data["message"]
        assert "deckText" in data["example"]

    async def test_options(self, client: AsyncClient) -> None:
        response = await client.options("/process-decklist")

        assert response.status_code == 200

    async def test_cors_preflight(self, client: AsyncClient) -> None:
        response = await client.options(
            "/process-decklist",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    async def test_cors_header_on_post(self, client: AsyncClient) -> None:
        response = await client.post(
            "/process-decklist",
            json={"deckText": "1 Sol Ring"},
            headers={"Origin": "http://localhost:5173"},
        )

        assert response.headers["access-control-allow-origin"] == "*"


PRICED_CARDS = [
    {"name": "Lightning Bolt", "quantity": 4, "price": "0.50"},
    {"name": "Jace, the Mind Sculptor", "quantity": 1, "price": 12.0},
    {"name": "Xyzzy", "quantity": 2, "price": "unavailable", "lookupStatus": "not_found"},
]


class TestClassify:
    async def test_reclassifies_without_lookups(
        self, client: AsyncClient, bulk_source: FakeBulkSource
    ) -> None:
        response = await client.post(
            "/classify", json={"cards": PRICED_CARDS, "threshold": 20}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["proxy"] == []
        assert len(data["doNotProxy"]) == 3
        assert data["totalCost"] == "14.00"
        assert bulk_source.calls == 0

    async def test_lower_threshold(self, client: AsyncClient) -> None:
        response = await client.post("/classify", json={"cards": PRICED_CARDS, "threshold": 0.25})

        data = response.json()
        assert [c["name"] for c in data["proxy"]] == ["Lightning Bolt", "Jace, the Mind Sculptor"]
        assert [c["name"] for c in data["doNotProxy"]] == ["Xyzzy"]
        assert data["doNotProxy"][0]["price"] == "unavailable"

    async def test_invalid_price(self, client: AsyncClient) -> None:
        response = await client.post(
            "/classify",
            json={"cards": [{"name": "Sol Ring", "quantity": 1, "price": "cheap"}]},
        )

        assert response.status_code == 400


class TestExportPiles:
    async def test_plain_text_piles(self, client: AsyncClient) -> None:
        response = await client.post(
            "/export-piles", json={"cards": PRICED_CARDS[:2], "threshold": 3}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == (
            "// Keep Pile (<=$3.00)\n\n4 Lightning Bolt\n\n"
            "// Proxy Pile (>$3.00)\n\n1 Jace, the Mind Sculptor"
        )
