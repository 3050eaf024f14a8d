"""
FlightLog Backend: API Route Tests
===================================

What:  Exercises the HTTP surface end to end through the ASGI app.
How:   HTTPX AsyncClient over ASGITransport; the place service and the
       database session are swapped through app.dependency_overrides.

What we test:
    ✅ GET /api/places/{id}: record body, cache headers, error mapping
    ✅ GET /airports: only IATA airports, sorted
    ✅ GET /health: healthy and unhealthy shapes
    ✅ Request id propagation
"""

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from flightlog.database import get_db_session
from flightlog.exceptions import StorageConflictError
from flightlog.main import app
from flightlog.models.airport import Airport
from flightlog.routes.places import get_place_service

PLACE_ID = "ChIJN1t_tDeuEmsRUsoyG83frY4"


@pytest.fixture
def place_service(make_place_service):
    service = make_place_service()
    app.dependency_overrides[get_place_service] = lambda: service
    return service


class TestPlaceDetailsRoute:
    @pytest.mark.asyncio
    async def test_returns_record(self, test_client, place_service, fake_provider):
        response = await test_client.get(f"/api/places/{PLACE_ID}")

        assert response.status_code == 200
        assert response.headers["cache-control"] == "public, max-age=86400"
        body = response.json()
        assert body["external_id"] == PLACE_ID
        assert body["display_name"] == "Sydney Opera House"
        assert body["user_rating_count"] == 95000
        assert len(body["photos"]) == 3
        assert "id" not in body

    @pytest.mark.asyncio
    async def test_second_request_served_from_cache(self, test_client, place_service, fake_provider):
        first = await test_client.get(f"/api/places/{PLACE_ID}")
        second = await test_client.get(f"/api/places/{PLACE_ID}")

        assert first.json() == second.json()
        assert fake_provider.detail_calls == [PLACE_ID]

    @pytest.mark.asyncio
    async def test_missing_optional_fields_are_null(self, test_client, place_service, fake_provider):
        fake_provider.details["sparse"] = {"rating": 0}

        body = (await test_client.get("/api/places/sparse")).json()

        assert body["rating"] == 0
        assert body["display_name"] is None
        assert body["opening_hours"] is None
        assert body["photos"] == []

    @pytest.mark.asyncio
    async def test_upstream_status_is_relayed(self, test_client, place_service):
        response = await test_client.get("/api/places/unknown-place")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "upstream_error"
        assert body["details"]["upstream_status"] == 404
        assert body["details"]["upstream_body"]["error"]["status"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_blank_id_is_bad_request(self, test_client, place_service, fake_provider):
        response = await test_client.get("/api/places/%20%20")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert fake_provider.detail_calls == []

    @pytest.mark.asyncio
    async def test_empty_id_is_bad_request(self, test_client, place_service, fake_provider):
        response = await test_client.get("/api/places/")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert fake_provider.detail_calls == []

    @pytest.mark.asyncio
    async def test_overlong_id_is_bad_request(self, test_client, place_service):
        response = await test_client.get("/api/places/" + "x" * 256)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_storage_conflict_is_generic_server_error(self, test_client, place_service, fake_repository):
        fake_repository.insert = AsyncMock(side_effect=StorageConflictError(PLACE_ID))

        response = await test_client.get(f"/api/places/{PLACE_ID}")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert PLACE_ID not in body["message"]

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client, place_service):
        response = await test_client.get(f"/api/places/{PLACE_ID}", headers={"X-Request-ID": "trace-42"})
        assert response.headers["x-request-id"] == "trace-42"

    @pytest.mark.asyncio
    async def test_invalid_request_id_is_replaced(self, test_client, place_service):
        response = await test_client.get(f"/api/places/{PLACE_ID}", headers={"X-Request-ID": "bad id!"})
        assert response.headers["x-request-id"] != "bad id!"
        assert len(response.headers["x-request-id"]) == 8


@pytest_asyncio.fixture
async def airports_db(session_factory):
    async with session_factory() as session:
        session.add_all(
            [
                Airport(name="Sydney Kingsford Smith", latitude_deg=-33.9461, longitude_deg=151.1772,
                        municipality="Sydney", iata_code="SYD"),
                Airport(name="Bankstown Heliport", latitude_deg=-33.92, longitude_deg=150.99,
                        municipality="Sydney", iata_code=""),
                Airport(name="Auckland", latitude_deg=-37.0082, longitude_deg=174.7850,
                        municipality="Auckland", iata_code="AKL"),
            ]
        )
        await session.commit()

    async def override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override
    return session_factory


class TestAirportsRoute:
    @pytest.mark.asyncio
    async def test_lists_airports_with_iata_code(self, test_client, airports_db):
        response = await test_client.get("/airports")

        assert response.status_code == 200
        assert response.headers["cache-control"] == "public, max-age=3600"
        airports = response.json()["airports"]
        assert [a["iata_code"] for a in airports] == ["AKL", "SYD"]
        assert airports[1] == {
            "name": "Sydney Kingsford Smith",
            "latitude_deg": -33.9461,
            "longitude_deg": 151.1772,
            "municipality": "Sydney",
            "iata_code": "SYD",
        }


class TestHealthRoute:
    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["places_api"] == "configured"
        assert {"version", "uptime_seconds"} <= set(body)

    @pytest.mark.asyncio
    async def test_database_down_is_unhealthy(self, test_client):
        with patch("flightlog.routes.health.ping_database", AsyncMock(side_effect=OSError("refused"))):
            response = await test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] == "disconnected"
