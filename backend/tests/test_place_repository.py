"""
FlightLog Backend: Place Repository Tests
==========================================

What:  Runs PlaceRepository against a real SQLite database (aiosqlite).

What we test:
    ✅ Unknown ids read as None
    ✅ Inserted rows read back field-for-field, JSON columns included
    ✅ A second insert for the same id is a StorageConflictError
"""

import pytest

from flightlog.exceptions import StorageConflictError
from flightlog.schemas.place import PlaceDetails
from flightlog.services import place_normalizer
from flightlog.services.place_repository import PlaceRepository

PLACE_ID = "ChIJN1t_tDeuEmsRUsoyG83frY4"


@pytest.fixture
def repository(session_factory):
    return PlaceRepository(session_factory)


@pytest.fixture
def place(sample_detail_payload) -> PlaceDetails:
    return place_normalizer.build(PLACE_ID, sample_detail_payload, ["https://cdn/1"])


class TestPlaceRepository:
    @pytest.mark.asyncio
    async def test_missing_id_is_none(self, repository):
        assert await repository.get_by_external_id("nope") is None

    @pytest.mark.asyncio
    async def test_insert_then_get(self, repository, place):
        inserted = await repository.insert(place)
        fetched = await repository.get_by_external_id(PLACE_ID)

        assert inserted == place
        assert fetched == place
        assert fetched.opening_hours["openNow"] is True
        assert fetched.types == ["performing_arts_theater", "tourist_attraction", "point_of_interest"]

    @pytest.mark.asyncio
    async def test_sparse_record_round_trips_nulls(self, repository):
        sparse = PlaceDetails(external_id="sparse", rating=0.0, user_rating_count=0)

        await repository.insert(sparse)
        fetched = await repository.get_by_external_id("sparse")

        assert fetched.rating == 0.0
        assert fetched.user_rating_count == 0
        assert fetched.display_name is None
        assert fetched.reviews is None
        assert fetched.photos == []

    @pytest.mark.asyncio
    async def test_duplicate_insert_conflicts(self, repository, place):
        await repository.insert(place)

        with pytest.raises(StorageConflictError) as exc_info:
            await repository.insert(place.model_copy(update={"display_name": "Other"}))

        assert exc_info.value.external_id == PLACE_ID
        stored = await repository.get_by_external_id(PLACE_ID)
        assert stored.display_name == "Sydney Opera House"
