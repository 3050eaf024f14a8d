"""
FlightLog Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Inventory:
    ├── fake_provider: In-memory PlaceProvider counting every outbound call
    ├── fake_repository: Dict-backed place store with unique-key semantics
    ├── make_place_service: Builds a PlaceService over the fakes
    ├── session_factory: File-backed SQLite (aiosqlite) with all tables created
    ├── sample_detail_payload: Place service detail response with 3 photos
    └── test_client: HTTPX AsyncClient talking to the FastAPI app in-process
"""

import asyncio
import copy
import os
import tempfile
from typing import Any, Dict, List, Optional

# Settings are read at import time; point them at throwaway resources first
_TEST_DIR = tempfile.mkdtemp(prefix="flightlog_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'app.db')}"
os.environ["PLACES_API_KEY"] = "test-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from flightlog.database import Base  # noqa: E402
from flightlog.exceptions import NotFoundUpstreamError, StorageConflictError  # noqa: E402
from flightlog.models.airport import Airport  # noqa: E402,F401
from flightlog.models.place import Place  # noqa: E402,F401
from flightlog.schemas.place import PlaceDetails  # noqa: E402
from flightlog.services.photo_resolver import PhotoResolver  # noqa: E402
from flightlog.services.place_service import PlaceService  # noqa: E402
from flightlog.services.places_base import PlaceProvider  # noqa: E402


PLACE_ID = "ChIJN1t_tDeuEmsRUsoyG83frY4"


# ══════════════════════════════════════════════════════════════════════════
# Fakes
# ══════════════════════════════════════════════════════════════════════════

class FakePlaceProvider(PlaceProvider):
    """
    PlaceProvider double.

    details:      external id → payload dict or exception to raise;
                  unknown ids answer like the real service (404)
    photos:       photo ref → resolved URL, or None for a failed photo
    photo_delays: photo ref → seconds to sleep before answering
    """

    def __init__(self):
        self.details: Dict[str, Any] = {}
        self.photos: Dict[str, Optional[str]] = {}
        self.photo_delays: Dict[str, float] = {}
        self.detail_delay: float = 0.0
        self.detail_calls: List[str] = []
        self.photo_calls: List[str] = []
        self.cancelled_photos: List[str] = []

    async def fetch_detail(self, external_id: str) -> Dict[str, Any]:
        self.detail_calls.append(external_id)
        if self.detail_delay:
            await asyncio.sleep(self.detail_delay)
        result = self.details.get(external_id)
        if result is None:
            raise NotFoundUpstreamError(
                upstream_status=404,
                upstream_body={"error": {"code": 404, "status": "NOT_FOUND"}},
                external_id=external_id,
            )
        if isinstance(result, Exception):
            raise result
        return copy.deepcopy(result)

    async def fetch_photo_asset(self, photo_ref: str) -> Optional[str]:
        self.photo_calls.append(photo_ref)
        delay = self.photo_delays.get(photo_ref)
        if delay:
            try:
                await asyncio.sleep(delay)
            except asyncio.CancelledError:
                self.cancelled_photos.append(photo_ref)
                raise
        return self.photos.get(photo_ref)


class FakePlaceRepository:
    """
    Dict-backed stand-in for PlaceRepository with the same conflict behavior.

    read_delays: read number (1-based) → seconds to sleep after the row was
                 looked up, so the answer can be stale by the time it returns
    """

    def __init__(self):
        self.rows: Dict[str, PlaceDetails] = {}
        self.inserts: List[str] = []
        self.conflicts: List[str] = []
        self.reads = 0
        self.read_delays: Dict[int, float] = {}

    async def get_by_external_id(self, external_id: str) -> Optional[PlaceDetails]:
        self.reads += 1
        row = self.rows.get(external_id)
        snapshot = row.model_copy(deep=True) if row is not None else None
        delay = self.read_delays.get(self.reads)
        if delay:
            await asyncio.sleep(delay)
        return snapshot

    async def insert(self, place: PlaceDetails) -> PlaceDetails:
        await asyncio.sleep(0)
        if place.external_id in self.rows:
            self.conflicts.append(place.external_id)
            raise StorageConflictError(place.external_id)
        self.rows[place.external_id] = place.model_copy(deep=True)
        self.inserts.append(place.external_id)
        return place


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_detail_payload():
    """Trimmed Places API v1 detail response for PLACE_ID."""
    return {
        "displayName": {"text": "Sydney Opera House", "languageCode": "en"},
        "formattedAddress": "Bennelong Point, Sydney NSW 2000, Australia",
        "rating": 4.7,
        "userRatingCount": 95000,
        "location": {"latitude": -33.8567844, "longitude": 151.2152967},
        "primaryType": "performing_arts_theater",
        "types": ["performing_arts_theater", "tourist_attraction", "point_of_interest"],
        "priceLevel": "PRICE_LEVEL_MODERATE",
        "websiteUri": "https://www.sydneyoperahouse.com/",
        "internationalPhoneNumber": "+61 2 9250 7111",
        "regularOpeningHours": {
            "openNow": True,
            "weekdayDescriptions": ["Monday: 9:00 AM – 5:00 PM"],
        },
        "reviews": [{"rating": 5, "text": {"text": "Stunning."}}],
        "photos": [
            {"name": f"places/{PLACE_ID}/photos/p1", "widthPx": 4032, "heightPx": 3024},
            {"name": f"places/{PLACE_ID}/photos/p2", "widthPx": 4032, "heightPx": 3024},
            {"name": f"places/{PLACE_ID}/photos/p3", "widthPx": 4032, "heightPx": 3024},
        ],
    }


@pytest.fixture
def fake_provider(sample_detail_payload):
    provider = FakePlaceProvider()
    provider.details[PLACE_ID] = sample_detail_payload
    for i in (1, 2, 3):
        ref = f"places/{PLACE_ID}/photos/p{i}"
        provider.photos[ref] = f"https://cdn.example/p{i}.jpg"
    return provider


@pytest.fixture
def fake_repository():
    return FakePlaceRepository()


@pytest.fixture
def make_place_service(fake_provider, fake_repository):
    """Factory so each test can choose single-flight, reread and timeouts."""

    def _make(repository=None, photo_timeout=None, **kwargs):
        return PlaceService(
            repository=repository or fake_repository,
            provider=fake_provider,
            resolver=PhotoResolver(fake_provider, timeout=photo_timeout),
            **kwargs,
        )

    return _make


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """
    Fresh file-backed SQLite database per test.

    A file (not :memory:) gives each session its own connection, so
    concurrent inserts hit the unique constraint the way they do on PostgreSQL.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'flightlog.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def test_client():
    """
    HTTPX AsyncClient routed straight into the FastAPI app.

    The lifespan does not run under ASGITransport, so tests install their
    PlaceService through app.dependency_overrides.
    """
    from flightlog.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
