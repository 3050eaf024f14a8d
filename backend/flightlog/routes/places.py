"""
FlightLog Backend: Place Details Route
=======================================

What:  Handles GET /api/places/{external_id}.
How:   Delegates to the PlaceService built at startup; the route only sets
       response headers.
Who:   Called by the frontend when a user opens a place of interest on a
       flight's map. Unauthenticated.

Caching:
    Cached place records are never updated, so responses carry a long
    public max-age.
"""

import logging

from fastapi import APIRouter, Depends, Path, Request, Response

from flightlog.schemas.place import ErrorResponse, PlaceDetails
from flightlog.services.place_service import MAX_EXTERNAL_ID_LENGTH, PlaceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Places"])


def get_place_service(request: Request) -> PlaceService:
    """
    Dependency returning the process-wide PlaceService from app state.

    Tests replace it through app.dependency_overrides.
    """
    return request.app.state.place_service


@router.get(
    "/places/{external_id}",
    response_model=PlaceDetails,
    responses={
        200: {"description": "Normalized place record", "model": PlaceDetails},
        400: {"description": "Invalid place identifier", "model": ErrorResponse},
        502: {"description": "Place service unreachable", "model": ErrorResponse},
        504: {"description": "Place service timed out", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get place details by external id",
    description=(
        "Returns the cached place record for a third-party place id. On first "
        "access the record is fetched from the place service, its photos are "
        "resolved to stable URLs, and the result is stored. Non-2xx answers "
        "from the place service are relayed with their status code."
    ),
)
async def get_place_details(
    response: Response,
    external_id: str = Path(
        ...,
        description=f"Third-party place identifier, at most {MAX_EXTERNAL_ID_LENGTH} characters",
    ),
    service: PlaceService = Depends(get_place_service),
) -> PlaceDetails:
    place = await service.get_or_fetch(external_id)
    response.headers["Cache-Control"] = "public, max-age=86400"
    return place


@router.get("/places/", include_in_schema=False)
async def get_place_details_without_id(
    service: PlaceService = Depends(get_place_service),
) -> PlaceDetails:
    # Same 400 body as a blank id instead of the framework's bare 404
    return await service.get_or_fetch("")
