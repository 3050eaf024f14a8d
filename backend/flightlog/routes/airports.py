"""
FlightLog Backend: Airports Route
==================================

What:  Handles GET /airports, the static airport lookup used by the
       flight-entry form.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from flightlog.database import get_db_session
from flightlog.schemas.airport import AirportListResponse
from flightlog.schemas.place import ErrorResponse
from flightlog.services.airport_service import airport_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Airports"])


@router.get(
    "/airports",
    response_model=AirportListResponse,
    responses={
        200: {"description": "Airports with an IATA code", "model": AirportListResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List airports",
    description="Returns every airport that has an IATA code, with coordinates and municipality.",
)
async def list_airports(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> AirportListResponse:
    result = await airport_service.list_airports(db)
    # Reference data; changes only when the dataset is reloaded
    response.headers["Cache-Control"] = "public, max-age=3600"
    return result
