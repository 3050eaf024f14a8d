"""
FlightLog Backend: Airport Service
===================================

What:  Read-only listing of the static airport reference table.
Who:   Called by GET /airports; the flight-entry screen uses it to populate
       its origin/destination pickers.

Query:
    SELECT name, latitude_deg, longitude_deg, municipality, iata_code
    FROM airports WHERE iata_code <> ''
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flightlog.exceptions import DatabaseError
from flightlog.models.airport import Airport
from flightlog.schemas.airport import AirportItem, AirportListResponse

logger = logging.getLogger(__name__)


class AirportService:
    """Stateless; receives the request-scoped session on each call."""

    async def list_airports(self, db: AsyncSession) -> AirportListResponse:
        """
        Return every airport that has an IATA code.

        Raises:
            DatabaseError: Query execution failed (→ 500)
        """
        try:
            result = await db.execute(
                select(
                    Airport.name,
                    Airport.latitude_deg,
                    Airport.longitude_deg,
                    Airport.municipality,
                    Airport.iata_code,
                )
                .where(Airport.iata_code != "")
                .order_by(Airport.iata_code)
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Database error listing airports: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not retrieve airports. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        return AirportListResponse(
            airports=[AirportItem.model_validate(row) for row in rows]
        )


# Stateless, so one shared instance is enough
airport_service = AirportService()
