"""
FlightLog Backend: Place Repository
====================================

What:  Durable store of normalized place records keyed by external id.
How:   Owns an async session factory (injected at startup) and opens one
       short-lived session per operation, so an insert is committed before the
       orchestrator hands the record to waiting callers.

Operations:
    get_by_external_id(id) → PlaceDetails | None
    insert(place)          → PlaceDetails, or StorageConflictError when the
                             unique constraint rejects the row

There is deliberately no update or delete: cached rows are write-once.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flightlog.exceptions import DatabaseError, StorageConflictError
from flightlog.models.place import Place
from flightlog.schemas.place import PlaceDetails

logger = logging.getLogger(__name__)


class PlaceRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_by_external_id(self, external_id: str) -> Optional[PlaceDetails]:
        """
        Look up a cached place.

        Query plan:
            SELECT * FROM places WHERE external_id = :id
            → served by the uq_places_external_id unique index

        Raises:
            DatabaseError: Query execution failed.
        """
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Place).where(Place.external_id == external_id)
                )
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error reading place %s: %s", external_id, e)
            raise DatabaseError(
                message="Could not read the place cache. Please try again.",
                context={"external_id": external_id, "error_type": type(e).__name__},
            ) from e

        if row is None:
            return None
        return PlaceDetails.model_validate(row)

    async def insert(self, place: PlaceDetails) -> PlaceDetails:
        """
        Insert a new place row and commit it.

        Uniqueness is left to the database constraint; there is no
        read-before-write here.

        Raises:
            StorageConflictError: A row with the same external id already exists.
            DatabaseError: Any other storage failure.
        """
        row = Place(**place.model_dump())
        async with self._session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.warning("Insert conflict for place %s", place.external_id)
                raise StorageConflictError(place.external_id) from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Database error inserting place %s: %s", place.external_id, e)
                raise DatabaseError(
                    message="Could not store the place. Please try again.",
                    context={"external_id": place.external_id, "error_type": type(e).__name__},
                ) from e

        logger.info("Cached place %s (%d photos)", row.external_id, len(row.photos or []))
        return PlaceDetails.model_validate(row)
