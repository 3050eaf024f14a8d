"""
FlightLog Backend: Place SQLAlchemy Model
==========================================

What:  ORM model for the `places` table, the durable side of the place-details
       cache.
How:   One row per distinct external place id; structured upstream values are
       stored as JSON (JSONB on PostgreSQL).
Who:   Written and read only through PlaceRepository.

Table Design:
    - external_id UNIQUE: the only externally addressable key, and the only
      concurrency control between workers racing on the same cache miss
    - Rows are write-once: nothing in the application updates or deletes them
    - Optional upstream fields are nullable so "unknown" stays distinct from
      zero or empty
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import JSON, DateTime, Float, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from flightlog.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Place(Base):
    """
    A cached place record enriched from the external place service.

    Lifecycle:
        Created once by PlaceService on a confirmed cache miss followed by a
        successful detail fetch. Never mutated or removed afterwards.
    """

    __tablename__ = "places"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    external_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Third-party place identifier, unique cache key",
    )

    display_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    formatted_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website_uri: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    primary_type: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    user_rating_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Opaque upstream enum, e.g. PRICE_LEVEL_MODERATE
    price_level: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    types: Mapped[Optional[List[str]]] = mapped_column(JSONType, nullable=True)

    # Resolved asset URLs, in upstream photo order; never holds nulls
    photos: Mapped[List[str]] = mapped_column(JSONType, nullable=False, default=list)

    # Passed through verbatim from the upstream payload
    reviews: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)
    opening_hours: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this place was first cached (UTC)",
    )

    __table_args__ = (
        UniqueConstraint("external_id", name="uq_places_external_id"),
    )

    def __repr__(self) -> str:
        return f"<Place(external_id='{self.external_id}', display_name='{self.display_name}')>"
