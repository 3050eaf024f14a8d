"""
FlightLog Backend: Airport SQLAlchemy Model
============================================

What:  ORM model for the static `airports` reference table.
How:   Loaded externally from the OurAirports dataset; the application only
       reads it. Airports without an IATA code are stored with an empty string
       and filtered out of the public listing.
"""

from typing import Optional

from sqlalchemy import Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from flightlog.database import Base


class Airport(Base):
    __tablename__ = "airports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    latitude_deg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude_deg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    municipality: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    iata_code: Mapped[str] = mapped_column(String(8), nullable=False, default="")

    __table_args__ = (
        Index("idx_airports_iata_code", "iata_code"),
    )

    def __repr__(self) -> str:
        return f"<Airport(iata_code='{self.iata_code}', name='{self.name}')>"
