"""
FlightLog Backend: Pydantic Airport Schemas
============================================

What:  Response shapes for GET /airports.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class AirportItem(BaseModel):
    name: str
    latitude_deg: Optional[float] = None
    longitude_deg: Optional[float] = None
    municipality: Optional[str] = None
    iata_code: str

    model_config = {"from_attributes": True}


class AirportListResponse(BaseModel):
    """All airports that carry an IATA code."""
    airports: List[AirportItem] = Field(description="Airports with a non-empty IATA code")
