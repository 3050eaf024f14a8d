"""
FlightLog Backend: Pydantic Place Schemas
==========================================

What:  The canonical place record plus the shared error and health shapes.
How:   PlaceDetails is both the output of the normalizer and the response body
       of GET /api/places/{external_id}; `from_attributes` lets the repository
       build it straight from a Place row.

Absent values:
    Every optional field defaults to None and is serialized as null. A rating
    of 0 or an empty review list is a real value and stays as-is.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class PlaceDetails(BaseModel):
    """
    What:  Normalized, cached representation of one external place.
    Who:   Returned by PlaceService.get_or_fetch and the place details route.
    """
    external_id: str = Field(description="Third-party place identifier")
    display_name: Optional[str] = Field(default=None, description="Localized place name")
    formatted_address: Optional[str] = Field(default=None)
    website_uri: Optional[str] = Field(default=None)
    phone_number: Optional[str] = Field(default=None)
    primary_type: Optional[str] = Field(default=None, description="Primary category tag")
    rating: Optional[float] = Field(default=None, description="Average user rating")
    user_rating_count: Optional[int] = Field(default=None, ge=0)
    latitude: Optional[float] = Field(default=None)
    longitude: Optional[float] = Field(default=None)
    price_level: Optional[str] = Field(default=None, description="Opaque upstream price level")
    types: Optional[List[str]] = Field(default=None, description="Category tags, unordered")
    photos: List[str] = Field(
        default_factory=list,
        description="Resolved photo URLs in upstream order; unresolved photos are omitted",
    )
    reviews: Optional[Any] = Field(default=None, description="Upstream reviews, verbatim")
    opening_hours: Optional[Any] = Field(default=None, description="Upstream opening hours, verbatim")

    model_config = {"from_attributes": True}


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "upstream_error",
            "message": "Place service returned HTTP 404 for place 'abc'",
            "details": {"upstream_status": 404, "upstream_body": {...}},
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    places_api: str = Field(description="Place service credentials: configured, not_configured")
    uptime_seconds: float = Field(description="Seconds since service started")
