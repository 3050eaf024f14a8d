"""
FlightLog Backend: Abstract Place Provider Interface
=====================================================

What:  Abstract base class defining the contract for the external place
       information service.
How:   PlacesClient implements it against Google Places API v1; the test suite
       implements it with in-memory fakes that count calls.
Who:   Called by PhotoResolver (fetch_photo_asset) and PlaceService
       (fetch_detail).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class PlaceProvider(ABC):
    """
    Contract:
        - fetch_detail() returns the raw detail payload or raises an
          UpstreamError subclass; it never writes anything
        - fetch_photo_asset() never raises for a per-photo failure, it
          returns None instead
        - Each method issues at most one outbound request per call
    """

    @abstractmethod
    async def fetch_detail(self, external_id: str) -> Dict[str, Any]:
        """
        Look up one place by its external identifier.

        Returns:
            The upstream JSON object, uninterpreted.

        Raises:
            NotFoundUpstreamError: The service answered with a non-2xx status.
                Carries the upstream status and body.
            UpstreamUnavailableError: Transport failure or unusable body.
        """
        ...

    @abstractmethod
    async def fetch_photo_asset(self, photo_ref: str) -> Optional[str]:
        """
        Resolve one opaque photo reference to a stable asset URL.

        Returns:
            The redirect target for a 3xx answer, the request URL itself for a
            2xx answer, None for anything else (including transport errors).
        """
        ...
