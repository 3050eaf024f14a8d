"""
FlightLog Backend: Google Places Client
========================================

What:  Concrete PlaceProvider issuing the two outbound calls of the place
       pipeline: detail lookup and photo-asset resolution.
How:   One shared httpx.AsyncClient (created in the app lifespan, redirect
       following disabled) is injected into the client. Every call is attempted
       exactly once.
Who:   Instantiated once at startup; used by PlaceService and PhotoResolver.

Outbound calls:
    Detail:  GET {base}/places/{id}
             X-Goog-Api-Key: <key>
             X-Goog-FieldMask: displayName,formattedAddress,...
             non-2xx  → NotFoundUpstreamError(status, body)
             transport → UpstreamUnavailableError

    Photo:   GET {base}/{photoRef}/media?maxHeightPx=800&key=<key>
             3xx + Location → Location value (CDN asset URL)
             2xx            → the request URL itself
             otherwise      → None (logged, never raised)
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import httpx

from flightlog.exceptions import (
    NotFoundUpstreamError,
    PhotoUnresolvedError,
    UpstreamUnavailableError,
)
from flightlog.services.places_base import PlaceProvider

logger = logging.getLogger(__name__)

# Fields requested from the detail endpoint. Anything not listed here is never
# returned by the service, so the normalizer only reads these keys.
DETAIL_FIELD_MASK = ",".join(
    [
        "displayName",
        "formattedAddress",
        "rating",
        "userRatingCount",
        "location",
        "photos",
        "primaryType",
        "types",
        "regularOpeningHours",
        "priceLevel",
        "websiteUri",
        "internationalPhoneNumber",
        "nationalPhoneNumber",
        "reviews",
    ]
)

# Upstream bodies are echoed to the caller for diagnosis; cap their size.
MAX_UPSTREAM_BODY_CHARS = 2000


def _upstream_body(response: httpx.Response) -> Any:
    """Decoded JSON body if the upstream sent JSON, otherwise truncated text."""
    try:
        return response.json()
    except ValueError:
        return response.text[:MAX_UPSTREAM_BODY_CHARS]


class PlacesClient(PlaceProvider):
    """
    Google Places API (New) implementation of PlaceProvider.

    Args:
        http_client: Shared AsyncClient. Must not follow redirects, since the
            photo call reads the redirect target instead of the asset body.
        api_key: Sent as X-Goog-Api-Key and as the media `key` parameter.
        base_url: Service root, e.g. https://places.googleapis.com/v1
        photo_max_height_px: `maxHeightPx` for photo media URLs.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://places.googleapis.com/v1",
        photo_max_height_px: int = 800,
    ):
        self._http = http_client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.photo_max_height_px = photo_max_height_px

    # ── URL builders ──────────────────────────────────────────────────────

    def build_detail_url(self, external_id: str) -> str:
        # The id is client input; keep it inside a single path segment
        return f"{self.base_url}/places/{quote(external_id, safe='')}"

    def build_photo_media_url(self, photo_ref: str) -> str:
        """
        Media URL for one photo reference.

        Photo references are resource names such as
        "places/<place id>/photos/<photo id>" and are appended as a path.
        """
        query = urlencode({"maxHeightPx": self.photo_max_height_px, "key": self.api_key})
        return f"{self.base_url}/{photo_ref.strip('/')}/media?{query}"

    # ── Detail lookup ─────────────────────────────────────────────────────

    async def fetch_detail(self, external_id: str) -> Dict[str, Any]:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()
        headers = {
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": DETAIL_FIELD_MASK,
            "Accept": "application/json",
        }

        try:
            response = await self._http.get(self.build_detail_url(external_id), headers=headers)
        except httpx.TimeoutException as e:
            logger.warning("[%s] Place detail fetch timed out for %s: %s", request_id, external_id, e)
            raise UpstreamUnavailableError(
                message="Place service did not respond in time",
                timed_out=True,
                context={"external_id": external_id, "request_id": request_id},
            ) from e
        except httpx.HTTPError as e:
            logger.warning("[%s] Place detail fetch failed for %s: %s", request_id, external_id, e)
            raise UpstreamUnavailableError(
                context={
                    "external_id": external_id,
                    "request_id": request_id,
                    "error_type": type(e).__name__,
                },
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000

        if not response.is_success:
            logger.warning(
                "[%s] Place service returned HTTP %d for %s in %.0fms",
                request_id,
                response.status_code,
                external_id,
                duration_ms,
            )
            raise NotFoundUpstreamError(
                upstream_status=response.status_code,
                upstream_body=_upstream_body(response),
                external_id=external_id,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(
                message="Place service returned a body that is not JSON",
                context={"external_id": external_id, "request_id": request_id},
            ) from e

        if not isinstance(payload, dict):
            raise UpstreamUnavailableError(
                message="Place service returned an unexpected payload",
                context={"external_id": external_id, "payload_type": type(payload).__name__},
            )

        logger.info(
            "[%s] Place detail fetched for %s in %.0fms (%d photo refs)",
            request_id,
            external_id,
            duration_ms,
            len(payload.get("photos") or []),
        )
        return payload

    # ── Photo resolution ──────────────────────────────────────────────────

    async def fetch_photo_asset(self, photo_ref: str) -> Optional[str]:
        try:
            return await self._resolve_photo(photo_ref)
        except PhotoUnresolvedError as e:
            logger.info("%s", e.message)
            return None

    async def _resolve_photo(self, photo_ref: str) -> str:
        url = self.build_photo_media_url(photo_ref)
        try:
            # stream(): headers only, the asset body is never downloaded
            async with self._http.stream("GET", url) as response:
                status = response.status_code
                location = response.headers.get("location")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise PhotoUnresolvedError(photo_ref, f"transport error ({type(e).__name__})") from e

        if 300 <= status < 400:
            if location:
                return location
            raise PhotoUnresolvedError(photo_ref, f"HTTP {status} without Location header")
        if 200 <= status < 300:
            return url
        raise PhotoUnresolvedError(photo_ref, f"HTTP {status}")
