"""
FlightLog Backend: Place Normalizer
====================================

What:  Maps the loosely-structured detail payload of the place service into
       the fixed PlaceDetails shape.
How:   Pure functions, no I/O. Every optional field goes through an explicit
       presence check: a missing or wrongly-typed value becomes None, while
       present falsy values (rating 0.0, userRatingCount 0) are kept.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from flightlog.schemas.place import PlaceDetails

logger = logging.getLogger(__name__)


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _optional_float(value: Any) -> Optional[float]:
    # bool is an int subclass; a boolean is never a rating or a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return float(value)
    except OverflowError:
        # JSON integers are unbounded
        return None


# Upper bound of the 32-bit Integer column the count is stored in
MAX_RATING_COUNT = 2**31 - 1


def _optional_count(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value < 0 or value > MAX_RATING_COUNT:
        logger.warning("Ignoring out-of-range rating count %d", value)
        return None
    return value


def _display_name(payload: Mapping[str, Any]) -> Optional[str]:
    """Localized `displayName.text`, else a plain-string `displayName`."""
    raw = payload.get("displayName")
    if isinstance(raw, Mapping):
        return _optional_str(raw.get("text"))
    return _optional_str(raw)


def _types(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    # dict.fromkeys dedupes while keeping the upstream order stable
    return list(dict.fromkeys(t for t in value if isinstance(t, str)))


def _price_level(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (str, int)):
        return str(value)
    return None


def extract_photo_refs(payload: Mapping[str, Any]) -> List[str]:
    """Photo resource names (`photos[].name`) in payload order."""
    photos = payload.get("photos")
    if not isinstance(photos, list):
        return []
    refs = []
    for photo in photos:
        if isinstance(photo, Mapping) and isinstance(photo.get("name"), str) and photo["name"]:
            refs.append(photo["name"])
    return refs


def build(
    external_id: str,
    payload: Mapping[str, Any],
    resolved_photos: Sequence[str],
) -> PlaceDetails:
    """
    Build the canonical record for one place.

    Args:
        external_id: The id the caller asked for (the payload is not trusted
            to echo it back).
        payload: Raw detail object from PlaceProvider.fetch_detail().
        resolved_photos: Output of PhotoResolver.resolve_all().
    """
    location = payload.get("location")
    if not isinstance(location, Mapping):
        location = {}

    phone = _optional_str(payload.get("internationalPhoneNumber"))
    if phone is None:
        phone = _optional_str(payload.get("nationalPhoneNumber"))

    fields: Dict[str, Any] = {
        "external_id": external_id,
        "display_name": _display_name(payload),
        "formatted_address": _optional_str(payload.get("formattedAddress")),
        "website_uri": _optional_str(payload.get("websiteUri")),
        "phone_number": phone,
        "primary_type": _optional_str(payload.get("primaryType")),
        "rating": _optional_float(payload.get("rating")),
        "user_rating_count": _optional_count(payload.get("userRatingCount")),
        "latitude": _optional_float(location.get("latitude")),
        "longitude": _optional_float(location.get("longitude")),
        "price_level": _price_level(payload.get("priceLevel")),
        "types": _types(payload.get("types")),
        "photos": [url for url in resolved_photos if url],
        "reviews": payload.get("reviews"),
        "opening_hours": payload.get("regularOpeningHours"),
    }
    return PlaceDetails(**fields)
