"""
FlightLog Backend: Custom Exception Hierarchy
==============================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching HTTP status.
Who:   Raised by services; caught by global handlers.

Exception Hierarchy:
    FlightLogError (base)
    ├── ValidationError              → 400 Bad Request (client can fix)
    ├── UpstreamError
    │   ├── NotFoundUpstreamError    → upstream status (detail fetch non-2xx)
    │   └── UpstreamUnavailableError → 502 Bad Gateway / 504 on deadline
    ├── PhotoUnresolvedError         → never surfaced (per-photo, swallowed)
    └── DatabaseError                → 500 Internal Server Error
        └── StorageConflictError     → 500 (duplicate insert lost a race)
"""

from typing import Any, Dict, Optional


class FlightLogError(Exception):
    """
    Base exception for all FlightLog application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FlightLogError):
    """
    Raised when client input fails validation.

    When:    Empty or blank place identifier, identifier longer than the key column.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UpstreamError(FlightLogError):
    """
    Base for failures of the third-party place detail service.

    Nothing that raises an UpstreamError has written to the cache, and no
    outbound call is retried.
    """

    status_code: int = 502


class NotFoundUpstreamError(UpstreamError):
    """
    Raised when the place detail service answers with a non-2xx status.

    What:    Unknown or malformed place id, rejected API key, quota exceeded.
    HTTP:    The upstream status is propagated unchanged; the upstream body is
             returned in `details.upstream_body` for diagnosis.
    """

    def __init__(
        self,
        upstream_status: int,
        upstream_body: Any = None,
        external_id: Optional[str] = None,
    ):
        message = f"Place service returned HTTP {upstream_status}"
        if external_id:
            message = f"Place service returned HTTP {upstream_status} for place '{external_id}'"
        ctx: Dict[str, Any] = {
            "upstream_status": upstream_status,
            "upstream_body": upstream_body,
        }
        if external_id:
            ctx["external_id"] = external_id
        super().__init__(message=message, context=ctx)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        self.status_code = upstream_status


class UpstreamUnavailableError(UpstreamError):
    """
    Raised when the place detail service cannot be reached or answers with
    something that is not a place object.

    When:    Connection refused, DNS failure, transport timeout, the per-call
             deadline expiring during the detail fetch, non-JSON body.
    HTTP:    502 Bad Gateway (504 Gateway Timeout when `timed_out`)
    """

    def __init__(
        self,
        message: str = "Place service is temporarily unavailable",
        timed_out: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.timed_out = timed_out
        self.status_code = 504 if timed_out else 502


class PhotoUnresolvedError(FlightLogError):
    """
    Raised inside the place client when one photo reference cannot be turned
    into a URL. Caught at the client boundary and converted to "no result";
    it only shrinks the photo list of the place being built.
    """

    def __init__(
        self,
        photo_ref: str,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({"photo_ref": photo_ref, "reason": reason})
        super().__init__(message=f"Photo '{photo_ref}' could not be resolved: {reason}", context=ctx)
        self.photo_ref = photo_ref
        self.reason = reason


class DatabaseError(FlightLogError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Detailed error info
    (SQL, constraint names) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageConflictError(DatabaseError):
    """
    Raised when a place insert violates the unique external id constraint.

    When:    Another request (or another worker process) inserted the same
             place between our cache lookup and our insert.
    HTTP:    500, same generic body as DatabaseError.
    """

    def __init__(
        self,
        external_id: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["external_id"] = external_id
        super().__init__(
            message=f"Place '{external_id}' was inserted concurrently by another request",
            context=ctx,
        )
        self.external_id = external_id
