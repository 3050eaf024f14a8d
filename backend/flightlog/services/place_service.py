"""
FlightLog Backend: Place Service (Cache-Aside Orchestrator)
============================================================

What:  Public entry point of the place-details pipeline: return the cached
       record for an external place id, fetching and enriching it on a miss.
How:   Composes PlaceRepository, a PlaceProvider, PhotoResolver and the
       normalizer. All collaborators are injected, so tests substitute fakes.
Who:   Constructed once in the app lifespan (app.state.place_service) and
       called by GET /api/places/{external_id}.

Orchestration Flow:
    ┌────────────┐ hit ┌────────┐
    │ repo.get   │────▶│ return │
    └────────────┘     └────────┘
          │ miss
          ▼
    ┌──────────────┐   ┌───────────────┐   ┌─────────┐   ┌─────────────┐
    │ fetch_detail │──▶│ resolve_all   │──▶│ build   │──▶│ repo.insert │
    │ (upstream)   │   │ (photo fanout)│   │ (pure)  │   │ (unique key)│
    └──────────────┘   └───────────────┘   └─────────┘   └─────────────┘

    Failure at any step short-circuits the rest, except inside the photo
    fan-out where failures only shrink the photo list. Nothing is retried.

Concurrent misses:
    With single_flight enabled, concurrent misses for one id inside this
    process await one shared lookup task: one detail fetch, one insert. The
    task re-reads the cache before fetching and after losing an insert to
    another worker process. Cancelling a caller never cancels the task.
    Without single_flight every caller fetches, the unique key admits one
    insert, and the others get StorageConflictError, which is surfaced as a
    server error unless reread_on_conflict is enabled.
"""

import asyncio
import logging
from typing import Dict, Optional

from flightlog.exceptions import (
    StorageConflictError,
    UpstreamUnavailableError,
    ValidationError,
)
from flightlog.schemas.place import PlaceDetails
from flightlog.services import place_normalizer
from flightlog.services.photo_resolver import PhotoResolver
from flightlog.services.place_repository import PlaceRepository
from flightlog.services.places_base import PlaceProvider

logger = logging.getLogger(__name__)

MAX_EXTERNAL_ID_LENGTH = 255


class PlaceService:
    """
    Cache-aside orchestrator for place details.

    Args:
        repository: Durable place store.
        provider: External place service (detail lookups).
        resolver: Photo fan-out over the same provider.
        request_timeout: Default deadline in seconds for one get_or_fetch call.
        single_flight: Share one in-flight lookup between concurrent misses.
        reread_on_conflict: Return the winning row after an insert conflict
            instead of raising StorageConflictError.
    """

    def __init__(
        self,
        repository: PlaceRepository,
        provider: PlaceProvider,
        resolver: PhotoResolver,
        request_timeout: Optional[float] = None,
        single_flight: bool = True,
        reread_on_conflict: bool = False,
    ):
        self._repository = repository
        self._provider = provider
        self._resolver = resolver
        self.request_timeout = request_timeout
        self.single_flight = single_flight
        self.reread_on_conflict = reread_on_conflict
        self._in_flight: Dict[str, "asyncio.Task[PlaceDetails]"] = {}

    @staticmethod
    def _validate_external_id(external_id: Optional[str]) -> str:
        if external_id is None or not external_id.strip():
            raise ValidationError(
                message="A place identifier is required",
                field="external_id",
            )
        if len(external_id) > MAX_EXTERNAL_ID_LENGTH:
            raise ValidationError(
                message=f"Place identifier must be at most {MAX_EXTERNAL_ID_LENGTH} characters",
                field="external_id",
            )
        return external_id

    async def get_or_fetch(
        self,
        external_id: str,
        timeout: Optional[float] = None,
    ) -> PlaceDetails:
        """
        Return the canonical record for `external_id`.

        Args:
            external_id: Third-party place identifier.
            timeout: Deadline in seconds for this call; defaults to
                request_timeout. Only consulted on a cache miss.

        Raises:
            ValidationError: Empty, blank or over-long identifier.
            NotFoundUpstreamError: Detail fetch answered non-2xx.
            UpstreamUnavailableError: Detail fetch failed or hit the deadline.
            StorageConflictError: Lost an insert race (single_flight and
                reread_on_conflict both disabled).
            DatabaseError: Storage failure.
        """
        external_id = self._validate_external_id(external_id)

        cached = await self._repository.get_by_external_id(external_id)
        if cached is not None:
            logger.debug("Place cache hit: %s", external_id)
            return cached

        logger.info("Place cache miss: %s", external_id)
        if not self.single_flight:
            return await self._fetch_and_store(external_id, timeout)

        task = self._in_flight.get(external_id)
        if task is None:
            task = asyncio.create_task(self._shared_lookup(external_id, timeout))
            self._in_flight[external_id] = task
            task.add_done_callback(lambda done: self._lookup_finished(external_id, done))
        else:
            logger.debug("Joining in-flight lookup for %s", external_id)
        # shield: cancelling one caller leaves the lookup running for the rest
        return await asyncio.shield(task)

    def _lookup_finished(self, external_id: str, task: "asyncio.Task[PlaceDetails]") -> None:
        if self._in_flight.get(external_id) is task:
            del self._in_flight[external_id]
        if not task.cancelled():
            task.exception()  # mark retrieved when every caller went away

    async def _shared_lookup(self, external_id: str, timeout: Optional[float]) -> PlaceDetails:
        """
        The single in-process lookup for one id.

        Runs as its own task, so it finishes (and stores the record) even when
        every caller that awaited it has been cancelled.
        """
        # A read that began before the previous lookup committed can come back
        # empty after that lookup left _in_flight
        cached = await self._repository.get_by_external_id(external_id)
        if cached is not None:
            return cached

        try:
            return await self._fetch_and_store(external_id, timeout)
        except StorageConflictError:
            # Another worker process won the insert
            existing = await self._repository.get_by_external_id(external_id)
            if existing is None:
                raise
            logger.info("Returning place %s inserted by another worker", external_id)
            return existing

    async def _fetch_and_store(self, external_id: str, timeout: Optional[float]) -> PlaceDetails:
        loop = asyncio.get_running_loop()
        budget = self.request_timeout if timeout is None else timeout
        deadline = None if budget is None else loop.time() + budget

        def remaining() -> Optional[float]:
            return None if deadline is None else max(deadline - loop.time(), 0.0)

        # ── Step 1: Detail fetch (aborts the whole call on failure) ───────
        try:
            payload = await asyncio.wait_for(
                self._provider.fetch_detail(external_id),
                timeout=remaining(),
            )
        except asyncio.TimeoutError as e:
            logger.warning("Place detail fetch for %s exceeded the %.1fs deadline", external_id, budget)
            raise UpstreamUnavailableError(
                message="Place service did not respond in time",
                timed_out=True,
                context={"external_id": external_id, "timeout": budget},
            ) from e

        # ── Step 2: Photo fan-out, bounded by what is left of the deadline ──
        photo_refs = place_normalizer.extract_photo_refs(payload)
        photo_budget = remaining()
        if self._resolver.timeout is not None and photo_budget is not None:
            photo_budget = min(photo_budget, self._resolver.timeout)
        photos = await self._resolver.resolve_all(photo_refs, timeout=photo_budget)

        # ── Step 3: Normalize ─────────────────────────────────────────────
        candidate = place_normalizer.build(external_id, payload, photos)

        # ── Step 4: Insert (unique key decides concurrent races) ──────────
        try:
            return await self._repository.insert(candidate)
        except StorageConflictError:
            if not self.reread_on_conflict:
                raise
            existing = await self._repository.get_by_external_id(external_id)
            if existing is None:
                raise
            logger.info("Returning concurrently inserted place %s", external_id)
            return existing
