"""
FlightLog Backend: Photo Resolver
==================================

What:  Turns a list of opaque photo references into a best-effort list of
       stable asset URLs.
How:   One asyncio task per reference, all started at once, joined with
       asyncio.wait() under a timeout. Tasks still running at the timeout are
       cancelled and awaited before returning, so no child outlives the call.

Result ordering:
    refs:    [r1, r2, r3]        (r2 fails or times out)
    output:  [url(r1), url(r3)]  (input order of the successful subset)
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from flightlog.services.places_base import PlaceProvider

logger = logging.getLogger(__name__)


class PhotoResolver:
    """
    Concurrent fan-out/join over PlaceProvider.fetch_photo_asset().

    Args:
        provider: Source of photo assets.
        timeout: Default upper bound, in seconds, for the whole join. None
            waits for every fetch.
    """

    def __init__(self, provider: PlaceProvider, timeout: Optional[float] = None):
        self._provider = provider
        self.timeout = timeout

    async def resolve_all(
        self,
        photo_refs: Sequence[str],
        timeout: Optional[float] = None,
    ) -> List[str]:
        """
        Resolve every reference concurrently.

        Args:
            photo_refs: References in upstream order.
            timeout: Overrides the default join bound for this call; the
                orchestrator passes what is left of the request deadline.

        Returns:
            URLs of the references that resolved in time, in input order.
            Shorter than the input when some photos failed; never contains None.
        """
        refs = list(photo_refs)
        if not refs:
            return []

        budget = self.timeout if timeout is None else timeout
        if budget is not None:
            budget = max(budget, 0.0)

        tasks = [asyncio.create_task(self._provider.fetch_photo_asset(ref)) for ref in refs]
        try:
            _, pending = await asyncio.wait(tasks, timeout=budget)
        finally:
            # Also runs when the caller itself is cancelled mid-join
            abandoned = [task for task in tasks if not task.done()]
            for task in abandoned:
                task.cancel()
            if abandoned:
                await asyncio.gather(*abandoned, return_exceptions=True)

        if pending:
            logger.warning(
                "Photo resolution abandoned %d of %d fetches after %.1fs",
                len(pending),
                len(refs),
                budget,
            )

        resolved: List[str] = []
        for ref, task in zip(refs, tasks):
            if task.cancelled():
                continue
            exc = task.exception()
            if exc is not None:
                logger.warning("Photo fetch for %s raised %s: %s", ref, type(exc).__name__, exc)
                continue
            url = task.result()
            if url:
                resolved.append(url)

        logger.debug("Resolved %d of %d photos", len(resolved), len(refs))
        return resolved
