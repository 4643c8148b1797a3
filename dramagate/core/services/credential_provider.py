"""Resolves a fresh or cached upstream credential.

Applies the TTL and force-refresh rules on top of the CredentialStore and
the external CredentialSource.

Concurrency model (single event loop):
- Cache hits read an immutable store snapshot and take no lock.
- Refreshes are single-flight: concurrent callers that need a new
  credential await one shared fetch task instead of each hitting the
  credential source.
- Store writes (refresh commit, invalidate) are serialized by one
  asyncio.Lock.
- `invalidate(rejected)` only marks the store stale if `rejected` is still
  the stored credential. A refresh that lands while a request using the old
  credential is failing therefore cannot be undone by that late failure.
- Every effective invalidation bumps a generation counter. A fetch started
  under an older generation is returned to the callers already waiting on it
  but is not cached, and new callers start their own fetch instead of joining
  it. An invalidation therefore cannot be undone by a refresh that was
  already in flight.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from dramagate.domain.events.api_events import CredentialRefreshed, StaleCredentialServed, CredentialInvalidated
from dramagate.domain.events.dispatcher import EventDispatcher
from dramagate.domain.exceptions import CredentialSourceError, CredentialUnavailable
from dramagate.domain.interfaces.credential_source import CredentialSource
from dramagate.domain.models.credentials import Credential
from dramagate.infrastructure.cache.credential_store import CredentialStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class CredentialProvider:
    """Owns the credential cache entry and every mutation of it."""

    def __init__(
        self,
        source: CredentialSource,
        store: Optional[CredentialStore] = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        dispatcher: Optional[EventDispatcher] = None,
        clock_ms: Callable[[], int] = wall_clock_ms,
    ):
        """Initializes the CredentialProvider.

        Args:
            source: Where new credentials come from.
            store: The cache to manage; a fresh empty store if omitted.
            ttl_seconds: How long a fetched credential is served without refetching.
            dispatcher: Receives credential lifecycle events.
            clock_ms: Returns "now" in epoch milliseconds (injectable for tests).
        """
        self._source = source
        self._store = store or CredentialStore()
        self._ttl_ms = int(ttl_seconds * 1000)
        self._dispatcher = dispatcher or EventDispatcher()
        self._clock_ms = clock_ms
        self._write_lock = asyncio.Lock()
        self._inflight: Optional["asyncio.Future[Credential]"] = None
        self._inflight_generation = 0
        self._generation = 0

    @property
    def store(self) -> CredentialStore:
        return self._store

    async def obtain(self, force_refresh: bool = False) -> Credential:
        """Returns a usable credential, refreshing when required.

        Args:
            force_refresh: Skip the TTL check and fetch a new credential.

        Returns:
            The cached credential while it is fresh, otherwise a newly fetched
            one. If the fetch fails, the previous (possibly stale) credential.

        Raises:
            CredentialUnavailable: If the fetch failed and nothing is cached.
        """
        entry = self._store.entry
        if not force_refresh and entry.is_fresh(self._clock_ms(), self._ttl_ms):
            return entry.credential  # type: ignore[return-value]

        try:
            return await self._refresh_single_flight(force_refresh)
        except CredentialSourceError as e:
            fallback = self._store.entry
            if fallback.credential is None:
                raise CredentialUnavailable(f"No credential available: {e}") from e
            age_seconds = fallback.age_ms(self._clock_ms()) / 1000.0
            logger.warning(f"Credential refresh failed ({e}); serving previous credential.")
            self._dispatcher.dispatch(StaleCredentialServed(reason=str(e), age_seconds=age_seconds))
            return fallback.credential

    async def invalidate(
        self,
        rejected: Optional[Credential] = None,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> bool:
        """Marks the cached credential stale so the next `obtain` refetches.

        The credential itself is kept as a last-resort fallback.

        Args:
            rejected: The credential the upstream refused. If the store already
                holds a different credential, the invalidation is ignored.
            endpoint: Reported in the CredentialInvalidated event.
            status_code: Reported in the CredentialInvalidated event.

        Returns:
            True if the store was marked stale.
        """
        async with self._write_lock:
            current = self._store.credential
            if current is None:
                return False
            if rejected is not None and rejected != current:
                logger.debug("Ignoring invalidation for a credential that was already replaced.")
                return False
            self._store.mark_stale()
            self._generation += 1

        self._dispatcher.dispatch(CredentialInvalidated(endpoint=endpoint, status_code=status_code))
        return True

    def credential_age_seconds(self) -> Optional[float]:
        """Seconds since the cached credential was fetched, None if none is cached."""
        age_ms = self._store.age_ms(self._clock_ms())
        return None if age_ms is None else age_ms / 1000.0

    # --- internals ---

    async def _refresh_single_flight(self, forced: bool) -> Credential:
        task = self._inflight
        if task is None or task.done() or self._inflight_generation != self._generation:
            task = asyncio.ensure_future(self._refresh(forced, self._generation))
            task.add_done_callback(self._clear_inflight)
            self._inflight = task
            self._inflight_generation = self._generation
        else:
            logger.debug("Joining credential refresh already in flight.")
        # A cancelled waiter must not cancel the refresh other callers share
        return await asyncio.shield(task)

    def _clear_inflight(self, task: "asyncio.Future[Credential]") -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # Mark the exception retrieved even if every waiter was cancelled
            task.exception()

    async def _refresh(self, forced: bool, generation: int) -> Credential:
        logger.debug("Forcing credential refresh." if forced else "Refreshing expired credential.")
        credential = await self._source.fetch()
        async with self._write_lock:
            if generation != self._generation:
                logger.debug("Credential was invalidated during the fetch; not caching the result.")
                return credential
            self._store.replace(credential, self._clock_ms())
        self._dispatcher.dispatch(CredentialRefreshed(forced=forced))
        return credential
