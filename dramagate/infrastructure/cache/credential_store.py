"""In-memory store for the upstream credential.

Holds exactly one CredentialCacheEntry. Entries are immutable and replaced
wholesale, so a reader always sees a consistent (credential, timestamp) pair
without taking a lock. Writers are serialized by the CredentialProvider.
"""

import logging
from typing import Optional

from dramagate.domain.models.common import EpochMillis, EPOCH_ZERO
from dramagate.domain.models.credentials import Credential, CredentialCacheEntry

logger = logging.getLogger(__name__)


class CredentialStore:
    """Pure data holder for the current credential and its fetch timestamp."""

    def __init__(self, entry: Optional[CredentialCacheEntry] = None):
        self._entry = entry or CredentialCacheEntry()

    @property
    def entry(self) -> CredentialCacheEntry:
        """Consistent snapshot of the current entry."""
        return self._entry

    @property
    def credential(self) -> Optional[Credential]:
        return self._entry.credential

    @property
    def fetched_at_ms(self) -> EpochMillis:
        return self._entry.fetched_at_ms

    def age_ms(self, now_ms: int) -> Optional[int]:
        """Age of the stored credential, or None if nothing was ever stored."""
        if self._entry.is_empty:
            return None
        return self._entry.age_ms(now_ms)

    def replace(self, credential: Credential, fetched_at_ms: int) -> CredentialCacheEntry:
        """Swaps in a new credential and timestamp as a single entry."""
        self._entry = CredentialCacheEntry(credential=credential, fetched_at_ms=EpochMillis(fetched_at_ms))
        logger.debug(f"Stored new credential for device {credential.device_id}")
        return self._entry

    def mark_stale(self) -> None:
        """Forces the next lookup to refresh while keeping the credential as a fallback."""
        self._entry = CredentialCacheEntry(credential=self._entry.credential, fetched_at_ms=EPOCH_ZERO)
        logger.debug("Credential timestamp reset; next use will refresh.")
