"""Domain models for the upstream authorization credential.

A credential is the secret/device-id pair the upstream expects on every call.
It is immutable once issued and replaced wholesale on refresh.
"""

from dataclasses import dataclass
from typing import Optional

from .common import EpochMillis, EPOCH_ZERO


@dataclass(frozen=True)
class Credential:
    """The secret/device-id pair required to authorize upstream calls."""
    secret: str
    device_id: str

    def __post_init__(self) -> None:
        if not self.secret or not self.device_id:
            raise ValueError("Credential requires a non-empty secret and device id")

    def __repr__(self) -> str:
        # Never leak the secret into logs or tracebacks
        return f"Credential(secret='***', device_id={self.device_id!r})"


@dataclass(frozen=True)
class CredentialCacheEntry:
    """Snapshot of the cached credential and when it was fetched.

    A `fetched_at_ms` of EPOCH_ZERO means "must refresh on next use"; the
    credential itself is kept as a last-resort fallback.
    """
    credential: Optional[Credential] = None
    fetched_at_ms: EpochMillis = EPOCH_ZERO

    @property
    def is_empty(self) -> bool:
        return self.credential is None

    def age_ms(self, now_ms: int) -> int:
        """Milliseconds elapsed since the credential was fetched."""
        return max(0, now_ms - self.fetched_at_ms)

    def is_fresh(self, now_ms: int, ttl_ms: int) -> bool:
        """True if a credential exists and is younger than the TTL."""
        return self.credential is not None and self.age_ms(now_ms) < ttl_ms
