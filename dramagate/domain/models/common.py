"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like entry identifiers,
batch indices, upstream paths and credential policies, ensuring consistency
and type safety.
"""

from dataclasses import dataclass
from typing import NewType

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are plain values at runtime.
EntryId = NewType("EntryId", str)              # Upstream identifier of a title ("bookId")

# === Episode Batch Context ===
BatchIndex = NewType("BatchIndex", int)        # 1-based start index of a chapter batch
EpisodeNumber = NewType("EpisodeNumber", int)  # Sort key of an episode
StreamUrl = NewType("StreamUrl", str)          # Playable video URL

# === Upstream Context ===
UpstreamPath = NewType("UpstreamPath", str)    # Path relative to the upstream base URL

# === Time ===
EpochMillis = NewType("EpochMillis", int)      # Milliseconds since the Unix epoch

# Sentinel timestamp: an entry fetched "at epoch zero" is always older than the TTL.
EPOCH_ZERO = EpochMillis(0)


@dataclass(frozen=True)
class CredentialPolicy:
    """Per-call-site rule for how a credential is obtained.

    The batch chapter endpoint rejects long-cached credentials more
    aggressively than the catalog endpoints, so it always forces a refresh.
    """
    force_refresh: bool = False


CACHED_CREDENTIAL = CredentialPolicy(force_refresh=False)
FRESH_CREDENTIAL = CredentialPolicy(force_refresh=True)

