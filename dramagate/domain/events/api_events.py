"""Domain Events related to upstream calls, credentials and aggregation.

Components emit these instead of printing diagnostics; an external
subscriber (see infrastructure.monitoring.event_logger) turns them into logs.
"""

from dataclasses import dataclass, field
import time
from typing import Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


# --- Upstream call lifecycle ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an upstream call is about to be made."""
    endpoint: str
    attempt_number: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when an upstream call succeeds."""
    endpoint: str
    attempt_number: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed upstream call."""
    endpoint: str
    attempt_number: int
    delay_seconds: float
    error_type: str
    error_message: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when an upstream call fails definitively (after retries)."""
    endpoint: str
    attempts: int
    error_type: str
    error_message: str
    timestamp: float = field(default_factory=time.time)


# --- Credential lifecycle ---

@dataclass
class CredentialRefreshed(DomainEvent):
    """A new credential was fetched and cached."""
    forced: bool
    timestamp: float = field(default_factory=time.time)


@dataclass
class StaleCredentialServed(DomainEvent):
    """Refresh failed; a previously cached credential is being served instead."""
    reason: str
    age_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class CredentialInvalidated(DomainEvent):
    """The cached credential was marked stale after an authorization failure."""
    endpoint: Optional[str] = None
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)


# --- Episode aggregation ---

@dataclass
class BatchFetchFailed(DomainEvent):
    """One additional episode batch failed after exhausting its retries."""
    title_id: str
    batch_index: int
    error_type: str
    error_message: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class EpisodesAggregated(DomainEvent):
    """An episode list was assembled. `partial` is set when any batch was lost."""
    title_id: str
    declared_total: int
    batches_planned: int
    batches_failed: int
    episodes_returned: int
    partial: bool
    timestamp: float = field(default_factory=time.time)
