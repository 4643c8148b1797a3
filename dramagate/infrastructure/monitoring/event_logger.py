"""Logging consumer for domain events.

Keeps diagnostic output out of the business components: they dispatch
events, this subscriber decides how loudly each one is logged.
"""

import logging
from dataclasses import asdict
from typing import Dict, Type

from dramagate.domain.events.api_events import (
    DomainEvent, ApiCallInitiated, ApiCallSucceeded, ApiCallFailed, RetryScheduled,
    CredentialRefreshed, StaleCredentialServed, CredentialInvalidated,
    BatchFetchFailed, EpisodesAggregated,
)
from dramagate.domain.events.dispatcher import EventDispatcher

logger = logging.getLogger("dramagate.events")

EVENT_LEVELS: Dict[Type[DomainEvent], int] = {
    ApiCallInitiated: logging.DEBUG,
    ApiCallSucceeded: logging.DEBUG,
    RetryScheduled: logging.WARNING,
    ApiCallFailed: logging.ERROR,
    CredentialRefreshed: logging.INFO,
    StaleCredentialServed: logging.WARNING,
    CredentialInvalidated: logging.WARNING,
    BatchFetchFailed: logging.WARNING,
    EpisodesAggregated: logging.INFO,
}


class LoggingEventSubscriber:
    """Writes each dispatched event to the `dramagate.events` logger."""

    def __init__(self, event_logger: logging.Logger = logger):
        self._logger = event_logger

    def __call__(self, event: DomainEvent) -> None:
        level = EVENT_LEVELS.get(type(event), logging.DEBUG)
        # Partial aggregation is worth a warning even though the call succeeded
        if isinstance(event, EpisodesAggregated) and event.partial:
            level = logging.WARNING
        if not self._logger.isEnabledFor(level):
            return
        fields = {k: v for k, v in asdict(event).items() if k != "timestamp"}
        details = ", ".join(f"{k}={v}" for k, v in fields.items())
        self._logger.log(level, f"{type(event).__name__}: {details}")


def attach_event_logger(dispatcher: EventDispatcher) -> LoggingEventSubscriber:
    """Subscribes a LoggingEventSubscriber to `dispatcher` and returns it."""
    subscriber = LoggingEventSubscriber()
    dispatcher.subscribe(subscriber)
    return subscriber
