"""Simple in-process event dispatcher.

Subscribers are plain callables. A failing subscriber is logged and skipped
so observability can never change the outcome of a business operation.
"""

import logging
from typing import Callable, List

from .api_events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class EventDispatcher:
    """Fans domain events out to registered handlers, synchronously and in order."""

    def __init__(self) -> None:
        self._handlers: List[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> None:
        """Registers a handler for every dispatched event."""
        self._handlers.append(handler)

    def dispatch(self, event: DomainEvent) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler {handler!r} failed for {type(event).__name__}: {e}", exc_info=True)


class RecordingEventDispatcher(EventDispatcher):
    """Dispatcher that also keeps every event it sees. Handy for diagnostics and tests."""

    def __init__(self) -> None:
        super().__init__()
        self.events: List[DomainEvent] = []

    def dispatch(self, event: DomainEvent) -> None:
        self.events.append(event)
        super().dispatch(event)

    def of_type(self, event_type: type) -> List[DomainEvent]:
        return [e for e in self.events if isinstance(e, event_type)]
