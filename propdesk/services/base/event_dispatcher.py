"""
Domain event dispatcher.

Events are published after the unit of work commits. A failing sink is
logged and never propagates to the caller.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from propdesk.core.logging import get_logger
from propdesk.schemas.core.domain_events import DomainEvent, DomainEventType


class EventSink(Protocol):
    def publish(self, event: DomainEvent) -> None:
        ...


class LoggingEventSink:
    """Default sink: writes each event to the application log."""

    def __init__(self):
        self._logger = get_logger("propdesk.events")

    def publish(self, event: DomainEvent) -> None:
        self._logger.info(
            f"Domain event: {event.event_type.value}",
            extra={
                "event_id": event.event_id,
                "event_type": event.event_type.value,
                "aggregate_id": event.aggregate_id,
                "aggregate_type": event.aggregate_type,
            },
        )


@dataclass
class DispatchedEvent:
    """Result of event dispatch operation."""

    event: DomainEvent
    dispatched: bool
    error: Optional[str] = None
    dispatched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class EventDispatcher:
    """
    Dispatches domain events to a sink with bounded retries.
    """

    def __init__(self, sink: Optional[EventSink] = None, max_retries: int = 1):
        """
        Initialize event dispatcher.

        Args:
            sink: Event sink (defaults to logging)
            max_retries: Attempts per event before giving up
        """
        self.sink = sink or LoggingEventSink()
        self.max_retries = max(1, max_retries)
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Event Dispatching
    # -------------------------------------------------------------------------

    def emit(
        self,
        event_type: DomainEventType,
        aggregate_id: str,
        aggregate_type: str,
        organization_id: Optional[str] = None,
        **payload: Any,
    ) -> DispatchedEvent:
        """Build and dispatch an event in one call."""
        event = DomainEvent(
            event_type=event_type,
            aggregate_id=aggregate_id,
            aggregate_type=aggregate_type,
            organization_id=organization_id,
            payload=payload,
        )
        return self.dispatch(event)

    def dispatch(self, event: DomainEvent) -> DispatchedEvent:
        """
        Dispatch a single domain event.

        Returns:
            DispatchedEvent with result information
        """
        last_error = None
        for attempt in range(1, self.max_retries + 1):
            try:
                self.sink.publish(event)
                return DispatchedEvent(event=event, dispatched=True)
            except Exception as e:
                last_error = str(e)
                self._logger.warning(
                    f"Event dispatch failed (attempt {attempt}/{self.max_retries}): {e}",
                    extra={
                        "event_type": event.event_type.value,
                        "aggregate_id": event.aggregate_id,
                        "attempt": attempt,
                    },
                )

        return DispatchedEvent(event=event, dispatched=False, error=last_error)

