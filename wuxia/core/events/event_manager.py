"""
Event management system for decoupled manager communication.

This module provides a central event bus that lets the scheduler, the AI
engine and the managers communicate through events instead of direct
dependencies, following the publisher-subscriber pattern.
"""

import itertools
from collections import defaultdict, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .events import CombatEvent, EventType


class EventPriority(Enum):
    """Event processing priorities (higher value is processed first)."""
    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4


_sequence = itertools.count()


@dataclass
class QueuedEvent:
    """An event in the processing queue with metadata."""
    event: "CombatEvent"
    priority: EventPriority = EventPriority.NORMAL
    source: Optional[str] = None  # For debugging
    sequence: int = field(default_factory=lambda: next(_sequence))

    def __lt__(self, other: "QueuedEvent") -> bool:
        """Higher priority first; publication order within a priority."""
        if self.priority.value != other.priority.value:
            return self.priority.value > other.priority.value
        return self.sequence < other.sequence


EventSubscriber = Callable[["CombatEvent"], None]


class EventManager:
    """Central event bus for combat system communication."""

    def __init__(self, enable_debug_logging: bool = False):
        """Initialize the event manager.

        Args:
            enable_debug_logging: Whether to enable detailed event logging
        """
        self.enable_debug_logging = enable_debug_logging

        self._subscribers: dict["EventType", list[EventSubscriber]] = defaultdict(list)
        self._universal_subscribers: list[EventSubscriber] = []
        self._event_queue: deque[QueuedEvent] = deque()

        # Statistics and debugging
        self._events_published = 0
        self._events_processed = 0
        self._subscriber_errors = 0
        self._event_history: deque[QueuedEvent] = deque(maxlen=1000)

        self._debug_callback: Optional[Callable[[str], None]] = None

    def set_debug_callback(self, callback: Optional[Callable[[str], None]]) -> None:
        """Set a callback function for debug logging."""
        self._debug_callback = callback

    def _debug_log(self, message: str) -> None:
        if self.enable_debug_logging and self._debug_callback:
            self._debug_callback(f"[EVENT] {message}")

    def subscribe(
        self,
        event_type: "EventType",
        subscriber: EventSubscriber,
        subscriber_name: Optional[str] = None
    ) -> None:
        """Subscribe to events of a specific type.

        Args:
            event_type: The type of events to subscribe to
            subscriber: Callback function to handle events
            subscriber_name: Optional name for debugging
        """
        self._subscribers[event_type].append(subscriber)
        subscriber_display = subscriber_name or getattr(subscriber, '__name__', 'anonymous')
        self._debug_log(f"Subscribed {subscriber_display} to {event_type.name} events")

    def subscribe_all(
        self,
        subscriber: EventSubscriber,
        subscriber_name: Optional[str] = None
    ) -> None:
        """Subscribe to all events (universal subscriber)."""
        self._universal_subscribers.append(subscriber)
        subscriber_display = subscriber_name or getattr(subscriber, '__name__', 'anonymous')
        self._debug_log(f"Subscribed {subscriber_display} to ALL events")

    def unsubscribe(self, event_type: "EventType", subscriber: EventSubscriber) -> bool:
        """Unsubscribe from events of a specific type.

        Returns:
            True if subscriber was found and removed
        """
        try:
            self._subscribers[event_type].remove(subscriber)
        except ValueError:
            return False
        self._debug_log(f"Unsubscribed from {event_type.name} events")
        return True

    def publish(
        self,
        event: "CombatEvent",
        priority: EventPriority = EventPriority.NORMAL,
        source: Optional[str] = None
    ) -> None:
        """Queue an event for the next ``process_events`` call."""
        queued_event = QueuedEvent(event=event, priority=priority, source=source or "unknown")
        self._event_queue.append(queued_event)
        self._events_published += 1
        self._debug_log(
            f"Published {event.__class__.__name__} (priority: {priority.name}, source: {queued_event.source})"
        )

    def publish_immediate(self, event: "CombatEvent", source: Optional[str] = None) -> None:
        """Publish and immediately process an event."""
        self._events_published += 1
        self._process_event(
            QueuedEvent(event=event, priority=EventPriority.CRITICAL, source=source or "immediate")
        )

    def process_events(self, max_events: Optional[int] = None) -> int:
        """Process queued events in priority order.

        Events published by subscribers while processing are handled in the
        same call, so a single call drains cascades.

        Args:
            max_events: Maximum number of events to process (None for all)

        Returns:
            Number of events processed
        """
        processed_count = 0
        while self._event_queue:
            pending = sorted(self._event_queue)
            self._event_queue.clear()
            for index, queued_event in enumerate(pending):
                if max_events is not None and processed_count >= max_events:
                    self._event_queue.extendleft(reversed(pending[index:]))
                    return processed_count
                self._process_event(queued_event)
                processed_count += 1
        return processed_count

    def _process_event(self, queued_event: QueuedEvent) -> None:
        event = queued_event.event
        self._event_history.append(queued_event)
        self._events_processed += 1

        subscribers = self._subscribers.get(event.event_type, [])
        # Copy so handlers may unsubscribe while being notified
        for subscriber in [*subscribers, *self._universal_subscribers]:
            try:
                subscriber(event)
            except Exception as e:
                self._subscriber_errors += 1
                self._debug_log(
                    f"Error in subscriber {getattr(subscriber, '__name__', 'anonymous')}: {e}"
                )

    def clear_queue(self) -> int:
        """Clear all queued events and return how many were dropped."""
        count = len(self._event_queue)
        self._event_queue.clear()
        return count

    def has_queued_events(self) -> bool:
        """Check if there are events waiting to be processed."""
        return len(self._event_queue) > 0

    def get_statistics(self) -> dict[str, Any]:
        """Get event processing statistics."""
        return {
            'events_published': self._events_published,
            'events_processed': self._events_processed,
            'events_queued': len(self._event_queue),
            'subscriber_errors': self._subscriber_errors,
            'subscribers_count': sum(len(subs) for subs in self._subscribers.values()),
            'universal_subscribers_count': len(self._universal_subscribers),
        }

    def get_recent_events(self, count: int = 10) -> list[dict[str, Any]]:
        """Get recent events for debugging."""
        recent = list(self._event_history)[-count:]
        return [
            {
                'event_type': queued.event.__class__.__name__,
                'combat_time': queued.event.combat_time,
                'priority': queued.priority.name,
                'source': queued.source,
            }
            for queued in recent
        ]

    def shutdown(self) -> None:
        """Clear all subscribers, queued events and history."""
        self._subscribers.clear()
        self._universal_subscribers.clear()
        self._event_queue.clear()
        self._event_history.clear()
