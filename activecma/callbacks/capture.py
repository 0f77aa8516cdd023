"""
Event capture callback for testing.

Captures all events in memory for assertions and analysis.
"""

from .base import OptimizerEvent, EventType
from typing import Optional


class EventCapture:
    """
    Callback that captures events for testing assertions.

    Example:
        >>> capture = EventCapture()
        >>> optimizer = ActiveCMAES(callbacks=[capture])
        >>> optimizer.optimize(rosenbrock, x0)
        >>> assert capture.count(EventType.OPTIMIZATION_COMPLETE) == 1
    """

    def __init__(self):
        self.events: list[OptimizerEvent] = []

    def __call__(self, event: OptimizerEvent) -> None:
        self.events.append(event)

    def get_events(self) -> list[OptimizerEvent]:
        """Get all captured events."""
        return self.events.copy()

    def get_events_by_type(self, event_type: EventType) -> list[OptimizerEvent]:
        """
        Filter events by type.

        Args:
            event_type: Event type to filter

        Returns:
            List of matching events
        """
        return [e for e in self.events if e.event_type == event_type]

    def count(self, event_type: EventType) -> int:
        """Count events of specific type."""
        return len(self.get_events_by_type(event_type))

    def get_last(self, event_type: Optional[EventType] = None) -> Optional[OptimizerEvent]:
        """
        Get last event, optionally filtered by type.

        Args:
            event_type: Optional event type filter

        Returns:
            Last event or None
        """
        events = self.events if event_type is None else self.get_events_by_type(event_type)
        return events[-1] if events else None

    def clear(self) -> None:
        """Clear captured events."""
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)
