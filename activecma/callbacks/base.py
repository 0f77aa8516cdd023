"""
Core callback system for optimizer event streaming.

Defines event types, event structure, and callback management.
"""

from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, Optional, Callable
import time
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """All event types emitted by optimizers."""

    # Run lifecycle
    OPTIMIZATION_START = "optimization_start"
    OPTIMIZATION_COMPLETE = "optimization_complete"

    # Progress
    GENERATION_COMPLETE = "generation_complete"

    # Numerical recovery
    REGULARIZATION = "regularization"


class OptimizerEvent(BaseModel):
    """
    Structured event emitted by an optimizer.

    All callbacks receive OptimizerEvent instances.

    Example:
        >>> event = OptimizerEvent(
        ...     event_type=EventType.GENERATION_COMPLETE,
        ...     iteration=12,
        ...     data={"best_f": 0.25, "step_size": 0.01}
        ... )
    """

    # Event metadata
    event_type: EventType = Field(..., description="Type of event")
    timestamp: float = Field(default_factory=time.time, description="Unix timestamp")
    iteration: int = Field(default=0, description="Current generation number")
    optimizer: str = Field(default="", description="Name of the emitting optimizer")

    # Event-specific data
    data: dict[str, Any] = Field(default_factory=dict, description="Event payload")


# Type alias for callback functions
CallbackFunction = Callable[[OptimizerEvent], None]


class CallbackManager:
    """
    Manages multiple callbacks, handles errors.

    Allows registering multiple callbacks that run in order.
    If one callback fails, others still execute (error isolation).

    Example:
        >>> manager = CallbackManager()
        >>> manager.register(my_callback)
        >>> manager.register(another_callback)
        >>> manager.emit(OptimizerEvent(...))  # Both callbacks executed
    """

    def __init__(self):
        self.callbacks: list[CallbackFunction] = []

    def register(self, callback: CallbackFunction) -> None:
        """
        Add callback to list.

        Args:
            callback: Function that receives OptimizerEvent
        """
        if not callable(callback):
            raise TypeError(f"Callback must be callable, got {type(callback)}")
        self.callbacks.append(callback)
        logger.debug(f"Registered callback: {callback}")

    def unregister(self, callback: CallbackFunction) -> None:
        """Remove callback from list."""
        if callback in self.callbacks:
            self.callbacks.remove(callback)
            logger.debug(f"Unregistered callback: {callback}")

    def emit(self, event: OptimizerEvent) -> None:
        """
        Send event to all registered callbacks.

        Catches exceptions so a failing callback cannot break the
        optimization.

        Args:
            event: Event to emit
        """
        for callback in self.callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(
                    f"Callback {callback.__name__ if hasattr(callback, '__name__') else callback} "
                    f"failed with error: {e}",
                    exc_info=True
                )

    def clear(self) -> None:
        """Remove all callbacks."""
        self.callbacks.clear()
        logger.debug("Cleared all callbacks")

    def __len__(self) -> int:
        """Return number of registered callbacks."""
        return len(self.callbacks)


def create_event(
    event_type: EventType,
    iteration: int = 0,
    data: Optional[dict] = None,
    optimizer: str = "",
) -> OptimizerEvent:
    """
    Convenience function to create events.

    Args:
        event_type: Type of event
        iteration: Current generation
        data: Event payload
        optimizer: Name of the emitting optimizer

    Returns:
        OptimizerEvent instance
    """
    return OptimizerEvent(
        event_type=event_type,
        timestamp=time.time(),
        iteration=iteration,
        optimizer=optimizer,
        data=data or {},
    )
