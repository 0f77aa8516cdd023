"""
Callback system for optimizer event streaming.
"""

from .base import (
    OptimizerEvent,
    EventType,
    CallbackFunction,
    CallbackManager,
    create_event
)
from .rich_console import RichConsoleCallback
from .file_logger import FileLogger
from .capture import EventCapture

__all__ = [
    # Core
    "OptimizerEvent",
    "EventType",
    "CallbackFunction",
    "CallbackManager",
    "create_event",
    # Implementations
    "RichConsoleCallback",
    "FileLogger",
    "EventCapture",
]
