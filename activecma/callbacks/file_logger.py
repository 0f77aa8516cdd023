"""
File logger callback for saving events to a JSON lines log.

Useful for post-run analysis of convergence behaviour.
"""

from .base import OptimizerEvent, EventType
from pathlib import Path
import json
import logging

logger = logging.getLogger(__name__)


class FileLogger:
    """
    Log all events to a JSON lines file.

    Example:
        >>> file_logger = FileLogger("runs/rosenbrock.jsonl")
        >>> optimizer = CMAES(callbacks=[file_logger])
    """

    def __init__(self, log_file: str, mode: str = "w"):
        """
        Initialize file logger.

        Args:
            log_file: Path to log file
            mode: File mode ('w' for overwrite, 'a' for append)
        """
        if mode not in ("w", "a"):
            raise ValueError("mode must be 'w' or 'a'")
        self.log_file = Path(log_file)
        self.mode = mode
        self.events: list[OptimizerEvent] = []

        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        if mode == "w":
            self.log_file.write_text("")

        logger.info(f"FileLogger initialized: {self.log_file}")

    def __call__(self, event: OptimizerEvent) -> None:
        """
        Log event to file.

        Args:
            event: Event to log
        """
        self.events.append(event)
        try:
            with open(self.log_file, "a") as f:
                f.write(event.model_dump_json() + "\n")
        except OSError as e:
            logger.error(f"Failed to write event to {self.log_file}: {e}")

    def get_events_by_type(self, event_type: EventType) -> list[OptimizerEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def count(self, event_type: EventType) -> int:
        return len(self.get_events_by_type(event_type))

    @classmethod
    def load_from_file(cls, log_file: str) -> list[OptimizerEvent]:
        """
        Load events from a JSON lines log.

        Args:
            log_file: Path to log file

        Returns:
            List of events
        """
        events = []
        log_path = Path(log_file)

        if not log_path.exists():
            raise FileNotFoundError(f"Log file not found: {log_file}")

        with open(log_path, "r") as f:
            for line in f:
                line = line.strip()
                if line:
                    try:
                        events.append(OptimizerEvent(**json.loads(line)))
                    except (json.JSONDecodeError, ValueError) as e:
                        logger.warning(f"Failed to parse event line: {e}")

        return events
