"""
Monitoring Service

Appends progression events to a JSON lines file so a user's XP,
badge and purchase history can be replayed and debugged offline.
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Literal, Optional

from monitoring.events import EventBus, EventType, ProgressionEvent


logger = logging.getLogger(__name__)


@dataclass
class MonitoringEvent:
    """One line of the monitoring log."""
    event_type: str
    severity: Literal["info", "warning", "error", "critical"]
    message: str
    metadata: Dict[str, Any]
    timestamp: str

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "event_type": self.event_type,
            "severity": self.severity,
            "message": self.message,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }


class MonitoringService:
    """
    File-backed event trail.

    Features:
    - JSON line logging (JSONL) for easy parsing
    - Subscribes to the progression event bus
    - Log rotation support
    """

    # Progression events that deserve more than "info"
    SEVERITY_BY_TYPE = {
        EventType.STREAK_BROKEN.value: "warning",
        EventType.CHALLENGE_EXPIRED.value: "warning",
    }

    def __init__(
        self,
        log_dir: str = "logs",
        log_file: str = "progression.jsonl",
        max_file_size_mb: float = 10.0,
    ):
        """
        Initialize Monitoring Service.

        Args:
            log_dir: Directory for log files
            log_file: Name of the log file
            max_file_size_mb: Max file size before rotation
        """
        self.log_dir = log_dir
        self.log_file = log_file
        self.log_path = os.path.join(log_dir, log_file)
        self.max_file_size = max_file_size_mb * 1024 * 1024

        os.makedirs(log_dir, exist_ok=True)

    def attach(self, bus: EventBus):
        """Record every event published on `bus`."""
        bus.subscribe(self.record)

    def record(self, event: ProgressionEvent):
        """Event bus subscriber."""
        self.log_event(
            event_type=event.event_type.value,
            severity=self.SEVERITY_BY_TYPE.get(event.event_type.value, "info"),
            message=event.message,
            metadata={"user_id": event.user_id, **event.metadata},
            timestamp=event.occurred_at,
        )

    def log_event(
        self,
        event_type: str,
        severity: str,
        message: str,
        metadata: Dict[str, Any] = None,
        timestamp: Optional[datetime] = None,
    ):
        """
        Log a monitoring event.

        Args:
            event_type: Type of event
            severity: info, warning, error, or critical
            message: Human-readable message
            metadata: Additional structured data
            timestamp: When it happened (defaults to now)
        """
        event = MonitoringEvent(
            event_type=event_type,
            severity=severity,
            message=message,
            metadata=metadata or {},
            timestamp=(timestamp or datetime.now()).isoformat(),
        )

        self._emit(event)

    def log_api_error(
        self,
        endpoint: str,
        error_message: str,
        status_code: Optional[int] = None,
    ):
        """Log API error."""
        self.log_event(
            event_type="api_error",
            severity="error",
            message=f"API error on {endpoint}: {error_message}",
            metadata={
                "endpoint": endpoint,
                "status_code": status_code,
            },
        )

    def _emit(self, event: MonitoringEvent):
        """Emit event to log file."""
        try:
            self._rotate_if_needed()

            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(event.to_dict(), default=str) + "\n")
        except OSError:
            logger.exception(f"Monitoring write failed: {json.dumps(event.to_dict(), default=str)}")

    def _rotate_if_needed(self):
        """Rotate log file if it exceeds max size."""
        if not os.path.exists(self.log_path):
            return

        if os.path.getsize(self.log_path) > self.max_file_size:
            # Simple rotation: rename current file with timestamp
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            rotated_name = f"{self.log_file}.{timestamp}"
            rotated_path = os.path.join(self.log_dir, rotated_name)
            os.rename(self.log_path, rotated_path)

    def get_recent_events(
        self,
        count: int = 100,
        event_type: Optional[str] = None,
    ) -> List[dict]:
        """
        Get recent monitoring events.

        Args:
            count: Number of events to retrieve
            event_type: Filter by event type

        Returns:
            List of event dictionaries, oldest first
        """
        if not os.path.exists(self.log_path):
            return []

        events = []
        with open(self.log_path, "r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                try:
                    event = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if event_type is None or event.get("event_type") == event_type:
                    events.append(event)

        return events[-count:]

    def get_event_counts(self, hours: int = 24, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Count events by type in the last N hours.

        Returns:
            Dictionary of event type to count
        """
        cutoff = (now or datetime.now()) - timedelta(hours=hours)
        counts = {}
        for event in self.get_recent_events(count=1000):
            try:
                event_time = datetime.fromisoformat(event["timestamp"])
            except (ValueError, KeyError):
                continue
            if event_time >= cutoff:
                event_type = event.get("event_type", "unknown")
                counts[event_type] = counts.get(event_type, 0) + 1

        return counts
