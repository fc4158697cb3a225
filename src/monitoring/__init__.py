# Monitoring Package - progression events and JSONL event trail
from .events import EventBus, EventRecorder, EventType, ProgressionEvent
from .monitoring_service import MonitoringService

__all__ = ["EventBus", "EventRecorder", "EventType", "ProgressionEvent", "MonitoringService"]
