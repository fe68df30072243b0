"""Runtime services: telemetry, settings, and the task scheduler."""

from . import telemetry
from .scheduler import Debouncer, ManualClock, MonotonicClock, ScheduledTask, TaskScheduler
from .settings import EditorSettings

__all__ = [
    "Debouncer",
    "EditorSettings",
    "ManualClock",
    "MonotonicClock",
    "ScheduledTask",
    "TaskScheduler",
    "telemetry",
]
