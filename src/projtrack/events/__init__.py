"""projtrack event system."""

from projtrack.events.bus import EventBus, EventRecorder
from projtrack.events.types import EventType

__all__ = ["EventBus", "EventRecorder", "EventType"]
