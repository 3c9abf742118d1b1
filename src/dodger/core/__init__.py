"""Core framework components for DODGER."""

from .state import Phase, PhaseMachine
from .events import EventBus, Event, EventType
from .schedule import TickQueue

__all__ = ["Phase", "PhaseMachine", "EventBus", "Event", "EventType", "TickQueue"]
