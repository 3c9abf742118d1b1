"""
Event plumbing between the simulation and everything around it.

Two directions use the same bus:

* Inputs (pointer moves, resizes, start requests) are queued by the host
  with ``queue_event`` and drained between frames by ``process_queue``,
  so they never land in the middle of a tick.
* Outputs (score, milestones, near misses, game over) are emitted by the
  simulation once a tick has finished, through ``emit``.

Simulation events carry ``run_id`` and ``tick`` in their data, which lets
late consumers tell whether an event still belongs to the current run.
"""

import asyncio
import inspect
import logging
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Awaitable, Callable, Deque

logger = logging.getLogger(__name__)


class EventType(Enum):
    # Input
    POINTER_MOVED = auto()
    VIEWPORT_RESIZED = auto()
    START_REQUESTED = auto()

    # Run
    RUN_STARTED = auto()
    SCORE_CHANGED = auto()
    MILESTONE = auto()
    LEVEL_UP = auto()
    NEAR_MISS = auto()
    GAME_OVER = auto()
    PHASE_CHANGED = auto()


@dataclass
class Event:
    """
    A single message on the bus.

    Attributes:
        type: EventType member, or a plain string for ad-hoc events
        data: Payload
        source: Who produced it ("simulation", "mouse", "touch", ...)
        timestamp: Wall-clock creation time, informational only
    """
    type: EventType | str
    data: dict[str, Any] = field(default_factory=dict)
    source: str = "system"
    timestamp: float = field(default_factory=time.time)

    @property
    def run_id(self) -> int | None:
        """Run the event belongs to, or None for host input."""
        return self.data.get("run_id")


Handler = Callable[[Event], None] | Callable[[Event], Awaitable[None]]


class EventBus:
    """Publish/subscribe hub with a deferred input queue and short history."""

    def __init__(self, history_limit: int = 100) -> None:
        self._handlers: dict[EventType | str, list[Handler]] = defaultdict(list)
        self._catch_all: list[Handler] = []
        self._inbox: Deque[Event] = deque()
        self._history: Deque[Event] = deque(maxlen=history_limit)

    def subscribe(self, event_type: EventType | str, handler: Handler) -> Callable[[], None]:
        """
        Register ``handler`` for one event type.

        Returns:
            Function that removes the subscription again
        """
        listeners = self._handlers[event_type]
        listeners.append(handler)

        def unsubscribe() -> None:
            if handler in listeners:
                listeners.remove(handler)

        return unsubscribe

    def subscribe_all(self, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` for every event. Returns an unsubscribe function."""
        self._catch_all.append(handler)

        def unsubscribe() -> None:
            if handler in self._catch_all:
                self._catch_all.remove(handler)

        return unsubscribe

    def emit(self, event: Event) -> None:
        """Deliver an event now to the synchronous handlers.

        Coroutine handlers only run for events that go through the queue.
        """
        self._history.append(event)
        for handler in self._listeners(event):
            if inspect.iscoroutinefunction(handler):
                continue
            self._call(handler, event)

    def queue_event(self, event: Event) -> None:
        """Hold an event until the next ``process_queue``."""
        self._inbox.append(event)

    @property
    def pending(self) -> int:
        return len(self._inbox)

    async def process_queue(self) -> None:
        """Deliver everything queued so far to sync and async handlers, in order."""
        while self._inbox:
            event = self._inbox.popleft()
            self._history.append(event)

            waiting = []
            for handler in self._listeners(event):
                if inspect.iscoroutinefunction(handler):
                    waiting.append(handler(event))
                else:
                    self._call(handler, event)

            if waiting:
                for result in await asyncio.gather(*waiting, return_exceptions=True):
                    if isinstance(result, Exception):
                        logger.error(f"Error in async handler for {event.type}: {result}")

    def get_history(self, event_type: EventType | str | None = None, limit: int = 10) -> list[Event]:
        """Most recent events, oldest first, optionally of one type."""
        events = [e for e in self._history if event_type is None or e.type == event_type]
        return events[-limit:]

    def clear_history(self) -> None:
        self._history.clear()

    def _listeners(self, event: Event) -> list[Handler]:
        return self._handlers.get(event.type, []) + self._catch_all

    @staticmethod
    def _call(handler: Handler, event: Event) -> None:
        try:
            handler(event)
        except Exception as e:
            logger.error(f"Error in handler for {event.type}: {e}")


def pointer_event(x: float, y: float, source: str = "pointer") -> Event:
    """Pointer or touch position, already in viewport coordinates."""
    return Event(EventType.POINTER_MOVED, data={"x": x, "y": y}, source=source)


def resize_event(width: int, height: int, source: str = "host") -> Event:
    return Event(EventType.VIEWPORT_RESIZED, data={"width": width, "height": height}, source=source)


def start_event(source: str = "host") -> Event:
    """Request to start a run, or restart after game over."""
    return Event(EventType.START_REQUESTED, source=source)
