"""Tick-indexed scheduling of deferred simulation work.

Replaces wall-clock timers for anything that mutates core state: work is
keyed to the tick it becomes due on, so a run replays identically for the
same seed and frame sequence.
"""

import heapq
import itertools
from typing import Generic, List, Tuple, TypeVar

T = TypeVar("T")


class TickQueue(Generic[T]):
    """Priority queue of payloads ordered by due tick, FIFO within a tick."""

    def __init__(self) -> None:
        self._heap: List[Tuple[int, int, T]] = []
        self._counter = itertools.count()

    def schedule(self, due_tick: int, payload: T) -> None:
        """Schedule a payload to become due on the given tick."""
        heapq.heappush(self._heap, (due_tick, next(self._counter), payload))

    def pop_due(self, tick: int) -> List[T]:
        """Remove and return every payload due on or before ``tick``."""
        due: List[T] = []
        while self._heap and self._heap[0][0] <= tick:
            due.append(heapq.heappop(self._heap)[2])
        return due

    def next_due(self) -> int | None:
        """Tick of the earliest pending payload."""
        return self._heap[0][0] if self._heap else None

    def clear(self) -> None:
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)
