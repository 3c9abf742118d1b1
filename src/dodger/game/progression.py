"""Score and level progression.

Score advances on a fixed real-time cadence through a millisecond
accumulator, so frame rate never changes how fast points arrive. Level is
derived from score and the active pattern's level-up step.
"""

import logging
from dataclasses import dataclass
from typing import List

from dodger.core.events import Event, EventType

logger = logging.getLogger(__name__)


@dataclass
class ScoreState:
    score: int = 0
    level: int = 1
    last_milestone: int = 0
    accumulator_ms: float = 0.0


class ProgressionTracker:
    """Owns the run's ScoreState and reports score/milestone/level events."""

    def __init__(self, score_per_second: float = 10.0, milestone_step: int = 100):
        if score_per_second <= 0:
            raise ValueError("score_per_second must be positive")
        self.score_per_second = score_per_second
        self.milestone_step = milestone_step
        self.level_up_score = 1
        self.state = ScoreState()

    @property
    def interval_ms(self) -> float:
        """Milliseconds of survival per point."""
        return 1000.0 / self.score_per_second

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def level(self) -> int:
        return self.state.level

    def reset(self, level_up_score: int) -> None:
        """Start a fresh run with the given pattern level-up step."""
        self.level_up_score = level_up_score
        self.state = ScoreState()

    def level_for(self, score: int) -> int:
        return score // self.level_up_score + 1

    def advance(self, delta_ms: float, source: str = "progression") -> List[Event]:
        """Accumulate elapsed time and convert whole intervals into points.

        Args:
            delta_ms: Clamped frame time in milliseconds
            source: Event source tag

        Returns:
            SCORE_CHANGED (once, with the final score), MILESTONE per boundary
            reached, and LEVEL_UP (once, with the new level) as applicable
        """
        state = self.state
        state.accumulator_ms += delta_ms
        interval = self.interval_ms

        events: List[Event] = []
        start_score = state.score
        start_level = state.level

        while state.accumulator_ms >= interval:
            state.accumulator_ms -= interval
            state.score += 1

            if (
                state.score % self.milestone_step == 0
                and state.score > state.last_milestone
            ):
                state.last_milestone = state.score
                logger.debug(f"Milestone reached: {state.score}")
                events.append(Event(EventType.MILESTONE, data={"score": state.score}, source=source))

        if state.score == start_score:
            return events

        # Levels never go backwards within a run
        state.level = max(state.level, self.level_for(state.score))

        events.insert(0, Event(EventType.SCORE_CHANGED, data={"score": state.score}, source=source))
        if state.level > start_level:
            logger.debug(f"Level up: {start_level} -> {state.level}")
            events.append(Event(EventType.LEVEL_UP, data={"level": state.level}, source=source))

        return events
