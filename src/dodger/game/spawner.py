"""Obstacle spawn scheduler.

Each tick runs one Bernoulli trial against the pattern's level-scaled
(and, for wave patterns, time-modulated) spawn rate. Burst patterns roll
a second, rarer trial that drops a cluster of obstacles around a shared
anchor; cluster members after the first are staggered through a
TickQueue.

Placement respects a spacing rule: a candidate is rejected when any
obstacle still in the top region of the viewport is closer than
``min_spacing``. Horizontal separation is scaled down before the
comparison, so side-by-side walls are refused sooner than vertical trains.
Candidates are re-rolled a bounded number of times; if none fits, that
obstacle is simply not spawned this tick.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from dodger.config.settings import SpawnSettings
from dodger.core.schedule import TickQueue
from dodger.game.entities import Obstacle
from dodger.game.patterns import Archetype, BurstStyle, Pattern, PatternCatalog, WaveStyle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingSpawn:
    """A burst member waiting for its tick."""
    anchor_x: float
    spread: float


class SpawnScheduler:
    """Decides each tick whether and where new obstacles appear."""

    def __init__(
        self,
        catalog: PatternCatalog,
        settings: Optional[SpawnSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.catalog = catalog
        self.settings = settings or SpawnSettings()
        self.rng = rng or random.Random()
        self._pending: TickQueue[PendingSpawn] = TickQueue()
        self.skipped = 0

    @property
    def pending(self) -> int:
        """Burst members still waiting to be placed."""
        return len(self._pending)

    def reset(self) -> None:
        self._pending.clear()
        self.skipped = 0

    def effective_rate(self, pattern: Pattern, level: int, elapsed_ms: float) -> float:
        """Per-tick spawn probability, clamped to [0, 1]."""
        rate = pattern.spawn_rate_at(level)
        if isinstance(pattern.style, WaveStyle):
            rate *= pattern.style.factor(elapsed_ms)
        return max(0.0, min(1.0, rate))

    def update(
        self,
        pattern: Pattern,
        level: int,
        elapsed_ms: float,
        tick: int,
        obstacles: List[Obstacle],
        width: int,
        height: int,
    ) -> List[Obstacle]:
        """Run one scheduling step, appending new obstacles to ``obstacles``.

        Returns:
            The obstacles spawned this tick
        """
        spawned: List[Obstacle] = []

        for pending in self._pending.pop_due(tick):
            self._spawn_member(pattern, level, tick, pending, obstacles, spawned, width, height)

        if self.rng.random() < self.effective_rate(pattern, level, elapsed_ms):
            archetype = self._pick_archetype(pattern)
            self._spawn(
                pattern, level, tick, archetype,
                lambda: self._top_edge_candidate(archetype, width),
                obstacles, spawned, height,
            )

        style = pattern.style
        if isinstance(style, BurstStyle) and self.rng.random() < style.chance:
            self._start_burst(pattern, level, tick, style, obstacles, spawned, width, height)

        return spawned

    def is_clear(self, x: float, y: float, obstacles: Sequence[Obstacle], height: int) -> bool:
        """Check the spacing rule for a candidate centre."""
        limit = self.settings.top_region * height
        nearby = [(o.x, o.y) for o in obstacles if o.y < limit]
        if not nearby:
            return True

        points = np.asarray(nearby, dtype=float)
        dx = (points[:, 0] - x) * self.settings.horizontal_weight
        dy = (points[:, 1] - y) * self.settings.vertical_weight
        return bool(np.all(np.hypot(dx, dy) >= self.settings.min_spacing))

    def make_obstacle(
        self,
        pattern: Pattern,
        level: int,
        archetype: Archetype,
        x: float,
        y: float,
        tick: int,
    ) -> Obstacle:
        """Create an obstacle with level-scaled fall speed plus jitter."""
        cfg = self.settings
        return Obstacle(
            x=x,
            y=y,
            vx=self.rng.uniform(-pattern.horizontal_drift, pattern.horizontal_drift),
            vy=pattern.fall_speed(level) + self.rng.uniform(0.0, cfg.speed_jitter),
            rotation=self.rng.uniform(0.0, math.tau),
            angular_velocity=self.rng.uniform(-cfg.spin_max, cfg.spin_max),
            archetype=archetype.name,
            radius=archetype.radius,
            created_tick=tick,
        )

    def _pick_archetype(self, pattern: Pattern) -> Archetype:
        return self.rng.choice(self.catalog.archetypes_for(pattern))

    def _top_edge_candidate(self, archetype: Archetype, width: int) -> Tuple[float, float]:
        r = archetype.radius
        if width <= 2 * r:
            x = width / 2.0
        else:
            x = self.rng.uniform(r, width - r)
        return x, -archetype.size

    def _cluster_candidate(
        self, archetype: Archetype, anchor_x: float, spread: float, width: int
    ) -> Tuple[float, float]:
        r = archetype.radius
        x = anchor_x + self.rng.uniform(-spread, spread)
        x = width / 2.0 if width <= 2 * r else max(r, min(width - r, x))
        y = -archetype.size + self.rng.uniform(-spread / 2.0, 0.0)
        return x, y

    def _spawn(
        self,
        pattern: Pattern,
        level: int,
        tick: int,
        archetype: Archetype,
        candidate: Callable[[], Tuple[float, float]],
        obstacles: List[Obstacle],
        spawned: List[Obstacle],
        height: int,
    ) -> Optional[Obstacle]:
        """Bounded rejection sampling; a miss is not an error."""
        for _ in range(self.settings.max_attempts):
            x, y = candidate()
            if self.is_clear(x, y, obstacles, height):
                obstacle = self.make_obstacle(pattern, level, archetype, x, y, tick)
                obstacles.append(obstacle)
                spawned.append(obstacle)
                return obstacle

        self.skipped += 1
        logger.debug(f"No spawn slot for {archetype.name} at tick {tick}")
        return None

    def _spawn_member(
        self,
        pattern: Pattern,
        level: int,
        tick: int,
        pending: PendingSpawn,
        obstacles: List[Obstacle],
        spawned: List[Obstacle],
        width: int,
        height: int,
    ) -> None:
        archetype = self._pick_archetype(pattern)
        self._spawn(
            pattern, level, tick, archetype,
            lambda: self._cluster_candidate(archetype, pending.anchor_x, pending.spread, width),
            obstacles, spawned, height,
        )

    def _start_burst(
        self,
        pattern: Pattern,
        level: int,
        tick: int,
        style: BurstStyle,
        obstacles: List[Obstacle],
        spawned: List[Obstacle],
        width: int,
        height: int,
    ) -> None:
        count = self.rng.randint(style.min_count, style.max_count)
        member = PendingSpawn(anchor_x=self.rng.uniform(0.0, width), spread=style.spread)
        logger.debug(f"Burst of {count} at x={member.anchor_x:.0f}, tick {tick}")

        self._spawn_member(pattern, level, tick, member, obstacles, spawned, width, height)
        for i in range(1, count):
            if style.stagger_ticks == 0:
                self._spawn_member(pattern, level, tick, member, obstacles, spawned, width, height)
            else:
                self._pending.schedule(tick + i * style.stagger_ticks, member)
