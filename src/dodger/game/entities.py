"""Simulation entities and the read-only views handed to consumers."""

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Tuple

from dodger.core.events import Event
from dodger.core.state import Phase

Point = Tuple[float, float]


@dataclass
class Avatar:
    """The pointer-driven player entity."""

    x: float
    y: float
    target_x: float
    target_y: float
    hit_radius: float
    trail: Deque[Point] = field(default_factory=deque)

    @classmethod
    def spawn(cls, x: float, y: float, hit_radius: float, trail_length: int) -> "Avatar":
        """Create an avatar at rest with an empty, bounded trail."""
        return cls(
            x=x,
            y=y,
            target_x=x,
            target_y=y,
            hit_radius=hit_radius,
            trail=deque(maxlen=trail_length),
        )

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    def view(self) -> "AvatarView":
        return AvatarView(x=self.x, y=self.y, hit_radius=self.hit_radius, trail=tuple(self.trail))


@dataclass
class Obstacle:
    """A falling hazard. Position is the centre point."""

    x: float
    y: float
    vx: float
    vy: float
    rotation: float
    angular_velocity: float
    archetype: str
    radius: float
    created_tick: int = 0

    @property
    def size(self) -> float:
        return self.radius * 2.0

    def advance(self) -> None:
        """Move by one tick of velocity and spin."""
        self.x += self.vx
        self.y += self.vy
        self.rotation = (self.rotation + self.angular_velocity) % math.tau

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(self.x - x, self.y - y)

    def view(self) -> "ObstacleView":
        return ObstacleView(
            x=self.x,
            y=self.y,
            rotation=self.rotation,
            archetype=self.archetype,
            radius=self.radius,
        )


@dataclass(frozen=True)
class AvatarView:
    x: float
    y: float
    hit_radius: float
    trail: Tuple[Point, ...]


@dataclass(frozen=True)
class ObstacleView:
    x: float
    y: float
    rotation: float
    archetype: str
    radius: float


@dataclass(frozen=True)
class Snapshot:
    """Everything a renderer or effects layer may read after a tick."""

    tick: int
    run_id: int
    phase: Phase
    score: int
    level: int
    pattern: str
    width: int
    height: int
    avatar: AvatarView | None
    obstacles: Tuple[ObstacleView, ...] = ()
    events: Tuple[Event, ...] = ()

    @property
    def is_running(self) -> bool:
        return self.phase == Phase.RUNNING
