"""Shared builders for the test suite."""

import random
from typing import Iterable, List

from dodger.config.settings import (
    AvatarSettings,
    CollisionSettings,
    Settings,
    SpawnSettings,
    ViewportSettings,
)
from dodger.core.events import Event, EventBus, EventType
from dodger.game.entities import Obstacle
from dodger.game.patterns import Pattern, PatternCatalog

# Practically never spawns on its own, so tests control the playfield
CALM = Pattern(name="calm", level_up_score=50, spawn_rate=1e-9, base_speed=8.0)


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment and any .env file."""
    values = dict(
        seed=1234,
        viewport=ViewportSettings(width=500, height=700),
        avatar=AvatarSettings(),
        spawn=SpawnSettings(),
        collision=CollisionSettings(),
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def calm_catalog(*extra: Pattern) -> PatternCatalog:
    return PatternCatalog((CALM,) + extra, default="calm")


def make_obstacle(x: float, y: float, radius: float = 15.0, vx: float = 0.0, vy: float = 0.0) -> Obstacle:
    return Obstacle(
        x=x,
        y=y,
        vx=vx,
        vy=vy,
        rotation=0.0,
        angular_velocity=0.0,
        archetype="rock",
        radius=radius,
    )


class ScriptedRandom(random.Random):
    """Returns scripted values from random() first, then real seeded ones."""

    def __init__(self, script: Iterable[float] = (), seed: int = 7):
        super().__init__(seed)
        self.script: List[float] = list(script)

    def random(self) -> float:
        if self.script:
            return self.script.pop(0)
        return super().random()


class Recorder:
    """Collects every event emitted on a bus."""

    def __init__(self, bus: EventBus):
        self.events: List[Event] = []
        bus.subscribe_all(self.events.append)

    def of(self, event_type: EventType) -> List[Event]:
        return [e for e in self.events if e.type == event_type]

    def clear(self) -> None:
        self.events.clear()
