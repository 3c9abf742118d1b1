"""Simulation and progression engine."""

from dodger.game.patterns import (
    Archetype,
    BurstStyle,
    Pattern,
    PatternCatalog,
    SpawnStyle,
    SteadyStyle,
    WaveStyle,
    default_catalog,
    load_catalog,
)
from dodger.game.entities import Avatar, Obstacle, Snapshot, AvatarView, ObstacleView
from dodger.game.progression import ProgressionTracker, ScoreState
from dodger.game.avatar import AvatarController
from dodger.game.spawner import SpawnScheduler
from dodger.game.collision import CollisionDetector, Contact
from dodger.game.simulation import Simulation

__all__ = [
    "Archetype",
    "BurstStyle",
    "Pattern",
    "PatternCatalog",
    "SpawnStyle",
    "SteadyStyle",
    "WaveStyle",
    "default_catalog",
    "load_catalog",
    "Avatar",
    "Obstacle",
    "Snapshot",
    "AvatarView",
    "ObstacleView",
    "ProgressionTracker",
    "ScoreState",
    "AvatarController",
    "SpawnScheduler",
    "CollisionDetector",
    "Contact",
    "Simulation",
]
