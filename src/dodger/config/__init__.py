"""Configuration for DODGER."""

from .settings import (
    Settings,
    ViewportSettings,
    AvatarSettings,
    SpawnSettings,
    CollisionSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "ViewportSettings",
    "AvatarSettings",
    "SpawnSettings",
    "CollisionSettings",
    "get_settings",
]
