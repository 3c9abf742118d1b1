"""
Application settings using Pydantic.

Settings are loaded from environment variables with .env file support.
Nested groups use the ``__`` delimiter, e.g. ``DODGER_SPAWN__MIN_SPACING=80``.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ViewportSettings(BaseModel):
    """Playfield dimensions in simulation units."""

    width: int = Field(default=500, gt=0)
    height: int = Field(default=700, gt=0)


class AvatarSettings(BaseModel):
    """Avatar motion and hitbox."""

    # Only the tip is lethal, so this is smaller than the drawn sprite
    hit_radius: float = Field(default=10.0, gt=0.0)

    # Fraction of the remaining distance covered per tick
    smoothing: float = Field(default=0.25, gt=0.0, lt=1.0)

    trail_length: int = Field(default=12, ge=1)
    start_offset: float = Field(default=60.0, ge=0.0)


class SpawnSettings(BaseModel):
    """Pattern-independent spawn placement rules."""

    min_spacing: float = Field(default=70.0, ge=0.0)
    horizontal_weight: float = Field(default=0.5, ge=0.0)
    vertical_weight: float = Field(default=1.0, ge=0.0)
    top_region: float = Field(default=0.3, gt=0.0, le=1.0)
    max_attempts: int = Field(default=8, ge=1)

    speed_jitter: float = Field(default=1.0, ge=0.0)
    spin_max: float = Field(default=0.05, ge=0.0)  # radians per tick


class CollisionSettings(BaseModel):
    """Hit and near-miss bands."""

    warning_margin: float = Field(default=20.0, ge=0.0)
    bottom_margin: float = Field(default=50.0, ge=0.0)
    near_miss_chance: float = Field(default=0.1, ge=0.0, le=1.0)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="DODGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Environment
    env: Literal["simulator", "headless"] = "simulator"
    debug: bool = False
    seed: Optional[int] = None

    # Progression
    score_per_second: float = Field(default=10.0, gt=0.0)
    milestone_step: int = Field(default=100, gt=0)

    # Frame spikes beyond this are clamped
    max_delta_ms: float = Field(default=50.0, gt=0.0)

    # Force a catalog pattern for every run (unknown names fall back to the default)
    pattern: Optional[str] = None

    # JSON pattern catalog replacing the built-in one
    patterns_file: Optional[Path] = None

    # Paths
    data_path: Path = Field(default_factory=lambda: Path.home() / ".dodger")

    # Simulator window
    fps: int = Field(default=60, gt=0)
    title: str = "DODGER"
    window_scale: float = Field(default=1.0, gt=0.0)

    # Nested settings
    viewport: ViewportSettings = Field(default_factory=ViewportSettings)
    avatar: AvatarSettings = Field(default_factory=AvatarSettings)
    spawn: SpawnSettings = Field(default_factory=SpawnSettings)
    collision: CollisionSettings = Field(default_factory=CollisionSettings)

    @property
    def is_headless(self) -> bool:
        """Check if running without a window."""
        return self.env == "headless"

    @property
    def score_store_path(self) -> Path:
        """Location of the best-score/settings file."""
        return self.data_path / "scores.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
