"""Pattern catalog: difficulty and spawn-behaviour presets.

A pattern is picked at the start of every run and stays fixed for that
run. Spawn styles are a closed set of variants, each carrying only the
parameters it needs; everything is validated when the catalog is built
so the scheduler never has to second-guess a pattern at tick time.
"""

import json
import logging
import math
import random
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, Iterable, Iterator, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)


class SpawnStyle(str, Enum):
    STEADY = "steady"
    BURST = "burst"
    WAVE = "wave"


class SteadyStyle(BaseModel):
    """One Bernoulli spawn trial per tick at the level-scaled rate."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["steady"] = "steady"


class BurstStyle(BaseModel):
    """Steady spawning plus a rarer clustered burst."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["burst"] = "burst"
    chance: float = Field(gt=0.0, le=1.0)
    min_count: int = Field(default=2, ge=1)
    max_count: int = Field(default=4, ge=1)
    spread: float = Field(default=60.0, ge=0.0)
    stagger_ticks: int = Field(default=4, ge=0)

    @model_validator(mode="after")
    def _check_counts(self) -> "BurstStyle":
        if self.min_count > self.max_count:
            raise ValueError(
                f"burst min_count ({self.min_count}) exceeds max_count ({self.max_count})"
            )
        return self


class WaveStyle(BaseModel):
    """Spawn rate modulated by a sinusoid over run time."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["wave"] = "wave"
    period_ms: float = Field(gt=0.0)
    amplitude: float = Field(default=0.6, ge=0.0, le=1.0)

    def factor(self, elapsed_ms: float) -> float:
        """Rate multiplier at the given run time, in [1 - amplitude, 1 + amplitude]."""
        return 1.0 + self.amplitude * math.sin(2.0 * math.pi * elapsed_ms / self.period_ms)


StyleParams = Annotated[
    Union[SteadyStyle, BurstStyle, WaveStyle],
    Field(discriminator="kind"),
]


class Archetype(BaseModel):
    """Obstacle size class. Visuals are the renderer's business."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    size: float = Field(gt=0.0)

    @property
    def radius(self) -> float:
        return self.size / 2.0


class Pattern(BaseModel):
    """Immutable per-run difficulty preset."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    level_up_score: int = Field(gt=0)
    spawn_rate: float = Field(gt=0.0, le=1.0)  # Probability per tick at level 1
    base_speed: float = Field(gt=0.0)          # Units per tick at level 1
    horizontal_drift: float = Field(default=0.0, ge=0.0)
    level_speed_scale: float = Field(default=0.0, ge=0.0)
    level_spawn_scale: float = Field(default=0.0, ge=0.0)
    archetypes: Tuple[str, ...] = ()           # Empty = full archetype set
    style: StyleParams = SteadyStyle()

    @property
    def spawn_style(self) -> SpawnStyle:
        return SpawnStyle(self.style.kind)

    def fall_speed(self, level: int) -> float:
        """Downward speed for a new obstacle at ``level``, before jitter."""
        return self.base_speed * (1.0 + (level - 1) * self.level_speed_scale)

    def spawn_rate_at(self, level: int) -> float:
        """Per-tick spawn probability at ``level``, before style modulation."""
        return self.spawn_rate * (1.0 + (level - 1) * self.level_spawn_scale)


# Sizes are full diameters
DEFAULT_ARCHETYPES: Tuple[Archetype, ...] = (
    Archetype(name="pebble", size=20.0),
    Archetype(name="stone", size=25.0),
    Archetype(name="rock", size=30.0),
    Archetype(name="boulder", size=35.0),
)

DEFAULT_PATTERNS: Tuple[Pattern, ...] = (
    Pattern(
        name="drizzle",
        level_up_score=50,
        spawn_rate=0.02,
        base_speed=4.0,
        horizontal_drift=0.5,
        level_speed_scale=0.25,
        level_spawn_scale=0.2,
        archetypes=("pebble", "stone"),
    ),
    Pattern(
        name="downpour",
        level_up_score=60,
        spawn_rate=0.035,
        base_speed=5.0,
        horizontal_drift=1.0,
        level_speed_scale=0.3,
        level_spawn_scale=0.25,
    ),
    Pattern(
        name="hailstorm",
        level_up_score=75,
        spawn_rate=0.018,
        base_speed=5.5,
        horizontal_drift=0.8,
        level_speed_scale=0.3,
        level_spawn_scale=0.2,
        archetypes=("pebble", "stone", "rock"),
        style=BurstStyle(chance=0.006, min_count=2, max_count=4, spread=90.0, stagger_ticks=5),
    ),
    Pattern(
        name="tide",
        level_up_score=60,
        spawn_rate=0.03,
        base_speed=4.5,
        horizontal_drift=0.6,
        level_speed_scale=0.35,
        level_spawn_scale=0.15,
        style=WaveStyle(period_ms=5000.0, amplitude=0.7),
    ),
    Pattern(
        name="rush",
        level_up_score=100,
        spawn_rate=0.015,
        base_speed=8.0,
        horizontal_drift=1.5,
        level_speed_scale=0.6,
        level_spawn_scale=0.1,
        archetypes=("rock", "boulder"),
    ),
)


class PatternCatalog:
    """Validated, fixed set of patterns and the archetypes they reference."""

    def __init__(
        self,
        patterns: Iterable[Pattern],
        archetypes: Iterable[Archetype] = DEFAULT_ARCHETYPES,
        default: Optional[str] = None,
    ):
        self._patterns: Dict[str, Pattern] = {}
        self._archetypes: Dict[str, Archetype] = {}

        for archetype in archetypes:
            if archetype.name in self._archetypes:
                raise ValueError(f"Duplicate archetype: {archetype.name}")
            self._archetypes[archetype.name] = archetype

        if not self._archetypes:
            raise ValueError("Catalog needs at least one archetype")

        for pattern in patterns:
            if pattern.name in self._patterns:
                raise ValueError(f"Duplicate pattern: {pattern.name}")
            unknown = [a for a in pattern.archetypes if a not in self._archetypes]
            if unknown:
                raise ValueError(f"Pattern {pattern.name} references unknown archetypes: {unknown}")
            self._patterns[pattern.name] = pattern

        if not self._patterns:
            raise ValueError("Catalog needs at least one pattern")

        self._default = default if default is not None else next(iter(self._patterns))
        if self._default not in self._patterns:
            raise ValueError(f"Unknown default pattern: {self._default}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatternCatalog":
        """Build a catalog from plain data, e.g. a parsed JSON file.

        Expected keys: ``patterns`` (list), optional ``archetypes`` (list)
        and ``default`` (pattern name).
        """
        archetypes = [Archetype.model_validate(a) for a in data.get("archetypes", [])]
        patterns = [Pattern.model_validate(p) for p in data.get("patterns", [])]
        return cls(patterns, archetypes or DEFAULT_ARCHETYPES, default=data.get("default"))

    @property
    def default(self) -> Pattern:
        return self._patterns[self._default]

    @property
    def names(self) -> List[str]:
        return list(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, name: object) -> bool:
        return name in self._patterns

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns.values())

    def get(self, name: Optional[str]) -> Pattern:
        """Look up a pattern, falling back to the default for unknown names."""
        if name is None:
            return self.default
        pattern = self._patterns.get(name)
        if pattern is None:
            logger.warning(f"Unknown pattern '{name}', using '{self._default}'")
            return self.default
        return pattern

    def archetype(self, name: str) -> Archetype:
        return self._archetypes[name]

    def archetypes_for(self, pattern: Pattern) -> Tuple[Archetype, ...]:
        """Archetypes a pattern may spawn (its own list or the full set)."""
        if pattern.archetypes:
            return tuple(self._archetypes[name] for name in pattern.archetypes)
        return tuple(self._archetypes.values())

    def choose(self, rng: random.Random, previous: Optional[str] = None) -> Pattern:
        """Pick a random pattern, never repeating ``previous`` when there is a choice."""
        candidates = [p for p in self._patterns.values() if p.name != previous]
        if not candidates:
            candidates = list(self._patterns.values())
        pattern = rng.choice(candidates)
        logger.debug(f"Pattern chosen: {pattern.name} (previous: {previous})")
        return pattern


def default_catalog() -> PatternCatalog:
    """Catalog with the built-in archetypes and patterns."""
    return PatternCatalog(DEFAULT_PATTERNS, DEFAULT_ARCHETYPES, default="drizzle")


def load_catalog(path: Optional[Path] = None) -> PatternCatalog:
    """Load a catalog from a JSON file, or the built-in one when no path is given.

    Raises:
        ValueError: If the file is unreadable or its contents do not
            describe a valid catalog
    """
    if path is None:
        return default_catalog()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ValueError(f"Cannot read pattern catalog {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Pattern catalog {path} must be a JSON object")

    catalog = PatternCatalog.from_dict(data)
    logger.info(f"Loaded {len(catalog)} patterns from {path}")
    return catalog
