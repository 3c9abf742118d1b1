"""Particle bursts for near misses, level-ups, milestones and crashes.

Particles are cosmetic: they live outside the simulation core and are
advanced through the simulation's effect-updater hook. Each named effect
owns one emitter; a burst places a batch of particles at a point and
lets them fly, fall and fade until their lifetime runs out.
"""

import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

Color = Tuple[int, int, int]
Range = Tuple[float, float]


@dataclass
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    lifetime: float               # ms
    size: float = 2.0
    size_end: float = 0.0
    alpha: float = 1.0
    alpha_end: float = 0.0
    gravity: float = 0.0          # units / s^2
    color: Color = (255, 255, 255)
    age: float = 0.0

    @property
    def alive(self) -> bool:
        return self.age < self.lifetime

    @property
    def fraction(self) -> float:
        """How much of the lifetime has been used, 0..1."""
        if self.lifetime <= 0:
            return 1.0
        return min(1.0, self.age / self.lifetime)

    def step(self, delta_ms: float, drag: float = 0.0) -> None:
        dt = delta_ms / 1000.0
        self.vy += self.gravity * dt
        if drag > 0:
            keep = max(0.0, 1.0 - drag * dt)
            self.vx *= keep
            self.vy *= keep
        self.x += self.vx * dt
        self.y += self.vy * dt
        self.age += delta_ms

    def look(self) -> Tuple[float, float]:
        """Current (size, alpha), interpolated over the lifetime."""
        t = self.fraction
        return (
            self.size + (self.size_end - self.size) * t,
            self.alpha + (self.alpha_end - self.alpha) * t,
        )


@dataclass
class BurstConfig:
    """Shape of one effect's bursts. Ranges are sampled uniformly."""

    count: int = 12
    capacity: int = 120

    speed: Range = (50.0, 100.0)      # units / s
    angle: Range = (0.0, 360.0)       # degrees, 90 points down the screen
    gravity: float = 0.0
    drag: float = 0.0                 # fraction of velocity lost per second

    size: Range = (2.0, 4.0)
    size_end: float = 0.0
    fade: Range = (1.0, 0.0)          # alpha at birth, alpha at death
    lifetime: Range = (300.0, 600.0)  # ms

    color: Color = (255, 255, 255)
    color_jitter: float = 0.0         # 0..1, per channel


class ParticleEmitter:
    """Owns the live particles of one effect."""

    def __init__(self, config: Optional[BurstConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or BurstConfig()
        self.rng = rng or random.Random()
        self.origin: Tuple[float, float] = (0.0, 0.0)
        self.particles: List[Particle] = []

    def __len__(self) -> int:
        return len(self.particles)

    def burst(self, x: float, y: float, count: Optional[int] = None) -> int:
        """Spawn a burst at (x, y), limited by the emitter's capacity.

        Returns:
            Number of particles actually spawned
        """
        self.origin = (x, y)
        wanted = self.config.count if count is None else count
        room = max(0, self.config.capacity - len(self.particles))
        spawned = min(wanted, room)
        self.particles.extend(self._spawn(x, y) for _ in range(spawned))
        return spawned

    def update(self, delta_ms: float) -> None:
        drag = self.config.drag
        for particle in self.particles:
            particle.step(delta_ms, drag)
        self.particles = [p for p in self.particles if p.alive]

    def render(self, buffer: NDArray[np.uint8]) -> None:
        """Additively blend particles into an RGB buffer of shape (h, w, 3)."""
        h, w = buffer.shape[:2]
        for particle in self.particles:
            size, alpha = particle.look()
            if size <= 0 or alpha <= 0:
                continue

            r = max(1, int(size / 2))
            cx, cy = int(particle.x), int(particle.y)
            left, right = max(0, cx - r), min(w, cx + r + 1)
            top, bottom = max(0, cy - r), min(h, cy + r + 1)
            if left >= right or top >= bottom:
                continue

            ys, xs = np.ogrid[top:bottom, left:right]
            inside = (xs - cx) ** 2 + (ys - cy) ** 2 <= r * r
            patch = buffer[top:bottom, left:right].astype(np.int16)
            patch[inside] += (np.asarray(particle.color, dtype=np.float32) * alpha).astype(np.int16)
            buffer[top:bottom, left:right] = np.clip(patch, 0, 255).astype(np.uint8)

    def clear(self) -> None:
        self.particles.clear()

    def _spawn(self, x: float, y: float) -> Particle:
        cfg = self.config
        rng = self.rng
        heading = math.radians(rng.uniform(*cfg.angle))
        speed = rng.uniform(*cfg.speed)
        return Particle(
            x=x,
            y=y,
            vx=math.cos(heading) * speed,
            vy=math.sin(heading) * speed,
            lifetime=rng.uniform(*cfg.lifetime),
            size=rng.uniform(*cfg.size),
            size_end=cfg.size_end,
            alpha=cfg.fade[0],
            alpha_end=cfg.fade[1],
            gravity=cfg.gravity,
            color=self._tint(cfg.color, cfg.color_jitter),
        )

    def _tint(self, color: Color, jitter: float) -> Color:
        if jitter <= 0:
            return color
        r, g, b = (
            max(0, min(255, int(c + c * jitter * self.rng.uniform(-1.0, 1.0))))
            for c in color
        )
        return (r, g, b)


class ParticleSystem:
    """Named emitters sharing one random source."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.emitters: Dict[str, ParticleEmitter] = {}

    def add_emitter(self, name: str, config: BurstConfig) -> ParticleEmitter:
        self.emitters[name] = ParticleEmitter(config, self.rng)
        return self.emitters[name]

    def get_emitter(self, name: str) -> Optional[ParticleEmitter]:
        return self.emitters.get(name)

    def burst_at(self, name: str, x: float, y: float, count: Optional[int] = None) -> int:
        """Fire the named effect at (x, y). Unknown names spawn nothing."""
        emitter = self.emitters.get(name)
        if emitter is None:
            return 0
        return emitter.burst(x, y, count)

    def update(self, delta_ms: float) -> None:
        for emitter in self.emitters.values():
            emitter.update(delta_ms)

    def render(self, buffer: NDArray[np.uint8]) -> None:
        for emitter in self.emitters.values():
            emitter.render(buffer)

    def clear_all(self) -> None:
        for emitter in self.emitters.values():
            emitter.clear()

    @property
    def total_particles(self) -> int:
        return sum(len(e) for e in self.emitters.values())


class ParticlePresets:
    """The game's effect shapes."""

    @staticmethod
    def spark() -> BurstConfig:
        """Quick bright flecks for a near miss."""
        return BurstConfig(
            count=8,
            capacity=64,
            speed=(60.0, 160.0),
            drag=2.0,
            size=(2.0, 4.0),
            lifetime=(150.0, 350.0),
            color=(255, 230, 140),
            color_jitter=0.15,
        )

    @staticmethod
    def ring() -> BurstConfig:
        """Even outward ring for a level-up."""
        return BurstConfig(
            count=24,
            capacity=96,
            speed=(120.0, 140.0),
            size=(3.0, 4.0),
            size_end=1.0,
            lifetime=(450.0, 550.0),
            color=(120, 200, 255),
        )

    @staticmethod
    def confetti() -> BurstConfig:
        """Upward spray for a score milestone."""
        return BurstConfig(
            count=20,
            capacity=80,
            speed=(80.0, 180.0),
            angle=(230.0, 310.0),
            gravity=260.0,
            size=(2.0, 5.0),
            size_end=2.0,
            fade=(1.0, 0.6),
            lifetime=(600.0, 1000.0),
            color=(255, 120, 180),
            color_jitter=0.7,
        )

    @staticmethod
    def crash() -> BurstConfig:
        """Heavy debris when the avatar is hit."""
        return BurstConfig(
            count=48,
            capacity=96,
            speed=(40.0, 220.0),
            gravity=120.0,
            drag=0.8,
            size=(3.0, 7.0),
            lifetime=(600.0, 1200.0),
            color=(255, 110, 60),
            color_jitter=0.3,
        )
