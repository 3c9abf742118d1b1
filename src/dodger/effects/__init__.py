"""Cosmetic effects driven by simulation events."""

from dodger.effects.particles import (
    Particle,
    ParticleEmitter,
    ParticleSystem,
    BurstConfig,
    ParticlePresets,
)
from dodger.effects.director import EffectsDirector

__all__ = [
    "Particle",
    "ParticleEmitter",
    "ParticleSystem",
    "BurstConfig",
    "ParticlePresets",
    "EffectsDirector",
]
